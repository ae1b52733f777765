import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from jose import JWTError, jwt
from passlib.hash import bcrypt

from .errors import AuthenticationError, PasswordHashError
from .models import utcnow

# --- Logging ---
logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(hours=24)


class MalformedHashError(Exception):
    pass


# --- Password hashing ---
class PasswordHasher:
    def __init__(self, rounds: int = 12):
        if not 4 <= rounds <= 31:
            raise ValueError(f"bcrypt rounds must be between 4 and 31, got {rounds}")
        self._bcrypt = bcrypt.using(rounds=rounds)

    def hash(self, password: str) -> str:
        logger.debug("Hashing password")
        try:
            return self._bcrypt.hash(password)
        except (ValueError, TypeError) as e:
            raise PasswordHashError(f"Failed to process password: {e}") from e

    # False means "no match"; a stored value that is not a bcrypt hash
    # raises MalformedHashError
    def verify(self, password_hash: str, password: str) -> bool:
        logger.debug("Verifying password")
        if not isinstance(password_hash, str) or not bcrypt.identify(password_hash):
            raise MalformedHashError("Stored value is not a bcrypt hash")
        try:
            return self._bcrypt.verify(password, password_hash)
        except (ValueError, TypeError) as e:
            # The plaintext itself cannot be hashed (e.g. NUL bytes)
            logger.debug(f"Password rejected by bcrypt: {e}")
            return False


# --- Session tokens ---
class TokenError(AuthenticationError):
    pass


class TokenExpiredError(TokenError):
    pass


class BadSignatureError(TokenError):
    pass


class MalformedTokenError(TokenError):
    pass


class MissingSecretError(TokenError):
    status_code = 500


@dataclass(frozen=True)
class Identity:
    user_id: int
    email: str


class TokenService:
    """Issues and validates HS256 session tokens.

    Tokens are self-contained and valid for 24 hours from issuance. There is
    no revocation list: logging out means the client discards its token.
    """

    def __init__(self, secret: str, clock: Callable[[], datetime] = utcnow):
        if not secret:
            raise MissingSecretError("JWT secret is not configured")
        self._secret = secret
        self._clock = clock

    def issue(self, user_id: int, email: str) -> str:
        now = self._clock()
        issued_at = int(now.timestamp())
        claims = {
            "user_id": user_id,
            "email": email,
            "iat": issued_at,
            "nbf": issued_at,
            "exp": int((now + TOKEN_LIFETIME).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def validate(self, token: str) -> Identity:
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise MalformedTokenError(f"Malformed token: {e}") from e

        # Only the one symmetric method is accepted
        if header.get("alg") != ALGORITHM:
            raise BadSignatureError(
                f"Unexpected signing algorithm: {header.get('alg')}"
            )

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                },
            )
        except JWTError as e:
            raise BadSignatureError(f"Token signature rejected: {e}") from e

        user_id = claims.get("user_id")
        email = claims.get("email")
        not_before = claims.get("nbf")
        expires_at = claims.get("exp")
        if (
            not _is_int(user_id)
            or not isinstance(email, str)
            or not _is_int(not_before)
            or not _is_int(expires_at)
        ):
            raise MalformedTokenError("Token claims are missing or invalid")

        now = self._clock().timestamp()
        if not not_before <= now < expires_at:
            raise TokenExpiredError("Token is expired or not yet valid")

        return Identity(user_id=user_id, email=email)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
