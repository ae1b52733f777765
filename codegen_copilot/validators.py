"""Payload checks for the public endpoints.

Each validator raises ``ValidationError`` with the message of the first rule
that fails; fields are checked in a fixed order. The email check only looks
for an ``@`` on purpose.
"""
from .errors import ValidationError

MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 8
MAX_TITLE_LENGTH = 50


def _check_email(email: str) -> None:
    if not email.strip():
        raise ValidationError("Email is required")
    if "@" not in email:
        raise ValidationError("Invalid email format")


# bcrypt cannot hash NUL bytes
def _check_password_characters(password: str) -> None:
    if "\x00" in password:
        raise ValidationError("Password contains invalid characters")


def validate_signup(name: str, email: str, password: str) -> None:
    if not name.strip():
        raise ValidationError("Name is required")
    if len(name) < MIN_NAME_LENGTH:
        raise ValidationError(
            f"Name must be at least {MIN_NAME_LENGTH} characters"
        )

    _check_email(email)

    if not password.strip():
        raise ValidationError("Password is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    _check_password_characters(password)


def validate_login(email: str, password: str) -> None:
    _check_email(email)
    if not password.strip():
        raise ValidationError("Password is required")
    _check_password_characters(password)


def validate_generate(prompt: str, language: str) -> None:
    if not prompt.strip():
        raise ValidationError("Prompt is required")
    if not language.strip():
        raise ValidationError("Language is required")


def derive_chat_title(prompt: str) -> str:
    title = prompt.strip()
    if len(title) > MAX_TITLE_LENGTH:
        title = title[:MAX_TITLE_LENGTH] + "..."
    return title
