import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, exists

from .database import store_operation
from .errors import ConflictError, NotFoundError
from .models import User

# --- Logging ---
logger = logging.getLogger(__name__)

# --- Check whether an email is already registered ---
@store_operation
async def email_exists(
    session: AsyncSession,
    email: str
) -> bool:
    result = await session.execute(
        select(exists().where(User.email == email))
    )
    return bool(result.scalar())

# --- Get user by email ---
@store_operation
async def get_user_by_email(
    session: AsyncSession,
    email: str
) -> User:
    logger.info("Searching for user by email")
    result = await session.execute(
        select(User).where(User.email == email)
    )
    user = result.scalar_one_or_none()
    if user is None:
        logger.info("User not found by email")
        raise NotFoundError("User not found")
    logger.info(f"User found: id={user.id}")
    return user

# --- Create a new user from an already hashed password ---
@store_operation
async def create_user(
    session: AsyncSession,
    name: str,
    email: str,
    password_hash: str
) -> User:
    logger.info("Creating new user")
    user = User(
        name=name,
        email=email,
        password_hash=password_hash
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError:
        # Unique constraint on email lost a race with another signup
        await session.rollback()
        logger.info("User creation rejected: email already registered")
        raise ConflictError("Email already registered")
    logger.info(f"User created: id={user.id}")
    return user
