import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, desc

from .database import store_operation
from .errors import NotFoundError
from .models import Chat, DEFAULT_CHAT_TITLE, utcnow

# Logging setup
logger = logging.getLogger(__name__)

# Create a new chat for a user
@store_operation
async def create_chat(
    session: AsyncSession,
    user_id: int,
    title: str = DEFAULT_CHAT_TITLE
) -> Chat:
    logger.info(f"Creating new chat for user_id={user_id}")

    now = utcnow()
    chat = Chat(
        user_id=user_id,
        title=title or DEFAULT_CHAT_TITLE,
        created_at=now,
        updated_at=now
    )
    session.add(chat)

    # Flush to get the id; the caller commits
    await session.flush()

    logger.info(f"Chat created with id={chat.id}")
    return chat

# Fetch a chat by id regardless of owner; ownership is checked by the caller
@store_operation
async def get_chat_by_id(
    session: AsyncSession,
    chat_id: int
) -> Chat:
    logger.info(f"Fetching chat id={chat_id}")

    result = await session.execute(
        select(Chat).where(Chat.id == chat_id)
    )

    chat = result.scalar_one_or_none()
    if chat is None:
        logger.info(f"Chat id={chat_id} not found.")
        raise NotFoundError("Chat not found")

    return chat

# All chats of a user, most recently updated first
@store_operation
async def list_chats_by_user(
    session: AsyncSession,
    user_id: int
) -> list[Chat]:
    logger.info(f"Fetching all chats for user_id={user_id}")

    result = await session.execute(
        select(Chat)
        .where(Chat.user_id == user_id)
        .order_by(desc(Chat.updated_at), desc(Chat.id))
    )

    chats = list(result.scalars().all())
    logger.info(f"Fetched {len(chats)} chats.")
    return chats

@store_operation
async def update_chat_title(
    session: AsyncSession,
    chat_id: int,
    title: str
) -> None:
    logger.info(f"Updating title of chat id={chat_id}")

    result = await session.execute(
        update(Chat)
        .where(Chat.id == chat_id)
        .values(title=title, updated_at=utcnow())
    )
    if result.rowcount == 0:
        raise NotFoundError("Chat not found")
