import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, asc

from .database import store_operation
from .errors import ValidationError
from .models import Chat, Message, MessageRole, utcnow

# Logging setup
logger = logging.getLogger(__name__)

# Messages of a chat in the order they were written
@store_operation
async def list_messages_by_chat(
    session: AsyncSession,
    chat_id: int
) -> list[Message]:
    logger.info(f"Fetching messages for chat_id={chat_id}")
    result = await session.execute(
        select(Message)
        .where(Message.chat_id == chat_id)
        .order_by(asc(Message.created_at), asc(Message.id))
    )
    messages = list(result.scalars().all())
    logger.info(f"Fetched {len(messages)} messages")
    return messages

# Create a message and bump the owning chat's updated_at
@store_operation
async def create_message(
    session: AsyncSession,
    chat_id: int,
    role: MessageRole | str,
    content: str,
    language: str | None = None
) -> Message:
    try:
        role = MessageRole(role)
    except ValueError:
        raise ValidationError(f"Invalid message role: {role}")

    logger.info(f"Creating {role.value} message for chat_id={chat_id}")
    now = utcnow()
    new_message = Message(
        chat_id=chat_id,
        role=role.value,
        content=content,
        language=language or None,
        created_at=now
    )
    session.add(new_message)
    await session.flush()  # sync with the DB, the caller commits

    await session.execute(
        update(Chat).where(Chat.id == chat_id).values(updated_at=now)
    )
    logger.info(f"Message created with id={new_message.id}")
    return new_message
