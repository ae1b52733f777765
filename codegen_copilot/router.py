import logging
from typing import AsyncGenerator, List

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from .code_generator import CodeGenerator
from .database import Database, commit
from .errors import (
    AuthenticationError, AuthorizationError, ConflictError, NotFoundError
)
from .models import DEFAULT_CHAT_TITLE, MessageRole
from .schemas import (
    AuthResponse, ChatResponse, ChatWithMessagesResponse, CreateChatRequest,
    Envelope, GenerateRequest, GenerateResponse, HealthResponse, LoginRequest,
    MessageResponse, SignupRequest, UserResponse
)
from .security import (
    Identity, MalformedHashError, PasswordHasher, TokenError, TokenService
)
from . import chat_service, message_service, user_service, validators

# --- Logging ---
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
UNAUTHENTICATED = "Invalid or expired token"

# --- Routes ---
router = APIRouter()
api_router = APIRouter(prefix="/api/v1")

# --- Components built at startup and kept on app.state ---
def get_database(request: Request) -> Database:
    return request.app.state.database

def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service

def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher

def get_code_generator(request: Request) -> CodeGenerator:
    return request.app.state.code_generator

# --- Session generator for Depends ---
async def get_async_session(
    database: Database = Depends(get_database)
) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session

# --- Auth gate: "Authorization: Bearer <token>" ---
def get_current_identity(
    request: Request,
    tokens: TokenService = Depends(get_token_service)
) -> Identity:
    auth = request.headers.get("Authorization")
    if not auth:
        logger.info("Rejected request: no authorization header")
        raise AuthenticationError(UNAUTHENTICATED)

    parts = auth.split()
    if len(parts) != 2 or parts[0] != "Bearer":
        logger.info("Rejected request: malformed authorization header")
        raise AuthenticationError(UNAUTHENTICATED)

    try:
        identity = tokens.validate(parts[1])
    except TokenError as e:
        # The cause stays in the logs, the client gets one answer
        logger.info(f"Rejected request: {type(e).__name__}: {e}")
        raise AuthenticationError(UNAUTHENTICATED) from e

    request.state.identity = identity
    return identity

# --- Health check ---
@router.get("/health", response_model=HealthResponse)
async def health(database: Database = Depends(get_database)):
    if await database.ping():
        body = HealthResponse(
            status="ok", message="Server is running", database="up"
        )
        return body
    body = HealthResponse(
        status="error", message="Database is unreachable", database="down"
    )
    return JSONResponse(
        status_code=503, content=body.model_dump(by_alias=True)
    )

# --- User signup ---
@api_router.post(
    "/auth/signup", status_code=201, response_model=Envelope[AuthResponse],
    response_model_exclude_none=True
)
async def signup(
    request: SignupRequest,
    session: AsyncSession = Depends(get_async_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service)
):
    validators.validate_signup(request.name, request.email, request.password)

    # Signup tells the client the email is taken; login never does
    if await user_service.email_exists(session, request.email):
        raise ConflictError("Email already registered")

    password_hash = await run_in_threadpool(hasher.hash, request.password)
    user = await user_service.create_user(
        session, request.name, request.email, password_hash
    )
    await commit(session)

    token = tokens.issue(user.id, user.email)
    logger.info(f"User signed up: id={user.id}")
    return Envelope[AuthResponse](
        message="Account created successfully",
        data=AuthResponse(user=UserResponse.model_validate(user), token=token)
    )

# --- User login ---
@api_router.post(
    "/auth/login", response_model=Envelope[AuthResponse],
    response_model_exclude_none=True
)
async def login(
    request: LoginRequest,
    session: AsyncSession = Depends(get_async_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service)
):
    validators.validate_login(request.email, request.password)

    try:
        user = await user_service.get_user_by_email(session, request.email)
    except NotFoundError:
        raise AuthenticationError(INVALID_CREDENTIALS)

    try:
        matches = await run_in_threadpool(
            hasher.verify, user.password_hash, request.password
        )
    except MalformedHashError:
        logger.warning(f"Stored password hash of user id={user.id} is malformed")
        matches = False
    if not matches:
        raise AuthenticationError(INVALID_CREDENTIALS)

    token = tokens.issue(user.id, user.email)
    logger.info(f"User logged in: id={user.id}")
    return Envelope[AuthResponse](
        message="Login successful",
        data=AuthResponse(user=UserResponse.model_validate(user), token=token)
    )

# --- Code generation ---
@api_router.post(
    "/generate", response_model=Envelope[GenerateResponse],
    response_model_exclude_none=True
)
async def generate_code(
    request: GenerateRequest,
    identity: Identity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_async_session),
    generator: CodeGenerator = Depends(get_code_generator)
):
    validators.validate_generate(request.prompt, request.language)

    if request.chat_id is not None:
        try:
            chat = await chat_service.get_chat_by_id(session, request.chat_id)
        except NotFoundError:
            raise AuthorizationError("Invalid chat ID")
        if chat.user_id != identity.user_id:
            raise AuthorizationError("Invalid chat ID")
        is_new_chat = False
    else:
        chat = await chat_service.create_chat(
            session, identity.user_id, DEFAULT_CHAT_TITLE
        )
        is_new_chat = True

    await message_service.create_message(
        session, chat.id, MessageRole.USER, request.prompt, request.language
    )
    if is_new_chat:
        await chat_service.update_chat_title(
            session, chat.id, validators.derive_chat_title(request.prompt)
        )
    # Chat and prompt are kept even if generation fails below
    await commit(session)

    code = await generator.generate(request.language, request.prompt)

    await message_service.create_message(
        session, chat.id, MessageRole.ASSISTANT, code, request.language
    )
    await commit(session)

    logger.info(f"User {identity.user_id} generated code in chat {chat.id}")
    return Envelope[GenerateResponse](
        data=GenerateResponse(chat_id=chat.id, code=code)
    )

# --- Create a chat ---
@api_router.post(
    "/chats", response_model=Envelope[ChatResponse],
    response_model_exclude_none=True
)
async def create_chat(
    request: CreateChatRequest,
    identity: Identity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_async_session)
):
    title = request.title.strip() or DEFAULT_CHAT_TITLE
    chat = await chat_service.create_chat(session, identity.user_id, title)
    await commit(session)
    return Envelope[ChatResponse](data=ChatResponse.model_validate(chat))

# --- List the caller's chats ---
@api_router.get(
    "/chats", response_model=Envelope[List[ChatResponse]],
    response_model_exclude_none=True
)
async def list_chats(
    identity: Identity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_async_session)
):
    chats = await chat_service.list_chats_by_user(session, identity.user_id)
    return Envelope[List[ChatResponse]](
        data=[ChatResponse.model_validate(c) for c in chats]
    )

# --- One chat with its messages ---
@api_router.get(
    "/chats/{chat_id}", response_model=Envelope[ChatWithMessagesResponse],
    response_model_exclude_none=True
)
async def get_chat(
    chat_id: int,
    identity: Identity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_async_session)
):
    chat = await chat_service.get_chat_by_id(session, chat_id)
    if chat.user_id != identity.user_id:
        raise AuthorizationError("Access denied")

    messages = await message_service.list_messages_by_chat(session, chat_id)
    return Envelope[ChatWithMessagesResponse](
        data=ChatWithMessagesResponse(
            chat=ChatResponse.model_validate(chat),
            messages=[MessageResponse.model_validate(m) for m in messages]
        )
    )
