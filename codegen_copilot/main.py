import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .code_generator import CodeGenerator
from .config import Settings
from .database import Database
from .errors import AppError, DependencyError
from .router import router, api_router
from .schemas import ErrorResponse
from .security import PasswordHasher, TokenService

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(by_alias=True)
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, DependencyError) or exc.status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: "
            f"{type(exc).__name__}: {exc.message}",
            exc_info=exc
        )
        return _error(exc.status_code, "Internal Server Error")
    return _error(exc.status_code, exc.message)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    locations = [tuple(err.get("loc", ("body",))) for err in exc.errors()]
    if any(loc[0] == "body" for loc in locations):
        return _error(400, "Invalid request body")
    if any(loc == ("path", "chat_id") for loc in locations):
        return _error(400, "Invalid chat ID")
    return _error(400, "Invalid request parameters")


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    generator: CodeGenerator | None = None
) -> FastAPI:
    # Fails fast on a missing DATABASE_URL, JWT_SECRET or OPENAI_API_KEY
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    database = database or Database.from_settings(settings)
    token_service = TokenService(settings.jwt_secret)
    password_hasher = PasswordHasher(settings.bcrypt_rounds)
    generator = generator or CodeGenerator.from_settings(settings)

    # --- Lifespan (startup/shutdown of components) ---
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("App starting... initializing database")
        await database.create_all()
        yield
        logger.info("App shutting down")
        await database.dispose()

    app = FastAPI(title="Code Generation Copilot", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.token_service = token_service
    app.state.password_hasher = password_hasher
    app.state.code_generator = generator

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(router)
    app.include_router(api_router)
    return app


def run():
    settings = Settings.from_env()
    uvicorn.run(
        "codegen_copilot.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
