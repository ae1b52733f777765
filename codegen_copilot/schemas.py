from datetime import datetime
from typing import Generic, TypeVar, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# JSON keys are camelCase on the wire
class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Missing fields default to "" so the validators report them by name
class SignupRequest(CamelModel):
    name: str = ""
    email: str = ""
    password: str = ""

class LoginRequest(CamelModel):
    email: str = ""
    password: str = ""

class CreateChatRequest(CamelModel):
    title: str = ""

class GenerateRequest(CamelModel):
    chat_id: Optional[int] = None
    prompt: str = ""
    language: str = ""

class UserResponse(CamelModel):
    id: int
    name: str
    email: str
    created_at: datetime

class AuthResponse(CamelModel):
    user: UserResponse
    token: str

class ChatResponse(CamelModel):
    id: int
    title: str
    user_id: int
    created_at: datetime
    updated_at: datetime

class MessageResponse(CamelModel):
    id: int
    chat_id: int
    role: str
    content: str
    language: Optional[str] = None
    created_at: datetime

class ChatWithMessagesResponse(CamelModel):
    chat: ChatResponse
    messages: List[MessageResponse]

class GenerateResponse(CamelModel):
    chat_id: int
    code: str

class HealthResponse(CamelModel):
    status: str
    message: str
    database: str

T = TypeVar("T")

# Success envelope: {"success": true, "message": ..., "data": ...}
class Envelope(CamelModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None

# Failure envelope
class ErrorResponse(CamelModel):
    success: bool = False
    message: str
