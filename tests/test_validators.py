import pytest

from codegen_copilot.code_generator import strip_code_fences
from codegen_copilot.errors import ValidationError
from codegen_copilot.validators import (
    derive_chat_title, validate_generate, validate_login, validate_signup
)


@pytest.mark.parametrize("name, email, password, message", [
    ("", "a@b.c", "password123", "Name is required"),
    ("   ", "a@b.c", "password123", "Name is required"),
    ("A", "a@b.c", "password123", "Name must be at least 2 characters"),
    ("Al", "", "password123", "Email is required"),
    ("Al", "alice.example.com", "password123", "Invalid email format"),
    ("Al", "a@b.c", "", "Password is required"),
    ("Al", "a@b.c", "        ", "Password is required"),
    ("Al", "a@b.c", "passwor", "Password must be at least 8 characters"),
])
def test_signup_rejections(name, email, password, message):
    with pytest.raises(ValidationError) as exc_info:
        validate_signup(name, email, password)
    assert exc_info.value.message == message
    assert exc_info.value.status_code == 400


def test_signup_reports_first_failing_field():
    with pytest.raises(ValidationError) as exc_info:
        validate_signup("", "bad", "short")
    assert exc_info.value.message == "Name is required"


def test_signup_accepts_valid_payload():
    validate_signup("Al", "a@b", "password")


@pytest.mark.parametrize("email, password, message", [
    ("", "x", "Email is required"),
    ("nobody", "x", "Invalid email format"),
    ("a@b.c", "", "Password is required"),
])
def test_login_rejections(email, password, message):
    with pytest.raises(ValidationError) as exc_info:
        validate_login(email, password)
    assert exc_info.value.message == message


def test_login_has_no_length_rule():
    validate_login("a@b.c", "x")


def test_generate_requires_prompt_then_language():
    with pytest.raises(ValidationError, match="Prompt is required"):
        validate_generate(" ", "")
    with pytest.raises(ValidationError, match="Language is required"):
        validate_generate("sort a list", "")


def test_chat_title_keeps_short_prompts():
    assert derive_chat_title("reverse a string") == "reverse a string"


def test_chat_title_truncates_to_50_characters():
    prompt = "x" * 60
    assert derive_chat_title(prompt) == "x" * 50 + "..."


@pytest.mark.parametrize("raw, expected", [
    ("print(1)", "print(1)"),
    ("```python\nprint(1)\n```", "print(1)"),
    ("  ```\nfn main() {}\n```  ", "fn main() {}"),
    ("```print(1)```", "print(1)"),
])
def test_strip_code_fences(raw, expected):
    assert strip_code_fences(raw) == expected


def test_signup_rejects_nul_in_password():
    with pytest.raises(ValidationError) as exc_info:
        validate_signup("Al", "a@b.c", "pass\x00word123")
    assert exc_info.value.message == "Password contains invalid characters"


def test_login_rejects_nul_in_password():
    with pytest.raises(ValidationError, match="Password contains invalid characters"):
        validate_login("a@b.c", "pass\x00word")
