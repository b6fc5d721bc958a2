import re
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

NAME_RE = re.compile(r"^[a-zA-Z\s]+$")
PASSWORD_CHARS_RE = re.compile(r"^[A-Za-z\d@$!%*?&]+$")
SUPPORTED_LANGUAGES = ("en", "fa", "ar", "ru", "is")
EMAIL_MAX_LENGTH = 100


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def normalize_email(v: str) -> str:
    if len(v) > EMAIL_MAX_LENGTH:
        raise ValueError(f"Email must be at most {EMAIL_MAX_LENGTH} characters")
    return v.lower()


def _check_name(v: str) -> str:
    if not NAME_RE.match(v):
        raise ValueError("Name can only contain letters and spaces")
    return v


class SignupRequest(CamelModel):
    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    confirm_password: str

    @field_validator("name")
    @classmethod
    def name_letters(cls, v: str) -> str:
        return _check_name(v)

    @field_validator("email")
    @classmethod
    def email_format(cls, v: EmailStr) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        ok = (
            PASSWORD_CHARS_RE.match(v)
            and re.search(r"[a-z]", v)
            and re.search(r"[A-Z]", v)
            and re.search(r"\d", v)
            and re.search(r"[@$!%*?&]", v)
        )
        if not ok:
            raise ValueError(
                "Password must contain at least one lowercase letter, one uppercase letter, "
                "one number, and one special character"
            )
        return v

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v: str, info) -> str:
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Passwords don't match")
        return v


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def email_format(cls, v: EmailStr) -> str:
        return normalize_email(v)


class ProfileUpdateRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    language: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_letters(cls, v: Optional[str]) -> Optional[str]:
        return _check_name(v) if v is not None else v

    @field_validator("language")
    @classmethod
    def known_language(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Language must be one of {', '.join(SUPPORTED_LANGUAGES)}")
        return v
