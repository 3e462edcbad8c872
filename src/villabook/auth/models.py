# Auth models — users and token payloads exchanged with the booking API.
# Created: 2026-10-19

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Role(StrEnum):
    GUEST = "GUEST"
    HOST = "HOST"
    ADMIN = "ADMIN"
    USER = "USER"


class _CamelModel(BaseModel):
    """Accepts the API's camelCase keys and Python field names alike."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class User(_CamelModel):
    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    role: Role = Role.GUEST
    is_active: bool = True
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class TokenPair(_CamelModel):
    """Payload of login, register and refresh responses."""

    access_token: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)
    user: User | None = None


class LoginData(_CamelModel):
    email: str
    password: str


class RegisterData(_CamelModel):
    email: str
    password: str
    first_name: str
    last_name: str
