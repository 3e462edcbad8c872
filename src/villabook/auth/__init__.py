"""Credentials, auth models and the signed-in session."""

from villabook.auth.credentials import (
    CredentialStorage,
    CredentialStore,
    MemoryCredentialStore,
)
from villabook.auth.models import LoginData, RegisterData, Role, TokenPair, User

__all__ = [
    "CredentialStorage",
    "CredentialStore",
    "LoginData",
    "MemoryCredentialStore",
    "RegisterData",
    "Role",
    "TokenPair",
    "User",
]
