"""Convenience exports for request and response schemas."""

from __future__ import annotations

from .auth import LoginSchema, RegisterSchema, TokenResponseSchema
from .common import MessageSchema, PaginationQuerySchema, ValidationResult, validate_payload
from .user import (
    UserCreateSchema,
    UserEditSchema,
    UserListQuerySchema,
    UserListResponseSchema,
    UserSchema,
)

__all__ = [
    "LoginSchema",
    "RegisterSchema",
    "TokenResponseSchema",
    "MessageSchema",
    "PaginationQuerySchema",
    "ValidationResult",
    "validate_payload",
    "UserSchema",
    "UserCreateSchema",
    "UserEditSchema",
    "UserListQuerySchema",
    "UserListResponseSchema",
]
