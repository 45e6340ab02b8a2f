from auth_api.models.email_confirmation import EmailConfirmation
from auth_api.models.refresh_token import MAX_USER_AGENT_LENGTH, RefreshToken
from auth_api.models.user import Role, User, UserRole

__all__ = [
    "EmailConfirmation",
    "MAX_USER_AGENT_LENGTH",
    "RefreshToken",
    "Role",
    "User",
    "UserRole",
]
