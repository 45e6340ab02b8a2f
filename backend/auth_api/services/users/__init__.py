from .dto import UserCreateIn, UserEditIn, UserListIn, UserListOut
from .service import UserService

__all__ = ["UserCreateIn", "UserEditIn", "UserListIn", "UserListOut", "UserService"]
