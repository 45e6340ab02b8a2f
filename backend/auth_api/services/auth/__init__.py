from .dto import LoginIn, LoginOut
from .service import AuthService

__all__ = ["AuthService", "LoginIn", "LoginOut"]
