from .dto import RegisterIn
from .service import IdentityService

__all__ = ["IdentityService", "RegisterIn"]
