from .common import has_role, is_owner

__all__ = ["has_role", "is_owner"]
