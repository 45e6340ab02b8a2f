from .dto import TokenPairOut
from .service import TokenIssuer, normalize_device

__all__ = ["TokenIssuer", "TokenPairOut", "normalize_device"]
