from .redis_refresh_token_store import RedisRefreshTokenStore
from .redis_user_cache import RedisUserCache

__all__ = ["RedisRefreshTokenStore", "RedisUserCache"]
