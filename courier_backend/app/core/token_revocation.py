"""
Token revocation checks backed by Redis.

The identity service blacklists tokens (logout) and whole users (blocked
riders) in Redis; every authenticated request consults these keys.
"""

import logging
from courier_backend.app.core.redis_client import get_redis

logger = logging.getLogger(__name__)

# Redis key prefixes shared with the identity service
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"
USER_TOKENS_PREFIX = "user:tokens:"


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.

    Fails open when Redis is unreachable: the user's active flag is still
    checked against the database afterwards.
    """
    redis = await get_redis()
    try:
        return await redis.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}") > 0
    except Exception:
        logger.warning("Token revocation lookup failed", exc_info=True)
        return False


async def are_user_tokens_revoked(user_id: int) -> bool:
    """Check if all tokens for a user have been revoked (user blocked)."""
    redis = await get_redis()
    try:
        return await redis.exists(f"{USER_TOKENS_PREFIX}{user_id}:revoked") > 0
    except Exception:
        logger.warning("User revocation lookup failed for user %s", user_id, exc_info=True)
        return False
