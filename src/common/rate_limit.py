# src/common/rate_limit.py

from slowapi import Limiter
from slowapi.util import get_remote_address

from src.common.config import settings

# Every route shares the default limit; AI endpoints are the expensive ones.
# Set RATE_LIMIT_STORAGE_URI (e.g. redis://localhost:6379) when running several workers.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
)
