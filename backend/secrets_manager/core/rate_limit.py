"""
Rate limiting configuration.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from secrets_manager.core.config import settings

# Create limiter instance
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

# Format: "count/period" where period can be second(s), minute(s), hour(s), day(s)
AUTH_LIMIT = "5/minute"  # Login/register endpoints
