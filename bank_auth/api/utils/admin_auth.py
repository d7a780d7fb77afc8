"""
Admin API key check for maintenance endpoints such as the expired-session
sweep. These are called by schedulers, never with a user session.
"""

import hmac
import logging
from typing import Optional

from fastapi import Header, Request, status

from bank_auth.api.error import ClientError
from bank_auth.api.utils.client import client_ip
from bank_auth.libs.result import Error
from config import ApplicationConfig

logger = logging.getLogger(__name__)


def _unauthorized(code: str, message: str) -> ClientError:
    return ClientError(Error(code, message), status_code=status.HTTP_401_UNAUTHORIZED)


async def verify_admin_api_key(
    request: Request, x_admin_api_key: Optional[str] = Header(None)
) -> bool:
    """Dependency: 401 unless X-Admin-API-Key matches ADMIN_API_KEY"""
    if not x_admin_api_key:
        raise _unauthorized("UNAUTHORIZED", "Admin API key required")

    if not hmac.compare_digest(
        x_admin_api_key.encode(), str(ApplicationConfig.ADMIN_API_KEY).encode()
    ):
        logger.warning("Rejected admin API key from %s", client_ip(request))
        raise _unauthorized("INVALID_API_KEY", "Invalid admin API key")

    return True
