"""
Request metadata: client address and a coarse description of the device.
"""

import ipaddress
import logging
from typing import Optional

from fastapi import Request
from user_agents import parse as parse_user_agent

from config import ApplicationConfig

logger = logging.getLogger(__name__)


def _is_trusted_proxy(host: str) -> bool:
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    for proxy in ApplicationConfig.TRUSTED_PROXIES:
        try:
            if address in ipaddress.ip_network(proxy, strict=False):
                return True
        except ValueError:
            logger.warning("Ignoring invalid TRUSTED_PROXIES entry %r", proxy)
    return False


def client_ip(request: Request) -> str:
    """
    Address of the caller.

    X-Forwarded-For is only believed when the direct peer is listed in
    TRUSTED_PROXIES.
    """
    if request.client is None:
        return "unknown"

    peer = request.client.host
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and _is_trusted_proxy(peer):
        return forwarded.split(",")[0].strip()
    return peer


def describe_device(user_agent: Optional[str]) -> dict:
    if not user_agent:
        return {"browser": "unknown", "os": "unknown", "is_mobile": False}

    ua = parse_user_agent(user_agent)
    return {
        "browser": ua.browser.family or "unknown",
        "os": ua.os.family or "unknown",
        "is_mobile": ua.is_mobile or ua.is_tablet,
    }
