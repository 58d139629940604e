"""
Client identity helpers for view attribution.

Raw IP addresses never leave this module: callers only ever see the salted
SHA-256 hash.
"""

from __future__ import annotations

import hashlib
import json

from fastapi import Request
from user_agents import parse as parse_user_agent

from .config import settings


def get_client_ip(request: Request) -> str:
    """
    Extract client IP from request, respecting proxy headers.

    Priority: Cloudflare > X-Forwarded-For > X-Real-IP > Direct
    """
    # Cloudflare
    if cf_ip := request.headers.get("CF-Connecting-IP"):
        return cf_ip.strip()

    # X-Forwarded-For (take first = original client)
    if forwarded := request.headers.get("X-Forwarded-For"):
        return forwarded.split(",")[0].strip()

    # Nginx
    if real_ip := request.headers.get("X-Real-IP"):
        return real_ip.strip()

    if request.client:
        return request.client.host

    return "unknown"


def hash_ip(ip: str) -> str:
    """One-way hash of a client IP."""
    return hashlib.sha256(f"{settings.ip_hash_salt}{ip}".encode()).hexdigest()


def get_ip_hash(request: Request) -> str:
    return hash_ip(get_client_ip(request))


def _family(name: str | None, version: str | None) -> str:
    family = name if name and name != "Other" else "Unknown"
    return f"{family} {version or ''}".strip()


def describe_user_agent(raw: str) -> dict[str, str]:
    """
    Structured summary of a User-Agent header.

    Devices that are neither phones nor tablets count as "desktop".
    """
    agent = parse_user_agent(raw)
    if agent.is_mobile:
        device = "mobile"
    elif agent.is_tablet:
        device = "tablet"
    else:
        device = "desktop"
    return {
        "browser": _family(agent.browser.family, agent.browser.version_string),
        "os": _family(agent.os.family, agent.os.version_string),
        "device": device,
        "raw": raw,
    }


def get_user_agent(request: Request) -> str:
    """User-Agent as a JSON object with browser, os, device and raw keys."""
    return json.dumps(describe_user_agent(request.headers.get("User-Agent", "")))
