"""Core infrastructure: settings, identity, logging, exceptions."""

from .client_identity import describe_user_agent, get_client_ip, get_ip_hash, get_user_agent, hash_ip
from .config import settings
from .exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from .security import TokenData, create_access_token, decode_access_token


__all__ = [
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "ExternalServiceError",
    "NotFoundError",
    "TokenData",
    "ValidationError",
    "create_access_token",
    "decode_access_token",
    "describe_user_agent",
    "get_client_ip",
    "get_ip_hash",
    "get_user_agent",
    "hash_ip",
    "settings",
]
