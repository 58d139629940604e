"""API module with routers and dependencies."""

from .app import create_api_app
from .dependencies import (
    Viewer,
    get_viewer,
    require_admin,
)


__all__ = [
    "create_api_app",
    "Viewer",
    "get_viewer",
    "require_admin",
]
