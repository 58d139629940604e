"""Tests that each package's public surface resolves."""

from __future__ import annotations

import importlib

import pytest


PACKAGES = [
    "app.api",
    "app.cache",
    "app.collectors",
    "app.core",
    "app.database",
    "app.domain",
    "app.schemas",
]


class TestPublicExports:
    @pytest.mark.parametrize("package", PACKAGES)
    def test_all_names_resolve(self, package):
        module = importlib.import_module(package)

        missing = [name for name in module.__all__ if not hasattr(module, name)]
        assert missing == []

    def test_only_raised_errors_are_exported(self):
        import app.core as core

        errors = {name for name in core.__all__ if name.endswith("Error")}
        assert errors == {
            "AuthenticationError",
            "AuthorizationError",
            "ExternalServiceError",
            "NotFoundError",
            "ValidationError",
        }
