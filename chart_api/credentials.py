"""Caller identity for the HTTP layer.

The provider is handed to ``create_app`` and reached through a FastAPI dependency,
so handlers never read auth state from globals.
"""

from __future__ import annotations

from typing import Optional, Protocol

from fastapi import Request


class CredentialProvider(Protocol):
    def identify(self, request: Request) -> Optional[str]:
        """Return the caller's user name, or ``None`` for an anonymous caller."""
        ...


class HeaderCredentialProvider:
    def __init__(self, header: str = "X-User") -> None:
        self.header = header

    def identify(self, request: Request) -> Optional[str]:
        value = (request.headers.get(self.header) or "").strip()
        return value or None


class StaticCredentialProvider:
    def __init__(self, user: Optional[str] = None) -> None:
        self.user = user

    def identify(self, request: Request) -> Optional[str]:
        return self.user
