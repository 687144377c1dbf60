"""Upstream gateway interface.

The controller only depends on this protocol. The RMP implementation lives in
``rmp.py``; tests substitute an in-memory fake.
"""

from __future__ import annotations

from typing import Optional, Protocol

from ..models import ProfessorHit, Rating


class UpstreamError(Exception):
    """The upstream service was unreachable or returned something unparsable."""


class UpstreamGateway(Protocol):
    async def search(self, name: str) -> list[ProfessorHit]:
        ...

    async def fetch_ratings(
        self,
        professor_id: int,
        course: Optional[str],
        token: str,
    ) -> list[Rating]:
        ...

    async def fetch_token(self) -> str:
        ...
