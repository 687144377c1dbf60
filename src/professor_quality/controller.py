"""Resolution-and-scoring controller.

Name -> RMP id resolution, the GraphQL token, and per-professor scores are all
memoized here for the life of the process. Upstream failures never escape:
every operation degrades to ``None`` or an empty list and logs a warning.
"""

from __future__ import annotations

import logging
from typing import Optional

from .core.cache import (
    IdentityIndex,
    ProfessorRecord,
    ProfessorRecordStore,
    TokenCache,
    normalize_name,
    parse_rmp_id,
)
from .core.clients.gateway import UpstreamError, UpstreamGateway
from .core.models import Rating
from .core.scoring import compute_score

logger = logging.getLogger(__name__)


class ProfessorController:
    """Shared by every request; owns the token, identity, and record caches."""

    def __init__(self, gateway: UpstreamGateway):
        self.gateway = gateway
        self.tokens = TokenCache()
        self.identities = IdentityIndex()
        self.records = ProfessorRecordStore()

    # ─── Token ───────────────────────────────────────────────────────────────

    async def graphql_token(self) -> Optional[str]:
        """Return the cached GraphQL token, fetching it on first use.

        Concurrent cold callers may each fetch; the last one to finish wins.
        """
        token = await self.tokens.get()
        if token is not None:
            return token

        try:
            token = await self.gateway.fetch_token()
        except UpstreamError as exc:
            logger.warning("RMP GraphQL token fetch failed: %s", exc)
            return None

        await self.tokens.set(token)
        logger.info("Cached RMP GraphQL token")
        return token

    # ─── Identity ────────────────────────────────────────────────────────────

    async def _candidates(self, name: str) -> Optional[list[ProfessorRecord]]:
        key = normalize_name(name)

        # Held across the search, so cold lookups run one at a time.
        async with self.identities.lock:
            candidate_ids = self.identities.lookup(key)
            if candidate_ids is None:
                try:
                    hits = await self.gateway.search(name)
                except UpstreamError as exc:
                    logger.warning("RMP search failed for %r: %s", name, exc)
                    return None

                candidate_ids = []
                for hit in hits:
                    rmp_id = parse_rmp_id(hit.id)
                    if rmp_id is None:
                        logger.debug("Skipping search hit with unparsable id %r", hit.id)
                        continue
                    await self.records.get_or_create(rmp_id, hit)
                    candidate_ids.append(rmp_id)

                self.identities.store(key, candidate_ids)
                logger.info(
                    "Resolved %r to %d candidate(s) (%d names, %d professors cached)",
                    key, len(candidate_ids), len(self.identities), len(self.records),
                )

        records = []
        for rmp_id in candidate_ids:
            record = await self.records.get(rmp_id)
            if record is not None:
                records.append(record)
        return records

    async def resolve(self, name: str) -> Optional[ProfessorRecord]:
        """Resolve a display name to its best-matching professor record."""
        records = await self._candidates(name)
        if not records:
            return None
        return records[0]

    async def professor_search(self, name: str) -> Optional[list[ProfessorRecord]]:
        """All candidates for ``name`` in upstream relevance order, or None on failure."""
        return await self._candidates(name)

    # ─── Ratings ─────────────────────────────────────────────────────────────

    async def _fetch_ratings(self, rmp_id: int, course: Optional[str]) -> Optional[list[Rating]]:
        token = await self.graphql_token()
        if token is None:
            return None

        try:
            return await self.gateway.fetch_ratings(rmp_id, course, token)
        except UpstreamError as exc:
            logger.warning("RMP ratings fetch failed for %d (course=%s): %s", rmp_id, course, exc)
            return None

    async def professor_overview(self, name: str) -> Optional[ProfessorRecord]:
        """Resolve ``name`` and make sure its record carries a score.

        The score is computed at most once per record: concurrent callers for
        the same professor queue on the record lock and the later ones find it
        already filled in.
        """
        record = await self.resolve(name)
        if record is None:
            return None

        async with record.lock:
            if record.score is not None:
                logger.debug("Score cache hit for %d", record.rmp_id)
                return record

            ratings = await self._fetch_ratings(record.rmp_id, None)
            if ratings is None:
                return None

            record.score = compute_score(ratings)
            logger.info(
                "Scored %d from %d ratings (quality=%s, quality_yr=%s)",
                record.rmp_id, len(ratings), record.score.quality, record.score.quality_yr,
            )

        return record

    async def professor_comments(self, name: str, course: Optional[str] = None) -> list[Rating]:
        """Raw ratings for ``name``, optionally for one course. Never cached."""
        record = await self.resolve(name)
        if record is None:
            return []

        ratings = await self._fetch_ratings(record.rmp_id, course)
        return ratings or []
