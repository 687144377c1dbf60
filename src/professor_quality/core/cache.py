"""In-memory caches owned by the controller.

Nothing here survives a restart and nothing expires: a cached token, name
lookup, or professor score stays put for the life of the process.

Each structure has its own ``asyncio.Lock``; professor records also carry one
each, which serializes score computation per professor while letting distinct
professors be scored in parallel.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from .models import ProfessorHit, ProfessorOverview, ProfessorSummary, Score


TEACHER_ID_PREFIX = "teacher:"
MAX_RMP_ID = 2**32 - 1


def parse_rmp_id(raw_id: str) -> Optional[int]:
    """Extract the numeric id from a teacher id like ``teacher:42``.

    Ids from any other namespace (``school:1077``) are rejected, as are values
    that don't fit in an unsigned 32-bit integer.
    """
    if not raw_id.startswith(TEACHER_ID_PREFIX):
        return None
    suffix = raw_id[len(TEACHER_ID_PREFIX):]
    if not (suffix.isascii() and suffix.isdigit()):
        return None
    rmp_id = int(suffix)
    if rmp_id > MAX_RMP_ID:
        return None
    return rmp_id


def normalize_name(name: str) -> str:
    return name.lower()


class TokenCache:
    """A single optional GraphQL token."""

    def __init__(self):
        self._token: Optional[str] = None
        self._lock = asyncio.Lock()

    async def get(self) -> Optional[str]:
        async with self._lock:
            return self._token

    async def set(self, token: str) -> None:
        async with self._lock:
            self._token = token


class ProfessorRecord:
    """A professor shared across requests; ``score`` is filled in lazily.

    Hold ``lock`` while reading-then-writing ``score``.
    """

    def __init__(
        self,
        rmp_id: int,
        first_name: str = "",
        last_name: str = "",
        full_name: str = "",
        department: str = "",
        rating_average: Optional[float] = None,
    ):
        self.rmp_id = rmp_id
        self.first_name = first_name
        self.last_name = last_name
        self.full_name = full_name
        self.department = department
        self.rating_average = rating_average
        self.score: Optional[Score] = None
        self.lock = asyncio.Lock()

    @classmethod
    def from_hit(cls, rmp_id: int, hit: ProfessorHit) -> "ProfessorRecord":
        return cls(
            rmp_id=rmp_id,
            first_name=hit.first_name,
            last_name=hit.last_name,
            full_name=hit.full_name,
            department=hit.department,
            rating_average=hit.score,
        )

    def to_overview(self) -> ProfessorOverview:
        score = self.score or Score()
        return ProfessorOverview(
            rmp_id=self.rmp_id,
            quality=score.quality,
            quality_yr=score.quality_yr,
            first_name=self.first_name,
            last_name=self.last_name,
            full_name=self.full_name,
            department=self.department,
        )

    def to_summary(self) -> ProfessorSummary:
        return ProfessorSummary(
            rmp_id=self.rmp_id,
            score=self.rating_average,
            first_name=self.first_name,
            last_name=self.last_name,
            full_name=self.full_name,
            department=self.department,
        )

    def __repr__(self) -> str:
        return f"ProfessorRecord(rmp_id={self.rmp_id}, full_name={self.full_name!r}, scored={self.score is not None})"


class ProfessorRecordStore:
    """rmp_id -> ProfessorRecord. The first write for an id wins."""

    def __init__(self):
        self._records: dict[int, ProfessorRecord] = {}
        self._lock = asyncio.Lock()

    async def get(self, rmp_id: int) -> Optional[ProfessorRecord]:
        async with self._lock:
            return self._records.get(rmp_id)

    async def get_or_create(self, rmp_id: int, hit: ProfessorHit) -> ProfessorRecord:
        async with self._lock:
            record = self._records.get(rmp_id)
            if record is None:
                record = ProfessorRecord.from_hit(rmp_id, hit)
                self._records[rmp_id] = record
            return record

    def __len__(self) -> int:
        return len(self._records)


class IdentityIndex:
    """Lower-cased name -> ordered candidate ids, first entry canonical.

    Entries are written once and never refreshed. ``lock`` is exposed so the
    resolver can hold it across the upstream search for a cold name.
    """

    def __init__(self):
        self._entries: dict[str, list[int]] = {}
        self.lock = asyncio.Lock()

    def lookup(self, key: str) -> Optional[list[int]]:
        return self._entries.get(key)

    def store(self, key: str, candidates: list[int]) -> None:
        self._entries[key] = list(candidates)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
