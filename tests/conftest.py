# tests/conftest.py
"""
Pytest configuration and fixtures.
Adds src to sys.path so `import professor_quality` works without an install,
and provides an in-memory upstream gateway that counts its calls.
"""

import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest

project_root = Path(__file__).parent.parent
src_root = project_root / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from professor_quality.core.clients.gateway import UpstreamError  # noqa: E402
from professor_quality.core.models import ProfessorHit, Rating  # noqa: E402


def make_rating(
    days_ago: float = 0,
    helpful: int = 4,
    clarity: int = 4,
    difficulty: int = 3,
    thumbs_up: int = 0,
    thumbs_down: int = 0,
    class_name: str = "CS101",
    comment: str = "Good lecturer.",
    now: Optional[datetime] = None,
    **kwargs,
) -> Rating:
    now = now or datetime.now(timezone.utc)
    return Rating(
        helpful=helpful,
        clarity=clarity,
        difficulty=difficulty,
        comment=comment,
        class_name=class_name,
        grade=kwargs.pop("grade", "A"),
        attendance_mandatory=kwargs.pop("attendance_mandatory", None),
        date=(now - timedelta(days=days_ago)).replace(microsecond=0),
        thumbs_up=thumbs_up,
        thumbs_down=thumbs_down,
    )


def make_hit(rmp_id, first_name: str = "Jane", last_name: str = "Doe", department: str = "Computer Science") -> ProfessorHit:
    return ProfessorHit(
        id=f"teacher:{rmp_id}",
        first_name=first_name,
        last_name=last_name,
        full_name=f"{first_name} {last_name}",
        department=department,
        score=4.2,
    )


class FakeGateway:
    """In-memory UpstreamGateway with call counters and a tiny I/O delay."""

    def __init__(self, hits=None, ratings=None, token: str = "dGVzdDp0ZXN0", delay: float = 0.01):
        self.hits: dict[str, list[ProfessorHit]] = hits or {}
        self.ratings: dict[int, list[Rating]] = ratings or {}
        self.token = token
        self.delay = delay
        self.fail_search = False
        self.fail_ratings = False
        self.fail_token = False
        self.search_calls: list[str] = []
        self.ratings_calls: list[tuple] = []
        self.token_calls = 0

    async def search(self, name: str) -> list[ProfessorHit]:
        self.search_calls.append(name)
        await asyncio.sleep(self.delay)
        if self.fail_search:
            raise UpstreamError("search unavailable")
        return list(self.hits.get(name.lower(), []))

    async def fetch_ratings(self, professor_id: int, course: Optional[str], token: str) -> list[Rating]:
        self.ratings_calls.append((professor_id, course, token))
        await asyncio.sleep(self.delay)
        if self.fail_ratings:
            raise UpstreamError("ratings unavailable")
        ratings = self.ratings.get(professor_id, [])
        if course is not None:
            ratings = [r for r in ratings if r.class_name == course]
        return list(ratings)

    async def fetch_token(self) -> str:
        self.token_calls += 1
        await asyncio.sleep(self.delay)
        if self.fail_token:
            raise UpstreamError("token page unavailable")
        return self.token


@pytest.fixture
def gateway():
    recent = [make_rating(days_ago=d, thumbs_up=2) for d in (5, 15, 30, 45, 60, 90)]
    return FakeGateway(
        hits={"jane doe": [make_hit(42), make_hit(7, first_name="Janet")]},
        ratings={42: recent, 7: []},
    )
