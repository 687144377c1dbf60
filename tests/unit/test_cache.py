from __future__ import annotations

import pytest

from conftest import make_hit
from professor_quality.core.cache import (
    IdentityIndex,
    ProfessorRecord,
    ProfessorRecordStore,
    TokenCache,
    normalize_name,
    parse_rmp_id,
)
from professor_quality.core.models import Score


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("teacher:42", 42),
        ("teacher:0", 0),
        ("teacher:", None),
        ("teacher:-3", None),
        ("teacher:12abc", None),
        ("teacher:４２", None),
        ("school:1234", None),
        ("1234", None),
        ("teacher:4294967295", 4294967295),
        ("teacher:4294967296", None),
    ],
)
def test_parse_rmp_id(raw, expected):
    assert parse_rmp_id(raw) == expected


def test_normalize_name_is_case_insensitive():
    assert normalize_name("Jane Doe") == normalize_name("jane doe") == normalize_name("JANE DOE")


@pytest.mark.asyncio
async def test_token_cache_starts_empty():
    tokens = TokenCache()
    assert await tokens.get() is None
    await tokens.set("abc")
    assert await tokens.get() == "abc"


@pytest.mark.asyncio
async def test_record_store_first_write_wins():
    store = ProfessorRecordStore()
    first = await store.get_or_create(42, make_hit(42, department="Math"))
    first.score = Score(quality=3.5)

    second = await store.get_or_create(42, make_hit(42, department="Physics"))
    assert second is first
    assert second.department == "Math"
    assert second.score == Score(quality=3.5)
    assert len(store) == 1


@pytest.mark.asyncio
async def test_record_store_get_missing():
    store = ProfessorRecordStore()
    assert await store.get(1) is None


def test_record_overview_without_score():
    record = ProfessorRecord.from_hit(42, make_hit(42))
    overview = record.to_overview()
    assert overview.rmp_id == 42
    assert overview.quality is None
    assert overview.quality_yr is None
    assert overview.full_name == "Jane Doe"
    assert record.to_summary().score == 4.2


def test_identity_index_stores_a_copy():
    index = IdentityIndex()
    candidates = [3, 1, 2]
    index.store("jane doe", candidates)
    candidates.append(9)
    assert index.lookup("jane doe") == [3, 1, 2]
    assert "jane doe" in index
    assert index.lookup("john roe") is None
