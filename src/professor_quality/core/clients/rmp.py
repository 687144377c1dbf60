"""RateMyProfessors client.

Three private endpoints, none of them documented:
- Solr ``select`` for name search (no auth)
- the public home page, scraped for the GraphQL basic-auth token
- ``/graphql`` for the ratings list (needs the token)

Every failure, whether network, HTTP status or payload shape, surfaces as
``UpstreamError``.
"""

from __future__ import annotations

import base64
import logging
import os
import re
from datetime import datetime
from typing import Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from ..models import ProfessorHit, Rating
from .gateway import UpstreamError

logger = logging.getLogger(__name__)

RMP_BASE_URL = "https://www.ratemyprofessors.com"
RMP_GRAPHQL_URL = f"{RMP_BASE_URL}/graphql"
SOLR_SELECT_URL = "https://solr-aws-elb-production.ratemyprofessors.com/solr/rmp/select/"

SEARCH_LIMIT = 20
RATINGS_LIMIT = 1000

TEACHER_GROUP = "TEACHER"

HEADERS = {
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 Safari/537.36",
    "Origin": RMP_BASE_URL,
    "Referer": f"{RMP_BASE_URL}/",
}

TOKEN_PATTERN = re.compile(r'"REACT_APP_GRAPHQL_AUTH":"([^"]+)"')

RATING_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z UTC"

RATINGS_QUERY = """
query RatingsListQuery($id: ID!, $count: Int!, $courseFilter: String) {
  node(id: $id) {
    ... on Teacher {
      ratings(first: $count, courseFilter: $courseFilter) {
        edges {
          node {
            class
            comment
            date
            grade
            helpfulRating
            clarityRating
            difficultyRating
            attendanceMandatory
            thumbsUpTotal
            thumbsDownTotal
          }
        }
      }
    }
  }
}
"""

_ATTENDANCE = {
    "mandatory": True,
    "non mandatory": False,
}


def _timeout(read: float = 20.0) -> httpx.Timeout:
    return httpx.Timeout(read, connect=10.0)


# ─── Wire shapes ─────────────────────────────────────────────────────────────


class _SolrDoc(BaseModel):
    id: str
    first_name: str = Field("", alias="teacherfirstname_t")
    last_name: str = Field("", alias="teacherlastname_t")
    full_name: str = Field("", alias="teacherfullname_s")
    department: str = Field("", alias="teacherdepartment_s")
    score: Optional[float] = Field(None, alias="averageratingscore_rf")


class _SolrDocList(BaseModel):
    docs: list[_SolrDoc]


class _SolrGroup(BaseModel):
    group_value: Optional[str] = Field(None, alias="groupValue")
    doclist: _SolrDocList


class _SolrGroupSet(BaseModel):
    groups: list[_SolrGroup]


class _SolrGrouped(BaseModel):
    content_type: _SolrGroupSet = Field(alias="content_type_s")


class _SolrResponse(BaseModel):
    grouped: _SolrGrouped


class _RatingNode(BaseModel):
    class_name: str = Field("", alias="class")
    comment: str = ""
    date: str
    grade: Optional[str] = None
    helpful: int = Field(alias="helpfulRating")
    clarity: int = Field(alias="clarityRating")
    difficulty: int = Field(alias="difficultyRating")
    attendance: Optional[str] = Field(None, alias="attendanceMandatory")
    thumbs_up: int = Field(0, alias="thumbsUpTotal")
    thumbs_down: int = Field(0, alias="thumbsDownTotal")


# ─── Parsers ─────────────────────────────────────────────────────────────────


def parse_attendance(value: Optional[str]) -> Optional[bool]:
    """Map RMP's attendance string onto mandatory / not mandatory / unknown."""
    if not value:
        return None
    return _ATTENDANCE.get(value.strip().lower())


def parse_rating_date(value: str) -> datetime:
    """Parse RMP's ``2019-05-03 17:24:56 +0000 UTC`` timestamp format."""
    return datetime.strptime(value, RATING_DATE_FORMAT)


def teacher_node_id(professor_id: int) -> str:
    """GraphQL global id for a teacher, e.g. ``VGVhY2hlci00Mg==`` for 42."""
    return base64.b64encode(f"Teacher-{professor_id}".encode()).decode()


def parse_search_response(data: dict) -> list[ProfessorHit]:
    response = _SolrResponse.model_validate(data)
    hits = []
    for group in response.grouped.content_type.groups:
        if (group.group_value or "").upper() != TEACHER_GROUP:
            continue
        for doc in group.doclist.docs:
            hits.append(ProfessorHit(
                id=doc.id,
                first_name=doc.first_name,
                last_name=doc.last_name,
                full_name=doc.full_name,
                department=doc.department,
                score=doc.score,
            ))
    return hits


def parse_ratings_response(data: dict) -> list[Rating]:
    if data.get("errors"):
        raise UpstreamError(f"GraphQL errors: {data['errors']}")

    node = (data.get("data") or {}).get("node")
    if node is None:
        raise UpstreamError("Teacher node missing from ratings response")

    edges = node["ratings"]["edges"]
    if len(edges) >= RATINGS_LIMIT:
        # Single page only; anything past the limit is not fetched.
        logger.warning("Ratings response hit the %d-rating page limit; older ratings are missing", RATINGS_LIMIT)

    ratings = []
    for edge in edges:
        raw = _RatingNode.model_validate(edge["node"])
        ratings.append(Rating(
            helpful=raw.helpful,
            clarity=raw.clarity,
            difficulty=raw.difficulty,
            comment=raw.comment,
            class_name=raw.class_name,
            grade=raw.grade or "",
            attendance_mandatory=parse_attendance(raw.attendance),
            date=parse_rating_date(raw.date),
            thumbs_up=raw.thumbs_up,
            thumbs_down=raw.thumbs_down,
        ))
    return ratings


def parse_token(page: str) -> str:
    match = TOKEN_PATTERN.search(page)
    if match is None:
        raise UpstreamError("GraphQL auth token not found on RMP page")
    return match.group(1)


# ─── Requests ────────────────────────────────────────────────────────────────


async def search_professors(name: str, school_id: Optional[str] = None) -> list[ProfessorHit]:
    """Search RMP's Solr index for teachers matching ``name``.

    Hits come back in Solr relevance order, grouped by content type.
    """
    params = {
        "q": name,
        "defType": "edismax",
        "qf": "teacherfirstname_t^2000 teacherlastname_t^2000 teacherfullname_t^2000 autosuggest",
        "fl": "id teacherfirstname_t teacherlastname_t teacherfullname_s teacherdepartment_s averageratingscore_rf",
        "group": "true",
        "group.field": "content_type_s",
        "group.limit": str(SEARCH_LIMIT),
        "rows": str(SEARCH_LIMIT),
        "wt": "json",
    }
    if school_id:
        params["fq"] = f"schoolid_s:{school_id}"

    try:
        async with httpx.AsyncClient(timeout=_timeout(), headers=HEADERS) as client:
            response = await client.get(SOLR_SELECT_URL, params=params)
            response.raise_for_status()
            data = response.json()
        return parse_search_response(data)
    except (httpx.HTTPError, ValidationError, ValueError, KeyError, TypeError) as exc:
        raise UpstreamError(f"RMP search failed for {name!r}: {exc}") from exc


async def fetch_graphql_token() -> str:
    """Scrape the GraphQL basic-auth token out of the RMP home page."""
    try:
        async with httpx.AsyncClient(timeout=_timeout(), headers=HEADERS, follow_redirects=True) as client:
            response = await client.get(RMP_BASE_URL)
            response.raise_for_status()
            page = response.text
    except httpx.HTTPError as exc:
        raise UpstreamError(f"RMP token page fetch failed: {exc}") from exc
    return parse_token(page)


async def fetch_ratings(professor_id: int, course: Optional[str], token: str) -> list[Rating]:
    """Fetch every rating for a professor, optionally limited to one course code.

    Args:
        professor_id: Numeric RMP teacher id.
        course: Course code to filter on (e.g. 'CS2110'), or None for all.
        token: GraphQL basic-auth token from ``fetch_graphql_token``.
    """
    payload = {
        "query": RATINGS_QUERY,
        "variables": {
            "id": teacher_node_id(professor_id),
            "count": RATINGS_LIMIT,
            "courseFilter": course,
        },
    }
    headers = {**HEADERS, "Authorization": f"Basic {token}"}

    try:
        async with httpx.AsyncClient(timeout=_timeout(read=30.0), headers=headers) as client:
            response = await client.post(RMP_GRAPHQL_URL, json=payload)
            response.raise_for_status()
            data = response.json()
        return parse_ratings_response(data)
    except (httpx.HTTPError, ValidationError, ValueError, KeyError, TypeError) as exc:
        raise UpstreamError(f"RMP ratings fetch failed for teacher {professor_id}: {exc}") from exc


class RMPGateway:
    """``UpstreamGateway`` backed by the live RMP endpoints."""

    def __init__(self, school_id: Optional[str] = None):
        self.school_id = school_id if school_id is not None else os.environ.get("RMP_SCHOOL_ID") or None

    async def search(self, name: str) -> list[ProfessorHit]:
        return await search_professors(name, self.school_id)

    async def fetch_ratings(self, professor_id: int, course: Optional[str], token: str) -> list[Rating]:
        return await fetch_ratings(professor_id, course, token)

    async def fetch_token(self) -> str:
        return await fetch_graphql_token()
