"""Pydantic data models: ratings, search hits, scores, and response shapes.

Both the HTTP routes and the MCP tools serialize through these models, so the
field names here are the public wire names.
"""

from __future__ import annotations

import html
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Rating(BaseModel):
    """A single review record as fetched from the ratings backend."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    helpful: int = Field(ge=0, le=5)
    clarity: int = Field(ge=0, le=5)
    difficulty: int = Field(ge=0, le=5)
    comment: str = ""
    class_name: str = Field("", alias="class")
    grade: str = ""
    attendance_mandatory: Optional[bool] = None
    date: datetime
    thumbs_up: int = Field(0, ge=0)
    thumbs_down: int = Field(0, ge=0)

    @property
    def quality(self) -> float:
        return (self.helpful + self.clarity) / 2.0

    @property
    def timestamp(self) -> int:
        return int(self.date.timestamp())


class ProfessorHit(BaseModel):
    """One professor entry from a name search, in upstream relevance order."""

    id: str = Field(description="Namespaced upstream id, e.g. 'teacher:42'")
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    department: str = ""
    score: Optional[float] = Field(None, description="The site's own average rating")


class Score(BaseModel):
    """Weighted quality over the all-time and one-year windows.

    ``None`` means there was not enough weight to publish a value, which is
    not the same thing as a quality of zero.
    """

    quality: Optional[float] = None
    quality_yr: Optional[float] = None


class ProfessorSummary(BaseModel):
    """Search listing entry."""

    rmp_id: int
    score: Optional[float] = None
    first_name: str
    last_name: str
    full_name: str
    department: str


class ProfessorOverview(BaseModel):
    """Overview payload, identity plus the cached weighted score."""

    rmp_id: int
    quality: Optional[float] = None
    quality_yr: Optional[float] = None
    first_name: str
    last_name: str
    full_name: str
    department: str


class Comment(BaseModel):
    """A rating reshaped for display."""

    model_config = ConfigDict(populate_by_name=True)

    class_name: str = Field(alias="class")
    comment: str
    grade: str
    attendance_mandatory: Optional[bool] = None
    quality: float
    difficulty: float
    date: datetime

    @classmethod
    def from_rating(cls, rating: Rating) -> "Comment":
        return cls(
            class_name=rating.class_name,
            comment=html.unescape(rating.comment),
            grade=rating.grade,
            attendance_mandatory=rating.attendance_mandatory,
            quality=rating.quality,
            difficulty=float(rating.difficulty),
            date=rating.date,
        )
