"""Time- and popularity-weighted quality scoring.

Each rating contributes ``(helpful + clarity) / 2`` weighted by three factors:

- thumbs: Laplace-smoothed approval ratio ``(up + 1) / (up + down + 1)``
- time: linear ramp from 0 at the window edge to ~1 at "now"
- quantity: ``ln(1 + (up + down) / 2) + 1``, a diminishing boost for
  ratings people actually engaged with

A score is only published when the accumulated weight clears a minimum, so a
professor with two reviews from last spring doesn't get a confident number.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Iterable, Optional

from .models import Rating, Score

logger = logging.getLogger(__name__)

ALL_TIME_WINDOW_SECONDS = 157_680_000  # 5 years
YEAR_WINDOW_SECONDS = 31_536_000

ALL_TIME_MIN_WEIGHT = 8.0
YEAR_MIN_WEIGHT = 2.0


def thumbs_weight(rating: Rating) -> float:
    return (rating.thumbs_up + 1) / (rating.thumbs_up + rating.thumbs_down + 1)


def quantity_weight(rating: Rating) -> float:
    return math.log1p((rating.thumbs_up + rating.thumbs_down) / 2.0) + 1.0


def time_weight(timestamp: int, cutoff: int, window_seconds: int) -> float:
    # Not clamped: a rating dated after "now" (clock skew) weighs more than 1.
    return (timestamp - cutoff) / window_seconds


def weighted_score(
    ratings: Iterable[Rating],
    window_seconds: int,
    now: Optional[int] = None,
) -> tuple[float, float]:
    """Accumulate weighted quality over a trailing window.

    Args:
        ratings: Raw ratings, in any order.
        window_seconds: Length of the trailing window.
        now: Unix time to measure the window from. Defaults to the current time.

    Returns:
        ``(sum, weight)``; the published score is ``sum / weight``.
    """
    if now is None:
        now = int(time.time())
    cutoff = now - window_seconds

    total = 0.0
    weight = 0.0
    for r in ratings:
        ts = r.timestamp
        if ts < cutoff:
            continue

        sample_weight = thumbs_weight(r) * time_weight(ts, cutoff, window_seconds) * quantity_weight(r)
        total += r.quality * sample_weight
        weight += sample_weight

    return total, weight


def _publish(total: float, weight: float, min_weight: float) -> Optional[float]:
    if weight < min_weight:
        return None
    return total / weight


def compute_score(ratings: list[Rating], now: Optional[int] = None) -> Score:
    """Score a professor over both the all-time and the one-year window."""
    if now is None:
        now = int(time.time())

    total, weight = weighted_score(ratings, ALL_TIME_WINDOW_SECONDS, now)
    total_yr, weight_yr = weighted_score(ratings, YEAR_WINDOW_SECONDS, now)
    logger.debug(
        "Scored %d ratings: weight=%.3f weight_yr=%.3f", len(ratings), weight, weight_yr,
    )

    return Score(
        quality=_publish(total, weight, ALL_TIME_MIN_WEIGHT),
        quality_yr=_publish(total_yr, weight_yr, YEAR_MIN_WEIGHT),
    )
