from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

import numpy as np

from ..core.constants import TEMPLATE_LENGTH
from ..core.exceptions import InvalidTemplateError

Template = np.ndarray


def check_template(values) -> Optional[str]:
    """Return the violated constraint for ``values`` or None if it is a valid template."""
    if values is None:
        return "template is required"
    try:
        arr = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError):
        return "template must be a sequence of numbers"
    if arr.ndim != 1:
        return f"template must be one-dimensional, got shape {arr.shape}"
    if arr.shape[0] != TEMPLATE_LENGTH:
        return f"template must have {TEMPLATE_LENGTH} values, got {arr.shape[0]}"
    if not np.all(np.isfinite(arr)):
        return "template contains non-finite values"
    return None


def as_template(values) -> Template:
    """Validate and convert to a read-only float64 vector of length 128."""
    problem = check_template(values)
    if problem:
        raise InvalidTemplateError(problem)
    arr = np.array(values, dtype=np.float64)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class TemplateEntry:
    """Projection of an enrolled identity held by the template cache."""

    employee_id: int
    name: str
    national_id: str
    template: Optional[Template] = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class MatchResult:
    entry: Optional[TemplateEntry]
    distance: float
    threshold: float
    compared: int = 0

    @property
    def matched(self) -> bool:
        return self.entry is not None

    @property
    def best_distance(self) -> Optional[float]:
        return None if math.isinf(self.distance) else round(self.distance, 4)


@dataclass(frozen=True)
class TemplateReadResult:
    entries: Sequence[TemplateEntry]
    source: str
    refresh_needed: bool


@dataclass(frozen=True)
class CacheStats:
    available: bool
    enrolled_count: int = 0
    last_sync: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "available": self.available,
            "enrolled_count": self.enrolled_count,
            "last_sync": self.last_sync.isoformat() if self.last_sync else None,
        }


@dataclass(frozen=True)
class EnrollmentResult:
    employee_id: int
    name: str
    national_id: str
