from __future__ import annotations

import logging
import math
from typing import Iterable

import numpy as np

from ..core.constants import DEFAULT_MATCH_THRESHOLD, DEFAULT_VERIFY_THRESHOLD, TEMPLATE_LENGTH
from .model import MatchResult, Template, TemplateEntry, as_template, check_template

logger = logging.getLogger(__name__)


def euclidean_distance(a: Template, b: Template) -> float:
    return float(np.linalg.norm(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)))


def find_best_match(
    probe,
    candidates: Iterable[TemplateEntry],
    *,
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> MatchResult:
    """Nearest enrolled identity to ``probe`` under ``threshold``.

    ``distance`` is the smallest distance seen even when nothing clears the
    threshold. Ties go to the first candidate in iteration order. Candidates with
    malformed templates are skipped.
    """
    probe = as_template(probe)

    valid: list[TemplateEntry] = []
    for entry in candidates:
        problem = check_template(entry.template)
        if problem:
            logger.warning("Skipping template of employee %s: %s", entry.employee_id, problem)
            continue
        valid.append(entry)

    if not valid:
        return MatchResult(entry=None, distance=math.inf, threshold=threshold, compared=0)

    matrix = np.vstack([np.asarray(e.template, dtype=np.float64) for e in valid]).reshape(-1, TEMPLATE_LENGTH)
    distances = np.linalg.norm(matrix - probe, axis=1)
    idx = int(np.argmin(distances))
    best = float(distances[idx])

    if best < threshold:
        logger.debug("Best match employee=%s distance=%.4f threshold=%.2f", valid[idx].employee_id, best, threshold)
        return MatchResult(entry=valid[idx], distance=best, threshold=threshold, compared=len(valid))

    logger.debug("No match: best distance %.4f >= threshold %.2f over %d candidates", best, threshold, len(valid))
    return MatchResult(entry=None, distance=best, threshold=threshold, compared=len(valid))


def verify_template(probe, entry: TemplateEntry, *, threshold: float = DEFAULT_VERIFY_THRESHOLD) -> MatchResult:
    """1:1 check of a probe against one enrolled template (self-service punching)."""
    probe = as_template(probe)
    problem = check_template(entry.template)
    if problem:
        logger.error("Stored template of employee %s is corrupt: %s", entry.employee_id, problem)
        return MatchResult(entry=None, distance=math.inf, threshold=threshold, compared=0)

    distance = euclidean_distance(probe, entry.template)
    matched = entry if distance < threshold else None
    return MatchResult(entry=matched, distance=distance, threshold=threshold, compared=1)
