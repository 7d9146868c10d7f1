import math

import numpy as np
import pytest

from timeclock.biometrics.matcher import find_best_match, verify_template
from timeclock.biometrics.model import TemplateEntry
from timeclock.core.exceptions import InvalidTemplateError


def _entry(employee_id: int, template) -> TemplateEntry:
    return TemplateEntry(employee_id=employee_id, name=f"Employee {employee_id}", national_id=str(employee_id), template=template)


def _unit(index: int, length: float) -> np.ndarray:
    v = np.zeros(128)
    v[index] = length
    return v


def test_returns_single_candidate_below_threshold(template_factory, capture):
    alice = template_factory(1)
    candidates = [_entry(1, alice), _entry(2, template_factory(2)), _entry(3, template_factory(3))]

    result = find_best_match(capture(alice), candidates, threshold=0.6)

    assert result.matched
    assert result.entry.employee_id == 1
    assert result.distance < 0.1
    assert result.compared == 3


def test_no_match_when_minimum_equals_threshold():
    probe = np.zeros(128)
    result = find_best_match(probe, [_entry(1, _unit(0, 0.5)), _entry(2, _unit(1, 0.9))], threshold=0.5)

    assert result.entry is None
    assert result.distance == 0.5
    assert result.best_distance == 0.5


def test_no_match_still_reports_best_distance(template_factory):
    result = find_best_match(template_factory(10), [_entry(1, template_factory(11))], threshold=0.6)

    assert not result.matched
    assert result.distance > 0.6
    assert result.threshold == 0.6


def test_tie_goes_to_first_candidate():
    probe = np.zeros(128)
    result = find_best_match(probe, [_entry(7, _unit(0, 0.2)), _entry(3, _unit(1, 0.2))])

    assert result.entry.employee_id == 7


@pytest.mark.parametrize("length", [0, 127, 129])
def test_probe_of_wrong_length_is_rejected_before_reading_candidates(length):
    def candidates():
        raise AssertionError("candidates must not be read")
        yield  # pragma: no cover

    with pytest.raises(InvalidTemplateError) as exc:
        find_best_match([0.1] * length, candidates())

    assert "128" in exc.value.constraint


def test_probe_with_nan_is_rejected():
    probe = np.zeros(128)
    probe[5] = np.nan
    with pytest.raises(InvalidTemplateError):
        find_best_match(probe, [])


def test_malformed_candidates_are_skipped(template_factory, capture):
    bob = template_factory(5)
    candidates = [
        _entry(1, None),
        _entry(2, [0.1] * 64),
        _entry(3, np.full(128, np.inf)),
        _entry(4, bob),
    ]

    result = find_best_match(capture(bob), candidates)

    assert result.entry.employee_id == 4
    assert result.compared == 1


def test_no_candidates_reports_infinite_distance():
    result = find_best_match(np.zeros(128), [])

    assert result.entry is None
    assert math.isinf(result.distance)
    assert result.best_distance is None


def test_verify_uses_stricter_threshold():
    stored = _entry(1, np.zeros(128))

    assert verify_template(_unit(0, 0.45), stored, threshold=0.5).matched
    assert not verify_template(_unit(0, 0.55), stored, threshold=0.5).matched


def test_verify_against_corrupt_stored_template_never_matches():
    result = verify_template(np.zeros(128), _entry(1, [1.0, 2.0]))

    assert not result.matched
    assert math.isinf(result.distance)
