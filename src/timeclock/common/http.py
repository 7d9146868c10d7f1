from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, request

from ..core.exceptions import EmployeeNotFoundError, StoreUnavailableError, ValidationError

logger = logging.getLogger(__name__)


def json_errors(view):
    """Render domain errors as JSON: validation 400, unknown employee 404, store down 503."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return jsonify({"success": False, "error": str(e)}), 400
        except EmployeeNotFoundError as e:
            return jsonify({"success": False, "error": str(e)}), 404
        except StoreUnavailableError as e:
            logger.error("Store unavailable during %s %s: %s", request.method, request.path, e)
            return jsonify({"success": False, "error": "Service temporarily unavailable", "retryable": True}), 503

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def optional_float(data: dict, key: str) -> float | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be a number") from None


def optional_int(data: dict, key: str) -> int | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an integer") from None
