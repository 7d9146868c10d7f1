"""Template (de)serialization used only at storage edges (MySQL column, cache values)."""

from __future__ import annotations

import json
from typing import Any, Optional

import numpy as np

from .model import Template, TemplateEntry


class TemplateDecodeError(ValueError):
    pass


def encode_template(template: Template) -> str:
    return json.dumps([float(v) for v in np.asarray(template, dtype=np.float64).tolist()])


def decode_template(raw: Any) -> Optional[Template]:
    """Decode a stored template. Length is checked by the matcher, not here."""
    if raw is None or raw == "":
        return None
    try:
        values = json.loads(raw) if isinstance(raw, (str, bytes, bytearray)) else raw
        arr = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise TemplateDecodeError(str(e)) from e
    if arr.ndim != 1:
        raise TemplateDecodeError(f"expected a flat list, got shape {arr.shape}")
    arr.setflags(write=False)
    return arr


def encode_entry(entry: TemplateEntry) -> str:
    return json.dumps(
        {
            "employee_id": entry.employee_id,
            "name": entry.name,
            "national_id": entry.national_id,
            "template": encode_template(entry.template),
        }
    )


def decode_entry(raw: Any) -> TemplateEntry:
    try:
        data = json.loads(raw)
        return TemplateEntry(
            employee_id=int(data["employee_id"]),
            name=str(data["name"]),
            national_id=str(data.get("national_id") or ""),
            template=decode_template(data.get("template")),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise TemplateDecodeError(str(e)) from e
