from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.http import json_body, json_errors, optional_float, optional_int
from ..container import Container
from ..core.exceptions import ValidationError
from .model import OfflinePunch, PunchOutcome


def _outcome_response(outcome: PunchOutcome):
    payload = {"success": outcome.accepted, **outcome.to_dict()}
    return jsonify(payload), 201 if outcome.accepted else 200


def _location(data: dict) -> dict:
    return {
        "department_id": optional_int(data, "department_id"),
        "latitude": optional_float(data, "latitude"),
        "longitude": optional_float(data, "longitude"),
    }


def _offline_item(raw) -> OfflinePunch:
    if not isinstance(raw, dict):
        raise ValidationError("Each queued punch must be a JSON object")
    timestamp = raw.get("timestamp")
    if not timestamp:
        raise ValidationError("Each queued punch needs a timestamp")
    try:
        when = parse_iso_datetime(str(timestamp))
    except ValueError:
        raise ValidationError(f"Invalid timestamp: {timestamp!r}") from None
    client_id = raw.get("id")
    return OfflinePunch(
        timestamp=when,
        template=raw.get("template"),
        client_id=str(client_id) if client_id is not None else None,
        **_location(raw),
    )


def register(app: Flask, container: Container) -> None:
    service = container.punch_service

    @app.route("/api/punches/face", methods=["POST"], endpoint="punch_face")
    @json_errors
    def punch_face():
        data = json_body()
        outcome = service.identify_and_punch(data.get("template"), **_location(data))
        return _outcome_response(outcome)

    @app.route("/api/punches/credential", methods=["POST"], endpoint="punch_credential")
    @json_errors
    def punch_credential():
        data = json_body()
        outcome = service.punch_by_credential(str(data.get("identifier") or ""), **_location(data))
        return _outcome_response(outcome)

    @app.route("/api/punches/verify", methods=["POST"], endpoint="punch_verify")
    @json_errors
    def punch_verify():
        data = json_body()
        outcome = service.verify_and_punch(data.get("employee_id"), data.get("template"), **_location(data))
        return _outcome_response(outcome)

    @app.route("/api/punches/sync", methods=["POST"], endpoint="punch_sync")
    @json_errors
    def punch_sync():
        data = json_body()
        raw_items = data.get("punches")
        if not isinstance(raw_items, list) or not raw_items:
            raise ValidationError("No punches to sync")
        report = service.sync_offline_punches(data.get("employee_id"), [_offline_item(i) for i in raw_items])
        return jsonify({"success": report.failed_count == 0, **report.to_dict()}), 200

    @app.route("/api/employees/<int:employee_id>/punches/today", methods=["GET"], endpoint="punches_today")
    @json_errors
    def punches_today(employee_id: int):
        work_date = None
        if request.args.get("date"):
            try:
                work_date = parse_iso_date(request.args["date"])
            except ValueError:
                raise ValidationError("date must be YYYY-MM-DD") from None
        view = service.today(employee_id, work_date)
        return jsonify({"success": True, **view.to_dict()}), 200
