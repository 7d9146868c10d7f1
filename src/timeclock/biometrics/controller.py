from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body, json_errors
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.biometric_service

    @app.route("/api/employees/<int:employee_id>/face", methods=["PUT"], endpoint="register_face")
    @json_errors
    def register_face(employee_id: int):
        data = json_body()
        result = service.register_face_template(employee_id, data.get("template"))
        return jsonify({
            "success": True,
            "employee_id": result.employee_id,
            "name": result.name,
            "national_id": result.national_id,
        }), 200

    @app.route("/api/employees/<int:employee_id>/face", methods=["DELETE"], endpoint="remove_face")
    @json_errors
    def remove_face(employee_id: int):
        removed = service.remove_face_template(employee_id)
        return jsonify({"success": removed, "employee_id": employee_id}), 200 if removed else 404

    @app.route("/api/biometrics/pending", methods=["GET"], endpoint="pending_enrollment")
    @json_errors
    def pending_enrollment():
        employees = service.pending_enrollment()
        return jsonify({
            "success": True,
            "employees": [{"employee_id": e.employee_id, "name": e.name, "photo_url": e.photo_url} for e in employees],
        }), 200

    @app.route("/api/biometrics/cache", methods=["GET"], endpoint="cache_stats")
    @json_errors
    def cache_stats():
        return jsonify({"success": True, **service.cache_stats().to_dict()}), 200

    @app.route("/api/biometrics/cache/sync", methods=["POST"], endpoint="cache_sync")
    @json_errors
    def cache_sync():
        count = service.sync_cache()
        return jsonify({"success": service.cache_stats().available, "synced": count}), 200

    @app.route("/api/biometrics/cache", methods=["DELETE"], endpoint="cache_invalidate")
    @json_errors
    def cache_invalidate():
        return jsonify({"success": service.invalidate_cache()}), 200
