from __future__ import annotations

import io

from flask import Flask, jsonify, request, send_file

from ..common.datetime_utils import parse_iso_date
from ..common.web import admin_required, current_user, domain_error_response, error_response, server_error_response
from ..container import Container
from ..core.constants import QR_REFRESH_SECONDS
from ..core.exceptions import DomainError
from ..fines.reconciler import SKIP_NOT_FOUND, ReconcileReport
from ..tokens.qr_image import render_png
from .model import Event


def _event_json(event: Event) -> dict:
    window = event.window()
    return {
        "event_id": event.event_id,
        "title": event.title,
        "description": event.description,
        "due_date": event.due_date.isoformat(),
        "timeframe": event.timeframe,
        "window": {"start": window.start.isoformat(), "end": window.end.isoformat()},
        "attendee_count": len(event.attendees),
        "fines_processed": event.fines_processed,
    }


def _report_json(report: ReconcileReport | None) -> dict | None:
    if report is None:
        return None
    return {
        "event_id": report.event_id,
        "ran": report.ran,
        "skipped_reason": report.skipped_reason,
        "fines_created": report.fines_created,
        "fined_user_ids": list(report.fined_user_ids),
        "already_fined_user_ids": list(report.already_fined_user_ids),
        "attended_count": report.attended_count,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/admin/events", methods=["GET"], endpoint="admin_events")
    @admin_required
    def admin_events():
        events = container.event_service.list_events(current_user().org_id)
        return jsonify({"success": True, "events": [_event_json(e) for e in events]}), 200

    @app.route("/admin/events", methods=["POST"], endpoint="admin_create_event")
    @admin_required
    def admin_create_event():
        data = request.get_json(silent=True) or request.form
        try:
            try:
                due_date = parse_iso_date((data.get("due_date") or "").strip())
            except ValueError:
                return error_response(400, "VALIDATION_ERROR", "Due date must be YYYY-MM-DD")

            event_id = container.event_service.create_event(
                current_user=current_user(),
                title=data.get("title", ""),
                description=data.get("description"),
                due_date=due_date,
                timeframe=data.get("timeframe", ""),
            )
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            return server_error_response("creating the event")
        return jsonify({"success": True, "event_id": event_id}), 201

    @app.route("/admin/events/<int:event_id>/qr", methods=["GET"], endpoint="admin_event_qr")
    @admin_required
    def admin_event_qr(event_id: int):
        try:
            view = container.event_service.qr_view(org_id=current_user().org_id, event_id=event_id)
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            return server_error_response("loading the event QR code")

        return jsonify(
            {
                "success": True,
                "event": _event_json(view.event),
                "state": view.state.value,
                "payload": view.payload,
                "seconds_until_release": view.seconds_until_release,
                "refresh_seconds": QR_REFRESH_SECONDS,
                "reconcile": _report_json(view.reconcile_report),
            }
        ), 200

    @app.route("/admin/events/<int:event_id>/qr.png", methods=["GET"], endpoint="admin_event_qr_png")
    @admin_required
    def admin_event_qr_png(event_id: int):
        try:
            view = container.event_service.qr_view(org_id=current_user().org_id, event_id=event_id)
            if view.payload is None:
                return error_response(409, "QR_NOT_ACTIVE", f"QR code is {view.state.value}")
            png = render_png(view.payload)
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            return server_error_response("rendering the event QR code")
        return send_file(io.BytesIO(png), mimetype="image/png")

    @app.route("/admin/events/<int:event_id>/attendance", methods=["GET"], endpoint="admin_event_attendance")
    @admin_required
    def admin_event_attendance(event_id: int):
        try:
            summary = container.event_service.attendance_summary(org_id=current_user().org_id, event_id=event_id)
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            return server_error_response("loading attendance")

        def row(r):
            return {
                "user_id": r.user_id,
                "full_name": r.full_name,
                "role": r.role,
                "checked_in_at": r.checked_in_at.isoformat() if r.checked_in_at else None,
            }

        return jsonify(
            {
                "success": True,
                "event": _event_json(summary.event),
                "attended": [row(r) for r in summary.attended],
                "absent": [row(r) for r in summary.absent],
            }
        ), 200

    @app.route("/admin/events/<int:event_id>/reconcile", methods=["POST"], endpoint="admin_event_reconcile")
    @admin_required
    def admin_event_reconcile(event_id: int):
        try:
            report = container.reconciler.reconcile_event(org_id=current_user().org_id, event_id=event_id)
        except Exception:
            return server_error_response("assessing absentee fines")
        if report.skipped_reason == SKIP_NOT_FOUND:
            return error_response(404, "NOT_FOUND", "Event not found")
        return jsonify({"success": True, "reconcile": _report_json(report)}), 200
