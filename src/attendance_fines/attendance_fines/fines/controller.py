from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import (
    admin_required,
    current_user,
    domain_error_response,
    error_response,
    login_required,
    server_error_response,
)
from ..container import Container
from ..core.exceptions import DomainError
from .model import Fine, FineSettings


def _money(value) -> str:
    return f"{value:.2f}"


def _settings_json(settings: FineSettings) -> dict:
    return {"student_fine": _money(settings.student_fine), "officer_fine": _money(settings.officer_fine)}


def _fine_json(fine: Fine) -> dict:
    return {
        "fine_id": fine.fine_id,
        "user_id": fine.user_id,
        "user_full_name": fine.user_full_name,
        "event_id": fine.event_id,
        "event_title": fine.event_title,
        "amount": _money(fine.amount),
        "status": fine.status.value,
        "description": fine.description,
        "created_at": fine.created_at.isoformat() if fine.created_at else None,
        "issued_by": {"uid": fine.issued_by.uid, "username": fine.issued_by.username, "role": fine.issued_by.role},
        "paid_at": fine.paid_at.isoformat() if fine.paid_at else None,
        "paid_by": fine.paid_by.username if fine.paid_by else None,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/admin/fines/settings", methods=["GET"], endpoint="admin_fine_settings")
    @admin_required
    def admin_fine_settings():
        settings = container.fine_service.get_settings(current_user().org_id)
        return jsonify({"success": True, "settings": _settings_json(settings)}), 200

    @app.route("/admin/fines/settings", methods=["POST"], endpoint="admin_save_fine_settings")
    @admin_required
    def admin_save_fine_settings():
        data = request.get_json(silent=True) or request.form
        try:
            settings = container.fine_service.save_settings(
                current_user=current_user(),
                student_fine=data.get("student_fine"),
                officer_fine=data.get("officer_fine"),
            )
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            return server_error_response("saving fine settings")
        return jsonify({"success": True, "settings": _settings_json(settings)}), 200

    @app.route("/admin/fines/bulk", methods=["POST"], endpoint="admin_bulk_fines")
    @admin_required
    def admin_bulk_fines():
        data = request.get_json(silent=True) or {}
        user_ids = data.get("user_ids") or []
        if not isinstance(user_ids, list):
            return error_response(400, "VALIDATION_ERROR", "user_ids must be a list")
        try:
            result = container.fine_service.bulk_assign(
                current_user=current_user(),
                event_id=int(data.get("event_id") or 0),
                user_ids=[int(u) for u in user_ids],
                student_amount=data.get("student_amount"),
                officer_amount=data.get("officer_amount"),
            )
        except (TypeError, ValueError):
            return error_response(400, "VALIDATION_ERROR", "event_id and user_ids must be integers")
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            return server_error_response("assigning fines")
        return jsonify(
            {
                "success": True,
                "created": result.created,
                "skipped_unknown_users": result.skipped_unknown_users,
                "skipped_already_fined": result.skipped_already_fined,
            }
        ), 200

    @app.route("/admin/fines/<int:fine_id>/pay", methods=["POST"], endpoint="admin_pay_fine")
    @admin_required
    def admin_pay_fine(fine_id: int):
        try:
            fine = container.fine_service.mark_paid(current_user=current_user(), fine_id=fine_id)
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            return server_error_response("marking the fine as paid")
        return jsonify({"success": True, "fine": _fine_json(fine)}), 200

    @app.route("/admin/fines/summary", methods=["GET"], endpoint="admin_fines_summary")
    @admin_required
    def admin_fines_summary():
        rows = container.fine_service.org_summary(current_user().org_id)
        return jsonify(
            {
                "success": True,
                "members": [
                    {
                        "user_id": r.user_id,
                        "full_name": r.full_name,
                        "role": r.role,
                        "unpaid_total": _money(r.unpaid_total),
                        "unpaid_count": r.unpaid_count,
                    }
                    for r in rows
                ],
            }
        ), 200

    @app.route("/me/fines", methods=["GET"], endpoint="my_fines")
    @login_required
    def my_fines():
        user = current_user()
        fines = container.fine_service.history(org_id=user.org_id, user_id=user.user_id)
        total = container.fine_service.unpaid_total(org_id=user.org_id, user_id=user.user_id)
        return jsonify(
            {
                "success": True,
                "unpaid_total": _money(total),
                "fines": [_fine_json(f) for f in fines],
            }
        ), 200

    @app.route("/admin/activities", methods=["GET"], endpoint="admin_activities")
    @admin_required
    def admin_activities():
        try:
            limit = max(1, min(int(request.args.get("limit", 50)), 200))
        except ValueError:
            return error_response(400, "VALIDATION_ERROR", "limit must be an integer")

        items = container.fine_service.recent_activity(current_user().org_id, limit)
        return jsonify(
            {
                "success": True,
                "activities": [
                    {
                        "activity_id": a.activity_id,
                        "type": a.activity_type.value,
                        "description": a.description,
                        "actor_id": a.actor_id,
                        "occurred_at": a.occurred_at.isoformat(),
                        "details": dict(a.details),
                    }
                    for a in items
                ],
            }
        ), 200
