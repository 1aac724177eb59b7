from __future__ import annotations

import logging

from flask import Flask, jsonify, request, session

from ..common.web import current_user, domain_error_response, server_error_response
from ..container import Container
from ..core.enums import CheckInErrorCode, CheckInOutcome
from ..core.exceptions import CheckInError
from ..tokens.qr_image import decode_image
from .model import CheckInResult

logger = logging.getLogger(__name__)


def _result_json(result: CheckInResult):
    if result.outcome == CheckInOutcome.ALREADY_ATTENDED:
        message = "You have already checked in to this event"
    else:
        message = f"Checked in to {result.event.title}"
    return jsonify(
        {
            "success": True,
            "outcome": result.outcome.value,
            "message": message,
            "event": {
                "event_id": result.event.event_id,
                "title": result.event.title,
                "timeframe": result.event.timeframe,
                "due_date": result.event.due_date.isoformat(),
            },
            "checked_in_at": result.checked_in_at.isoformat() if result.checked_in_at else None,
        }
    ), 200


def register(app: Flask, container: Container) -> None:
    def _check_in(payload):
        try:
            result = container.checkin_service.check_in(
                payload,
                current_user(),
                current_org_id=session.get("org_id"),
            )
        except CheckInError as e:
            logger.info("check-in rejected code=%s user=%s", e.code.value, session.get("user_id"))
            return domain_error_response(e)
        except Exception:
            return server_error_response("checking in")
        return _result_json(result)

    @app.route("/api/checkin/qr", methods=["POST"], endpoint="api_checkin_qr")
    def api_checkin_qr():
        data = request.get_json(silent=True) or {}
        qr_code = data.get("qr_code")
        if not isinstance(qr_code, str):
            qr_code = ""
        return _check_in(qr_code.strip())

    @app.route("/api/checkin/qr/image", methods=["POST"], endpoint="api_checkin_qr_image")
    def api_checkin_qr_image():
        upload = request.files.get("image")
        if upload is None:
            e = CheckInError(CheckInErrorCode.MALFORMED_TOKEN, "No image uploaded")
            logger.info("check-in rejected code=%s user=%s", e.code.value, session.get("user_id"))
            return domain_error_response(e)

        try:
            payload = decode_image(upload.stream)
        except CheckInError as e:
            logger.info("check-in rejected code=%s user=%s", e.code.value, session.get("user_id"))
            return domain_error_response(e)
        except Exception:
            return server_error_response("reading the QR image")
        return _check_in(payload)
