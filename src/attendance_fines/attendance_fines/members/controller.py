from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..common.web import current_user, domain_error_response, login_required, login_session, server_error_response
from ..container import Container
from ..core.exceptions import AuthenticationError


def register(app: Flask, container: Container) -> None:
    @app.route("/login", methods=["POST"], endpoint="login")
    def login():
        data = request.get_json(silent=True) or request.form
        username = data.get("username", "")
        password = data.get("password", "")
        remember = data.get("remember_me")

        try:
            s_user = container.auth_service.authenticate(username, password)
        except AuthenticationError as e:
            return domain_error_response(e)
        except Exception:
            return server_error_response("logging in")

        session.clear()
        session.permanent = bool(remember)
        app.permanent_session_lifetime = timedelta(days=7)
        login_session(s_user)

        return jsonify(
            {
                "success": True,
                "user": {
                    "user_id": s_user.user_id,
                    "org_id": s_user.org_id,
                    "full_name": s_user.full_name,
                    "role": s_user.role.value,
                },
            }
        ), 200

    @app.route("/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True}), 200

    @app.route("/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        user = current_user()
        return jsonify(
            {
                "success": True,
                "user": {
                    "user_id": user.user_id,
                    "org_id": user.org_id,
                    "full_name": user.full_name,
                    "role": user.role.value,
                },
            }
        ), 200
