import datetime
from functools import wraps

import jwt
from flask import current_app, g, jsonify, request

from ..extensions import db
from ..models import AuthUser


def issue_token(user):
    payload = {
        "user_id": user.id,
        "email": user.email,
        "role": user.role,
        "gym_id": user.gym_id,
        "exp": datetime.datetime.now(datetime.timezone.utc)
        + datetime.timedelta(hours=current_app.config.get("JWT_EXPIRES_HOURS", 1)),
    }
    return jwt.encode(payload, current_app.config["SECRET_KEY"], algorithm="HS256")


def _unauthorized(message):
    return jsonify({"success": False, "error": message}), 401


def gym_auth_required(view):
    """
    Require a valid Bearer token for a staff account attached to a gym.

    Sets g.user (AuthUser) and g.gym_id for the wrapped view.
    """

    @wraps(view)
    def wrapper(*args, **kwargs):
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return _unauthorized("Authorization token is missing")

        token = header.split(" ", 1)[1].strip()
        try:
            payload = jwt.decode(
                token, current_app.config["SECRET_KEY"], algorithms=["HS256"]
            )
        except jwt.ExpiredSignatureError:
            return _unauthorized("Token has expired")
        except jwt.InvalidTokenError:
            return _unauthorized("Invalid token")

        user = db.session.get(AuthUser, payload.get("user_id"))
        if not user:
            return _unauthorized("User not found")

        if not user.gym_id:
            return (
                jsonify(
                    {"success": False, "error": "No gym associated with this account"}
                ),
                400,
            )

        g.user = user
        g.gym_id = user.gym_id
        return view(*args, **kwargs)

    return wrapper
