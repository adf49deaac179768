from flask import Blueprint, request, jsonify, current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from ..extensions import db
from ..models import AuthUser, Gym
from ..utils.auth import issue_token
import bcrypt

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.route("/signup", methods=["POST"])
def signup_user():
    """
    Register a gym together with its owner account.
    ---
    tags:
      - Authentication
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [email, password, name, gym_name]
          properties:
            email: {type: string}
            password: {type: string}
            name: {type: string}
            gym_name: {type: string}
            gym_address: {type: string}
            gym_phone: {type: string}
    responses:
      201:
        description: Gym and owner created
      400:
        description: Missing fields or duplicate email
    """
    try:
        data = request.get_json(force=True, silent=True) or {}
        email = (data.get("email") or "").strip().lower()
        password = data.get("password")
        name = data.get("name")
        gym_name = data.get("gym_name")

        # Validate required fields
        if not email or not password or not name or not gym_name:
            return jsonify({
                "success": False,
                "error": "Missing required fields (email, password, name, gym_name)"
            }), 400

        if len(password) < 6:
            return jsonify({
                "success": False,
                "error": "Password must be at least 6 characters"
            }), 400

        # Check if email already exists
        existing = db.session.scalar(select(AuthUser).where(AuthUser.email == email))
        if existing:
            return jsonify({
                "success": False,
                "error": "Email already exists"
            }), 400

        gym = Gym(
            name=gym_name,
            address=data.get("gym_address"),
            phone=data.get("gym_phone"),
        )
        db.session.add(gym)
        db.session.flush()

        hashed_pw = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
        user = AuthUser(
            email=email,
            password_hash=hashed_pw.decode("utf-8"),
            role="OWNER",
            name=name,
            gym_id=gym.id,
        )
        db.session.add(user)
        db.session.commit()

        return jsonify({
            "success": True,
            "data": {
                "user": {
                    "id": user.id,
                    "email": user.email,
                    "name": user.name,
                    "role": user.role,
                    "gym_id": gym.id,
                },
                "gym": {"id": gym.id, "name": gym.name},
            }
        }), 201

    except IntegrityError as e:
        db.session.rollback()
        return jsonify({"success": False, "error": str(e.orig)}), 400

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Signup failed: {e}")
        return jsonify({"success": False, "error": str(e)}), 500


@auth_bp.route("/login", methods=["POST"])
def login_user():
    """
    Exchange staff credentials for a JWT.
    ---
    tags:
      - Authentication
    responses:
      200:
        description: Token issued
      401:
        description: Invalid credentials
    """
    try:
        data = request.get_json(force=True, silent=True) or {}
        email = (data.get("email") or "").strip().lower()
        password = data.get("password")

        if not email or not password:
            return jsonify({
                "success": False,
                "error": "Email and password required"
            }), 400

        user = db.session.scalar(select(AuthUser).where(AuthUser.email == email))
        if not user or not user.password_hash:
            return jsonify({
                "success": False,
                "error": "Invalid credentials"
            }), 401

        stored_hash = user.password_hash
        if isinstance(stored_hash, str):
            stored_hash = stored_hash.encode("utf-8")

        if not bcrypt.checkpw(password.encode("utf-8"), stored_hash):
            return jsonify({
                "success": False,
                "error": "Invalid credentials"
            }), 401

        return jsonify({
            "success": True,
            "data": {
                "token": issue_token(user),
                "user": {
                    "id": user.id,
                    "email": user.email,
                    "name": user.name,
                    "role": user.role,
                    "gym_id": user.gym_id,
                },
            }
        }), 200

    except Exception as e:
        current_app.logger.error(f"Login failed: {e}")
        return jsonify({"success": False, "error": str(e)}), 500
