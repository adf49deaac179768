# Trainers of a gym
from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy import select

from ...extensions import db
from ...models import Trainer
from ...utils.serializers import serialize_trainer
from ...utils.auth import gym_auth_required

trainers_bp = Blueprint("trainers", __name__, url_prefix="/api/trainers")


@trainers_bp.route("", methods=["GET"])
@gym_auth_required
def get_trainers():
    trainers = db.session.scalars(
        select(Trainer).where(Trainer.gym_id == g.gym_id).order_by(Trainer.name)
    ).all()
    return jsonify({"success": True, "data": [serialize_trainer(t) for t in trainers]})


@trainers_bp.route("/<int:trainer_id>", methods=["GET"])
@gym_auth_required
def get_trainer(trainer_id):
    trainer = db.session.get(Trainer, trainer_id)
    if not trainer or trainer.gym_id != g.gym_id:
        return jsonify({"success": False, "error": "Trainer not found"}), 404
    return jsonify({"success": True, "data": serialize_trainer(trainer)})


@trainers_bp.route("", methods=["POST"])
@gym_auth_required
def create_trainer():
    """
    POST /api/trainers
    Purpose: Add a trainer to the caller's gym.
    Input: JSON body with name (required), email, phone, specialization,
           experience (years), status (active|inactive), bio.
    """
    try:
        data = request.get_json(force=True, silent=True) or {}
        name = (data.get("name") or "").strip()
        if not name:
            return jsonify({"success": False, "error": "name is required"}), 400

        status = data.get("status", "active")
        if status not in ("active", "inactive"):
            return (
                jsonify({"success": False, "error": "status must be active or inactive"}),
                400,
            )

        experience = data.get("experience")
        if experience is not None:
            try:
                experience = int(experience)
            except (TypeError, ValueError):
                return (
                    jsonify({"success": False, "error": "experience must be a number of years"}),
                    400,
                )

        trainer = Trainer(
            gym_id=g.gym_id,
            name=name,
            email=data.get("email"),
            phone=data.get("phone"),
            specialization=data.get("specialization"),
            experience=experience,
            status=status,
            bio=data.get("bio"),
        )
        db.session.add(trainer)
        db.session.commit()
        return jsonify({"success": True, "data": serialize_trainer(trainer)}), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating trainer: {e}")
        return jsonify({"success": False, "error": str(e)}), 500
