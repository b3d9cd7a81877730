from datetime import timedelta

from flask import current_app, jsonify, request
from flask_login import current_user

from campus_vote.errors import NotFound, ValidationError
from campus_vote.extensions import db
from campus_vote.models import RegistrationCode, Student
from campus_vote.routes.serializers import student_to_dict
from campus_vote.routes.utils import admin_required, json_body, parse_int
from campus_vote.services.clock import isoformat, utcnow
from campus_vote.services.security import generate_registration_code

MAX_CODES_PER_REQUEST = 100


def _user_label(user):
    if user is None:
        return None
    return user.email


def _unused_registration_code():
    while True:
        code = generate_registration_code()
        if not RegistrationCode.query.filter_by(code=code).first():
            return code


def register_admin_routes(app):
    @app.route("/codes", methods=["GET"])
    @admin_required
    def list_registration_codes():
        status = (request.args.get("status") or "all").strip().lower()

        query = RegistrationCode.query
        if status == "used":
            query = query.filter(RegistrationCode.is_used.is_(True))
        elif status == "unused":
            query = query.filter(RegistrationCode.is_used.is_(False))
        elif status != "all":
            raise ValidationError("Filtre de statut invalide")

        codes = query.order_by(RegistrationCode.created_at.desc(), RegistrationCode.id.desc()).all()
        return jsonify(
            {
                "success": True,
                "data": {
                    "codes": [
                        {
                            "id": code.id,
                            "code": code.code,
                            "createdAt": isoformat(code.created_at),
                            "expiresAt": isoformat(code.expires_at),
                            "used": code.is_used,
                            "usedAt": isoformat(code.used_at),
                            "generatedBy": _user_label(code.generated_by_user) or "Système",
                            "usedBy": _user_label(code.used_by_user),
                        }
                        for code in codes
                    ],
                    "totalItems": len(codes),
                },
            }
        )

    @app.route("/codes/generate", methods=["POST"])
    @admin_required
    def generate_registration_codes():
        data = json_body()
        quantity = parse_int(data.get("quantity", 1), "quantity")
        expires_in_hours = parse_int(
            data.get("expiresInHours", current_app.config["REGISTRATION_CODE_TTL_HOURS"]),
            "expiresInHours",
        )

        if quantity < 1 or quantity > MAX_CODES_PER_REQUEST:
            raise ValidationError("La quantité doit être entre 1 et 100")
        if expires_in_hours < 1:
            raise ValidationError("expiresInHours invalide")

        now = utcnow()
        codes = []
        for _ in range(quantity):
            code = RegistrationCode(
                code=_unused_registration_code(),
                created_at=now,
                expires_at=now + timedelta(hours=expires_in_hours),
                generated_by=current_user.id,
            )
            db.session.add(code)
            db.session.flush()
            codes.append(code.code)

        db.session.commit()
        current_app.logger.info(
            "%d registration codes generated by user %s", quantity, current_user.id
        )

        message = (
            f"{quantity} codes générés avec succès"
            if quantity > 1
            else "Code généré avec succès"
        )
        return jsonify({"success": True, "message": message, "data": {"codes": codes}}), 201

    @app.route("/students/<int:student_id>/status", methods=["PUT"])
    @admin_required
    def update_student_status(student_id):
        active = json_body().get("actif")
        if not isinstance(active, bool):
            raise ValidationError("Valeur 'actif' invalide")

        student = db.session.get(Student, student_id)
        if student is None:
            raise NotFound("Étudiant introuvable")
        if student.user is None:
            raise ValidationError("Aucun compte n'est lié à cet étudiant")

        # Deactivation ends sessions and token issuance; cast votes stay.
        student.user.active = active
        db.session.commit()
        current_app.logger.info(
            "Student %s account %s by user %s",
            student_id,
            "activated" if active else "deactivated",
            current_user.id,
        )

        payload = student_to_dict(student)
        payload["actif"] = student.user.active
        return jsonify(
            {
                "message": f"Étudiant {'activé' if active else 'désactivé'} avec succès",
                "etudiant": payload,
            }
        )
