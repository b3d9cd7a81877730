from flask import current_app, jsonify
from flask_login import current_user, login_required
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from campus_vote.errors import Forbidden, Unauthorized, ValidationError
from campus_vote.extensions import db, limiter
from campus_vote.models import RegistrationCode, Student, User
from campus_vote.models.user import ROLE_STUDENT
from campus_vote.routes.serializers import student_to_dict
from campus_vote.routes.utils import clean_str, json_body, parse_int
from campus_vote.services.academic import school_for_program, validate_student_data
from campus_vote.services.clock import utcnow
from campus_vote.services.security import generate_session_token

MIN_PASSWORD_LENGTH = 8


def _login_rate_limit():
    return current_app.config.get("LOGIN_RATE_LIMIT", "10 per minute")


def _hash_password(password):
    return generate_password_hash(password, method="pbkdf2:sha256")


def _check_new_password(new_password, confirm_password):
    if not new_password or not confirm_password:
        raise ValidationError("Tous les champs sont requis")
    if new_password != confirm_password:
        raise ValidationError("Les mots de passe ne correspondent pas")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("Le mot de passe doit contenir au moins 8 caractères")


def register_auth_routes(app):
    @app.route("/register", methods=["POST"])
    @limiter.limit(_login_rate_limit)
    def register():
        data = json_body()
        email = clean_str(data.get("email")).lower()
        password = data.get("password") or ""
        last_name = clean_str(data.get("nom"))
        first_name = clean_str(data.get("prenom"))
        program = clean_str(data.get("filiere"))
        code = clean_str(data.get("code")).upper()
        matricule = clean_str(data.get("matricule"))

        if not email or not password or not last_name or not first_name or not program:
            raise ValidationError("Champs requis manquants.")
        year = parse_int(data.get("annee"), "annee")
        if year < 1:
            raise ValidationError("Valeur 'annee' invalide.")

        errors = validate_student_data(program=program, year=year)
        if errors:
            raise ValidationError("; ".join(errors))
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError("Le mot de passe doit contenir au moins 8 caractères")

        if User.query.filter_by(email=email).first():
            raise ValidationError("Email déjà utilisé.")

        now = utcnow()
        user = User(email=email, password_hash=_hash_password(password), role=ROLE_STUDENT)

        if year == 1:
            if not code:
                raise ValidationError("Code requis pour la 1ère année.")

            registration_code = RegistrationCode.query.filter_by(code=code).first()
            if (
                registration_code is None
                or registration_code.is_used
                or (registration_code.expires_at and registration_code.expires_at <= now)
            ):
                raise ValidationError("Code invalide ou déjà utilisé.")

            db.session.add(user)
            db.session.flush()
            db.session.add(
                Student(
                    user_id=user.id,
                    last_name=last_name,
                    first_name=first_name,
                    program=program,
                    year=year,
                    school=school_for_program(program),
                    registration_code=code,
                )
            )

            # Conditional update so two sign-ups cannot share one code.
            claimed = db.session.execute(
                db.update(RegistrationCode)
                .where(RegistrationCode.code == code, RegistrationCode.is_used.is_(False))
                .values(is_used=True, used_at=now, used_by=user.id)
                .execution_options(synchronize_session=False)
            ).rowcount
            if claimed != 1:
                raise ValidationError("Code invalide ou déjà utilisé.")
            message = "Inscription réussie (1ère année)."
        else:
            if not matricule:
                raise ValidationError("Matricule requis pour 2ème année et plus.")

            student = Student.query.filter_by(matricule=matricule).first()
            if student is None:
                raise ValidationError("Matricule introuvable. Contactez l'administration.")
            if student.user_id:
                raise ValidationError("Ce matricule est déjà utilisé.")

            db.session.add(user)
            db.session.flush()
            student.user_id = user.id
            student.last_name = last_name
            student.first_name = first_name
            student.program = program
            student.year = year
            student.school = school_for_program(program)
            message = "Inscription réussie (2ème année et +)."

        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ValidationError("Email déjà utilisé.") from None

        current_app.logger.info("Student account %s registered (year %s)", user.id, year)
        return jsonify({"message": message, "userId": user.id}), 201

    @app.route("/login", methods=["POST"])
    @limiter.limit(_login_rate_limit)
    def login():
        data = json_body()
        email = clean_str(data.get("email")).lower()
        password = data.get("password") or ""

        if not email or not password:
            raise ValidationError("Email et mot de passe requis")

        user = User.query.filter_by(email=email).first()
        if not user or not check_password_hash(user.password_hash, password):
            current_app.logger.warning("Failed login for %s", email)
            raise Unauthorized("Email ou mot de passe incorrect")
        if not user.is_active:
            raise Forbidden("Compte désactivé")

        return jsonify(
            {
                "message": "Connexion réussie",
                "token": generate_session_token(user),
                "role": user.role,
            }
        )

    @app.route("/me")
    @login_required
    def me():
        student = Student.query.filter_by(user_id=current_user.id).first()
        return jsonify(
            {
                "id": current_user.id,
                "email": current_user.email,
                "role": current_user.role,
                "etudiant": student_to_dict(student) if student else None,
            }
        )

    @app.route("/change-password", methods=["POST"])
    @login_required
    def change_password():
        data = json_body()
        current_password = data.get("currentPassword") or ""
        new_password = data.get("newPassword") or ""
        confirm_password = data.get("confirmPassword") or ""

        if not current_password:
            raise ValidationError("Tous les champs sont requis")
        _check_new_password(new_password, confirm_password)

        user = db.session.get(User, current_user.id)
        if not check_password_hash(user.password_hash, current_password):
            raise Unauthorized("Mot de passe actuel incorrect")
        if check_password_hash(user.password_hash, new_password):
            raise ValidationError("Le nouveau mot de passe doit être différent de l'ancien")

        user.password_hash = _hash_password(new_password)
        db.session.commit()
        current_app.logger.info("Password changed for user %s", user.id)
        return jsonify({"success": True, "message": "Mot de passe changé avec succès"})
