from flask import current_app, jsonify
from flask_login import current_user, login_required
from sqlalchemy.exc import IntegrityError

from campus_vote.errors import (
    ElectionNotActive,
    Forbidden,
    NotEligible,
    NotFound,
    ValidationError,
)
from campus_vote.extensions import db
from campus_vote.models import Candidate, Election
from campus_vote.models.candidate import CANDIDATE_STATUSES
from campus_vote.routes.serializers import candidate_to_dict
from campus_vote.routes.utils import admin_required, clean_str, json_body, parse_int
from campus_vote.services.clock import utcnow
from campus_vote.services.eligibility import get_resolver, student_for_user

ALREADY_CANDIDATE = "Vous êtes déjà candidat à cette élection."


def _get_candidate_or_404(candidate_id):
    candidate = db.session.get(Candidate, candidate_id)
    if candidate is None:
        raise NotFound("Candidat introuvable")
    return candidate


def register_candidate_routes(app):
    @app.route("/candidats/candidature", methods=["POST"])
    @login_required
    def submit_candidacy():
        data = json_body()
        election_id = parse_int(data.get("electionId"), "electionId")

        student = student_for_user(current_user.id)
        if student is None:
            raise Forbidden("Seuls les étudiants peuvent se porter candidats")

        election = db.session.get(Election, election_id)
        if election is None:
            raise NotFound("Élection inexistante")
        if not election.is_open_for_candidacy(utcnow()):
            raise ElectionNotActive("La période de candidature est fermée")
        if not get_resolver().is_eligible(student, election):
            raise NotEligible()

        if Candidate.query.filter_by(user_id=current_user.id, election_id=election.id).first():
            raise ValidationError(ALREADY_CANDIDATE)

        candidate = Candidate(
            user_id=current_user.id,
            election_id=election.id,
            last_name=clean_str(data.get("nom")) or student.last_name,
            first_name=clean_str(data.get("prenom")) or student.first_name,
            program_text=clean_str(data.get("programme")) or None,
            photo_url=clean_str(data.get("photoUrl")) or None,
        )
        db.session.add(candidate)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ValidationError(ALREADY_CANDIDATE) from None

        current_app.logger.info(
            "Candidacy %s submitted for election %s", candidate.id, election.id
        )
        return (
            jsonify(
                {
                    "message": "Candidature déposée avec succès",
                    "candidate": candidate_to_dict(candidate),
                }
            ),
            201,
        )

    @app.route("/candidats/<int:candidate_id>/programme", methods=["PUT"])
    @login_required
    def update_candidate_program(candidate_id):
        program_text = clean_str(json_body().get("programme"))
        if not program_text:
            raise ValidationError("Paramètres invalides")

        candidate = _get_candidate_or_404(candidate_id)
        if candidate.user_id != current_user.id:
            raise Forbidden("Non autorisé")
        if candidate.election.is_closed(utcnow()):
            raise ElectionNotActive()

        candidate.program_text = program_text
        db.session.commit()
        return jsonify(
            {"message": "Programme mis à jour", "candidate": candidate_to_dict(candidate)}
        )

    @app.route("/candidats/<int:candidate_id>/status", methods=["PUT"])
    @admin_required
    def update_candidate_status(candidate_id):
        status = clean_str(json_body().get("statut")).upper()
        if status not in CANDIDATE_STATUSES:
            raise ValidationError("Statut invalide")

        candidate = _get_candidate_or_404(candidate_id)
        # Votes may already have been cast for this candidate.
        if utcnow() >= candidate.election.vote_start:
            raise ElectionNotActive("Le statut ne peut plus être modifié après le début du vote")

        candidate.status = status
        db.session.commit()
        current_app.logger.info("Candidate %s set to %s", candidate_id, status)
        return jsonify(
            {"message": "Statut mis à jour", "candidate": candidate_to_dict(candidate)}
        )

    @app.route("/candidats/<int:election_id>", methods=["GET"])
    def list_candidates(election_id):
        election = db.session.get(Election, election_id)
        if election is None:
            raise NotFound("Élection non trouvée")
        return jsonify([candidate_to_dict(candidate) for candidate in election.candidates])
