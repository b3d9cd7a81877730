from flask import current_app, jsonify, request

from campus_vote.errors import ElectionNotActive, NotFound, ValidationError
from campus_vote.extensions import db
from campus_vote.models import Election, Vote
from campus_vote.models.election import (
    ELECTION_ROOM,
    ELECTION_SCHOOL,
    normalize_election_type,
)
from campus_vote.routes.serializers import candidate_to_dict, election_to_dict
from campus_vote.routes.utils import admin_required, clean_str, json_body, parse_int
from campus_vote.services.academic import school_for_program, validate_student_data
from campus_vote.services.clock import parse_datetime, utcnow
from campus_vote.services.vote_tokens import issue_tokens_for_election

DATE_FIELDS = {
    "candidacy_start": "dateDebutCandidature",
    "candidacy_end": "dateFinCandidature",
    "vote_start": "dateDebut",
    "vote_end": "dateFin",
}


def _get_election_or_404(election_id):
    election = db.session.get(Election, election_id)
    if election is None:
        raise NotFound("Élection non trouvée")
    return election


def _election_with_candidates(election, now):
    payload = election_to_dict(election, now)
    payload["candidates"] = [
        candidate_to_dict(candidate) for candidate in election.candidates
    ]
    payload["totalVotes"] = Vote.query.filter_by(election_id=election.id).count()
    return payload


def _parse_windows(data):
    windows = {}
    for attr, field in DATE_FIELDS.items():
        raw = data.get(field)
        if not raw:
            raise ValidationError(f"{field} requis")
        try:
            windows[attr] = parse_datetime(raw)
        except (TypeError, ValueError):
            raise ValidationError(f"Date invalide : {field}") from None

    if windows["candidacy_start"] >= windows["candidacy_end"]:
        raise ValidationError("La période de candidature est invalide")
    if windows["candidacy_end"] >= windows["vote_start"]:
        raise ValidationError(
            "La période de candidature doit se terminer avant le début du vote"
        )
    if windows["vote_start"] >= windows["vote_end"]:
        raise ValidationError("La période de vote est invalide")
    if windows["vote_end"] <= utcnow():
        raise ValidationError("La période de vote est déjà terminée")
    return windows


def _parse_scope(election_type, data):
    program = clean_str(data.get("filiere")) or None
    school = clean_str(data.get("ecole")).upper() or None
    year = parse_int(data.get("annee"), "annee", required=False)

    if election_type == ELECTION_ROOM:
        if not program or year is None:
            raise ValidationError("Les élections par salle nécessitent filière et année")
        errors = validate_student_data(program=program, year=year)
        school = school_for_program(program)
    elif election_type == ELECTION_SCHOOL:
        if not school:
            raise ValidationError("Les élections par école nécessitent le nom de l'école")
        errors = validate_student_data(school=school)
        program = None
        year = None
    else:
        errors = []
        program = None
        year = None
        school = None

    if errors:
        raise ValidationError("; ".join(errors))
    return {"program": program, "year": year, "school": school}


def register_election_routes(app):
    @app.route("/elections", methods=["GET"])
    def list_elections():
        now = utcnow()
        elections = (
            Election.query.filter(Election.is_active.is_(True), Election.vote_end > now)
            .order_by(Election.vote_start.desc())
            .all()
        )
        return jsonify([_election_with_candidates(e, now) for e in elections])

    @app.route("/elections/by-type/<election_type>", methods=["GET"])
    def list_elections_by_type(election_type):
        normalized = normalize_election_type(election_type)
        if normalized is None:
            raise ValidationError("Type d'élection invalide")

        now = utcnow()
        query = Election.query.filter(
            Election.type == normalized,
            Election.is_active.is_(True),
            Election.vote_end > now,
        )
        if normalized == ELECTION_ROOM:
            program = clean_str(request.args.get("filiere"))
            year = parse_int(request.args.get("annee"), "annee", required=False)
            if program:
                query = query.filter(Election.program == program)
            if year is not None:
                query = query.filter(Election.year == year)
        elif normalized == ELECTION_SCHOOL:
            school = clean_str(request.args.get("ecole")).upper()
            if school:
                query = query.filter(Election.school == school)

        elections = query.order_by(Election.vote_start.desc()).all()
        return jsonify([_election_with_candidates(e, now) for e in elections])

    @app.route("/elections", methods=["POST"])
    @admin_required
    def create_election():
        data = json_body()

        election_type = normalize_election_type(data.get("type"))
        if election_type is None:
            raise ValidationError("Type d'élection invalide")

        title = clean_str(data.get("titre"))
        if not title:
            raise ValidationError("Le titre est requis")

        scope = _parse_scope(election_type, data)
        windows = _parse_windows(data)

        election = Election(
            type=election_type,
            title=title,
            description=clean_str(data.get("description")) or None,
            is_active=True,
            **scope,
            **windows,
        )
        db.session.add(election)
        db.session.commit()
        current_app.logger.info(
            "Election %s created (%s): %s", election.id, election_type, title
        )

        report = issue_tokens_for_election(election)

        return (
            jsonify(
                {
                    "message": "Élection créée avec succès",
                    "electionId": election.id,
                    "tokens": report,
                }
            ),
            201,
        )

    @app.route("/elections/<int:election_id>", methods=["GET"])
    def election_detail(election_id):
        now = utcnow()
        election = _get_election_or_404(election_id)

        total_votes = Vote.query.filter_by(election_id=election.id).count()
        total_tokens = len(election.vote_tokens)
        participation = (total_votes / total_tokens * 100) if total_tokens > 0 else 0.0

        payload = _election_with_candidates(election, now)
        payload["stats"] = {
            "totalVotes": total_votes,
            "totalTokens": total_tokens,
            "participationRate": round(participation, 2),
        }
        return jsonify(payload)

    @app.route("/elections/<int:election_id>/close", methods=["PUT"])
    @admin_required
    def close_election(election_id):
        now = utcnow()
        election = _get_election_or_404(election_id)
        if election.is_closed(now):
            raise ElectionNotActive("Cette élection est déjà clôturée")

        election.is_active = False
        if election.vote_start < now < election.vote_end:
            election.vote_end = now
        db.session.commit()

        current_app.logger.info("Election %s closed", election_id)
        return jsonify({"message": "Élection clôturée avec succès"})

    @app.route("/elections/<int:election_id>", methods=["DELETE"])
    @admin_required
    def delete_election(election_id):
        election = _get_election_or_404(election_id)

        # Candidates, vote tokens and votes go with it.
        db.session.delete(election)
        db.session.commit()

        current_app.logger.info("Election %s deleted", election_id)
        return jsonify({"message": "Élection supprimée avec succès"})
