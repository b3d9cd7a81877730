from flask import jsonify
from flask_login import current_user, login_required

from campus_vote.errors import NotFound, ValidationError
from campus_vote.extensions import db
from campus_vote.models import Election
from campus_vote.routes.serializers import election_to_dict
from campus_vote.routes.utils import clean_str, json_body, parse_int
from campus_vote.services.ballots import cast_vote, has_voted
from campus_vote.services.clock import isoformat, utcnow
from campus_vote.services.vote_tokens import issue_or_get_token
from campus_vote.services.voting import (
    REPRESENTATIVES,
    STUDENTS,
    tally_weighted_election,
)


def _pct(value):
    return round(value, 2)


def register_vote_routes(app):
    @app.route("/vote/token/<int:election_id>", methods=["GET"])
    @login_required
    def get_vote_token(election_id):
        token = issue_or_get_token(current_user.id, election_id)
        election = token.election
        return jsonify(
            {
                "token": token.token,
                "expiresAt": isoformat(token.expires_at),
                "election": {
                    "id": election.id,
                    "titre": election.title,
                    "type": election.type,
                },
            }
        )

    # No session here: the vote token itself is the credential.
    @app.route("/vote", methods=["POST"])
    def submit_vote():
        data = json_body()
        vote_token = clean_str(data.get("voteToken"))
        if not data.get("electionId") or not data.get("candidateId") or not vote_token:
            raise ValidationError("ElectionId, CandidateId et VoteToken requis")

        election_id = parse_int(data.get("electionId"), "electionId")
        candidate_id = parse_int(data.get("candidateId"), "candidateId")

        cast_vote(election_id, candidate_id, vote_token)
        return jsonify({"message": "Vote enregistré avec succès"})

    @app.route("/vote/results/<int:election_id>", methods=["GET"])
    def election_results(election_id):
        now = utcnow()
        election = db.session.get(Election, election_id)
        if election is None:
            raise NotFound("Élection non trouvée")

        tally = tally_weighted_election(election, now=now)
        return jsonify(
            {
                "election": election_to_dict(election, now),
                "statistiques": {
                    "totalVotes": tally["total_votes"],
                    "votesResponsables": tally["totals"].get(REPRESENTATIVES, 0),
                    "votesEtudiants": tally["totals"].get(STUDENTS, 0),
                    "totalInscrits": tally["total_tokens"],
                    "tauxParticipation": _pct(tally["participation_rate"]),
                },
                "resultats": [
                    {
                        "candidateId": row["candidate"].id,
                        "nom": row["candidate"].last_name,
                        "prenom": row["candidate"].first_name,
                        "scoreFinal": _pct(row["score"]),
                        "details": {
                            "votesResponsables": row["counts"].get(REPRESENTATIVES, 0),
                            "votesEtudiants": row["counts"].get(STUDENTS, 0),
                            "totalVotes": row["total_votes"],
                            "pourcentageResponsables": _pct(
                                row["percents"].get(REPRESENTATIVES, 0.0)
                            ),
                            "pourcentageEtudiants": _pct(
                                row["percents"].get(STUDENTS, 0.0)
                            ),
                        },
                    }
                    for row in tally["results"]
                ],
            }
        )

    @app.route("/vote/status/<int:election_id>", methods=["GET"])
    @login_required
    def vote_status(election_id):
        return jsonify(
            {"hasVoted": has_voted(current_user.id, election_id), "electionId": election_id}
        )
