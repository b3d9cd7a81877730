"""Expected, user-facing failures of the election core.

Every class carries the HTTP status and the stable message returned to the
client. Anything that is not an ``ElectionError`` is treated as a server
fault by the handlers registered in :func:`register_error_handlers`.
"""

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from campus_vote.extensions import db


class ElectionError(Exception):
    status_code = 400
    code = "election_error"
    message = "Requête invalide"

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self):
        return {"message": self.message, "code": self.code}


class ValidationError(ElectionError):
    code = "validation_error"
    message = "Champs requis manquants"


class Unauthorized(ElectionError):
    status_code = 401
    code = "unauthorized"
    message = "Authentification requise"


class Forbidden(ElectionError):
    status_code = 403
    code = "forbidden"
    message = "Accès refusé"


class NotEligible(Forbidden):
    code = "not_eligible"
    message = "Vous n'êtes pas éligible pour cette élection"


class NotFound(ElectionError):
    status_code = 404
    code = "not_found"
    message = "Ressource introuvable"


class ElectionNotActive(ElectionError):
    code = "election_not_active"
    message = "Cette élection n'est pas active"


class InvalidToken(ElectionError):
    code = "invalid_token"
    message = "Jeton de vote invalide"


class TokenExpired(ElectionError):
    code = "token_expired"
    message = "Jeton de vote expiré"


class TokenAlreadyUsed(ElectionError):
    code = "token_already_used"
    message = "Jeton de vote déjà utilisé"


class ElectionMismatch(ElectionError):
    code = "election_mismatch"
    message = "Ce jeton n'appartient pas à cette élection"


class AlreadyVoted(ElectionError):
    code = "already_voted"
    message = "Vous avez déjà voté pour cette élection"


class InvalidCandidate(ElectionError):
    code = "invalid_candidate"
    message = "Candidat invalide pour cette élection"


def register_error_handlers(app):
    @app.errorhandler(ElectionError)
    def handle_election_error(error):
        db.session.rollback()
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({"message": error.description, "code": error.name}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"message": "Erreur serveur", "code": "server_error"}), 500