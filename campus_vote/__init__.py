from flask import Flask, jsonify

from campus_vote.config import Config
from campus_vote.errors import register_error_handlers
from campus_vote.extensions import db, limiter, login_manager, migrate
from campus_vote.logging_config import configure_logging
from campus_vote.models import User
from campus_vote.routes import register_routes
from campus_vote.services.security import verify_session_token


def _warn_on_process_local_rate_limits(app):
    storage = str(app.config.get("RATELIMIT_STORAGE_URI", "memory://"))
    if app.testing or not app.config.get("RATELIMIT_ENABLED", True):
        return
    if storage.startswith("memory://"):
        app.logger.warning(
            "RATELIMIT_STORAGE_URI is %s: login limits are kept per process. "
            "Point it at a shared store such as redis:// in production.",
            storage,
        )


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    limiter.init_app(app)
    _warn_on_process_local_rate_limits(app)

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.request_loader
    def load_user_from_request(request):
        # Account session token only; vote tokens are never accepted here.
        scheme, _, token = request.headers.get("Authorization", "").partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return None

        payload = verify_session_token(token.strip())
        if payload is None:
            return None

        user = db.session.get(User, payload["uid"])
        if user is None or not user.is_active:
            return None
        return user

    @login_manager.unauthorized_handler
    def unauthorized():
        return (
            jsonify({"message": "Authentification requise", "code": "unauthorized"}),
            401,
        )

    register_error_handlers(app)
    register_routes(app)
    return app


__all__ = ["create_app", "db", "migrate"]
