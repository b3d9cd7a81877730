from campus_vote.routes.admin import register_admin_routes
from campus_vote.routes.auth import register_auth_routes
from campus_vote.routes.candidates import register_candidate_routes
from campus_vote.routes.elections import register_election_routes
from campus_vote.routes.public import register_public_routes
from campus_vote.routes.vote import register_vote_routes


def register_routes(app):
    register_auth_routes(app)
    register_public_routes(app)
    register_admin_routes(app)
    register_election_routes(app)
    register_candidate_routes(app)
    register_vote_routes(app)
