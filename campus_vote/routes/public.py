from flask import jsonify

from campus_vote.services.academic import SCHOOLS, YEARS, all_programs


def register_public_routes(app):
    @app.route("/config/academic")
    def academic_config():
        return jsonify(
            {
                "ecoles": SCHOOLS,
                "annees": YEARS,
                "filieres": all_programs(),
            }
        )
