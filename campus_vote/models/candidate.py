from campus_vote.extensions import db
from campus_vote.services.clock import utcnow

CANDIDATE_APPROVED = "APPROVED"
CANDIDATE_REJECTED = "REJECTED"
CANDIDATE_STATUSES = (CANDIDATE_APPROVED, CANDIDATE_REJECTED)


class Candidate(db.Model):
    __tablename__ = "candidates"
    __table_args__ = (
        db.UniqueConstraint("user_id", "election_id", name="uq_candidates_user_election"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    election_id = db.Column(
        db.Integer, db.ForeignKey("elections.id", ondelete="CASCADE"), nullable=False
    )
    last_name = db.Column(db.String(100), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    program_text = db.Column(db.Text, nullable=True)
    photo_url = db.Column(db.String(500), nullable=True)
    status = db.Column(db.String(20), nullable=False, default=CANDIDATE_APPROVED)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User", lazy=True)
    votes = db.relationship("Vote", backref="candidate", lazy=True, cascade="all, delete")
