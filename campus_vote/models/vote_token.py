from campus_vote.extensions import db
from campus_vote.services.clock import utcnow


class VoteToken(db.Model):
    __tablename__ = "vote_tokens"
    # One row per voter and election; an expired unused token is rotated in place.
    __table_args__ = (
        db.UniqueConstraint("user_id", "election_id", name="uq_vote_tokens_user_election"),
    )

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    election_id = db.Column(
        db.Integer, db.ForeignKey("elections.id", ondelete="CASCADE"), nullable=False
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)
    is_used = db.Column(db.Boolean, nullable=False, default=False)
    used_at = db.Column(db.DateTime, nullable=True)

    def is_expired(self, now=None):
        return (now or utcnow()) >= self.expires_at
