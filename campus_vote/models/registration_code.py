from campus_vote.extensions import db
from campus_vote.services.clock import utcnow


class RegistrationCode(db.Model):
    __tablename__ = "registration_codes"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=True)
    is_used = db.Column(db.Boolean, nullable=False, default=False)
    used_at = db.Column(db.DateTime, nullable=True)
    generated_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    used_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    generated_by_user = db.relationship("User", foreign_keys=[generated_by], lazy=True)
    used_by_user = db.relationship("User", foreign_keys=[used_by], lazy=True)
