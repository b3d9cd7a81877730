from flask_login import UserMixin

from campus_vote.extensions import db
from campus_vote.services.clock import utcnow

ROLE_STUDENT = "ETUDIANT"
ROLE_ADMIN = "ADMIN"


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(254), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_STUDENT)
    active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    student = db.relationship("Student", backref="user", uselist=False, lazy=True)

    @property
    def is_active(self):
        return bool(self.active)

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN
