from campus_vote.extensions import db
from campus_vote.services.academic import school_for_program


class Student(db.Model):
    __tablename__ = "students"

    id = db.Column(db.Integer, primary_key=True)
    # Null until the account is claimed at registration (pre-loaded matricules).
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), unique=True, nullable=True)
    last_name = db.Column(db.String(100), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    program = db.Column(db.String(200), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    school = db.Column(db.String(50), nullable=True)
    matricule = db.Column(db.String(50), unique=True, nullable=True)
    registration_code = db.Column(db.String(50), nullable=True)
    is_room_representative = db.Column(db.Boolean, nullable=False, default=False)
    is_school_delegate = db.Column(db.Boolean, nullable=False, default=False)

    @property
    def effective_school(self):
        return self.school or school_for_program(self.program)
