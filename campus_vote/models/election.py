from campus_vote.extensions import db
from campus_vote.services.academic import school_for_program
from campus_vote.services.clock import utcnow

ELECTION_ROOM = "ROOM"
ELECTION_SCHOOL = "SCHOOL"
ELECTION_UNIVERSITY = "UNIVERSITY"
ELECTION_TYPES = (ELECTION_ROOM, ELECTION_SCHOOL, ELECTION_UNIVERSITY)

# Names used by the front end.
ELECTION_TYPE_ALIASES = {
    "SALLE": ELECTION_ROOM,
    "ECOLE": ELECTION_SCHOOL,
    "UNIVERSITE": ELECTION_UNIVERSITY,
}

STATUS_UPCOMING = "UPCOMING"
STATUS_CANDIDACY = "CANDIDACY"
STATUS_VOTING = "VOTING"
STATUS_CLOSED = "CLOSED"


def normalize_election_type(value):
    key = (value or "").strip().upper()
    key = ELECTION_TYPE_ALIASES.get(key, key)
    return key if key in ELECTION_TYPES else None


class Election(db.Model):
    __tablename__ = "elections"

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(20), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Scope: program + year for ROOM, school for SCHOOL, nothing for UNIVERSITY.
    program = db.Column(db.String(200), nullable=True)
    year = db.Column(db.Integer, nullable=True)
    school = db.Column(db.String(50), nullable=True)

    candidacy_start = db.Column(db.DateTime, nullable=False)
    candidacy_end = db.Column(db.DateTime, nullable=False)
    vote_start = db.Column(db.DateTime, nullable=False)
    vote_end = db.Column(db.DateTime, nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    candidates = db.relationship(
        "Candidate",
        backref="election",
        lazy=True,
        cascade="all, delete",
        order_by="Candidate.id",
    )
    vote_tokens = db.relationship(
        "VoteToken", backref="election", lazy=True, cascade="all, delete"
    )
    votes = db.relationship(
        "Vote", backref="election", lazy=True, cascade="all, delete"
    )

    @property
    def school_scope(self):
        if self.type == ELECTION_UNIVERSITY:
            return None
        return self.school or school_for_program(self.program)

    def is_closed(self, now=None):
        now = now or utcnow()
        return not self.is_active or now >= self.vote_end

    def is_open_for_voting(self, now=None):
        now = now or utcnow()
        return self.is_active and self.vote_start <= now < self.vote_end

    def is_open_for_candidacy(self, now=None):
        now = now or utcnow()
        return self.is_active and self.candidacy_start <= now < self.candidacy_end

    def status(self, now=None):
        now = now or utcnow()
        if self.is_closed(now):
            return STATUS_CLOSED
        if self.is_open_for_voting(now):
            return STATUS_VOTING
        if self.is_open_for_candidacy(now):
            return STATUS_CANDIDACY
        return STATUS_UPCOMING
