"""Decide which students may receive a vote token for an election.

Each election type maps to a policy, a plain callable taking
``(student, election)`` and returning a bool. The UNIVERSITY policy is read
from ``UNIVERSITY_ELIGIBILITY``: ``all`` admits every student, ``delegates``
only school delegates.
"""

from flask import current_app

from campus_vote.models import Student, User
from campus_vote.models.election import (
    ELECTION_ROOM,
    ELECTION_SCHOOL,
    ELECTION_UNIVERSITY,
)


def room_policy(student, election):
    return student.program == election.program and student.year == election.year


def school_policy(student, election):
    school = election.school_scope
    return school is not None and student.effective_school == school


def all_students_policy(student, election):
    return True


def school_delegates_policy(student, election):
    return bool(student.is_school_delegate)


UNIVERSITY_POLICIES = {
    "all": all_students_policy,
    "delegates": school_delegates_policy,
}


class EligibilityResolver:
    def __init__(self, policies=None, university_policy="all"):
        if university_policy not in UNIVERSITY_POLICIES:
            raise ValueError(f"Unknown university eligibility policy: {university_policy}")

        self.policies = {
            ELECTION_ROOM: room_policy,
            ELECTION_SCHOOL: school_policy,
            ELECTION_UNIVERSITY: UNIVERSITY_POLICIES[university_policy],
        }
        if policies:
            self.policies.update(policies)

    def is_eligible(self, student, election):
        if student is None or election is None:
            return False
        policy = self.policies.get(election.type)
        if policy is None:
            return False
        return bool(policy(student, election))

    def eligible_students(self, election):
        """Students with an active linked account who pass the election's policy."""
        query = (
            Student.query.join(User, Student.user_id == User.id)
            .filter(User.active.is_(True))
            .order_by(Student.id)
        )
        # Narrow in SQL where the policy is a simple column match.
        if election.type == ELECTION_ROOM and self.policies[ELECTION_ROOM] is room_policy:
            query = query.filter(
                Student.program == election.program, Student.year == election.year
            )

        return [student for student in query.all() if self.is_eligible(student, election)]


def get_resolver():
    return EligibilityResolver(
        university_policy=current_app.config.get("UNIVERSITY_ELIGIBILITY", "all")
    )


def is_eligible(student, election):
    return get_resolver().is_eligible(student, election)


def student_for_user(user_id):
    return Student.query.filter_by(user_id=user_id).first()
