"""Two-tier weighted tally.

Voters are split into constituencies by a weighting policy. Each candidate
gets a percentage of every constituency's votes, and the final score is the
weighted sum of those percentages. With the default policy room
representatives of the election's school weigh 60% and everyone else 40%,
whatever the size of each group.
"""

from flask import current_app

from campus_vote.models import Student
from campus_vote.models.candidate import CANDIDATE_REJECTED

REPRESENTATIVES = "RESPONSABLES"
STUDENTS = "ETUDIANTS"


class WeightingPolicy:
    constituencies = (REPRESENTATIVES, STUDENTS)

    def classify(self, student, election):
        raise NotImplementedError

    def weight(self, constituency):
        raise NotImplementedError


class RepresentativeWeighting(WeightingPolicy):
    """Room representatives of the election's school vs. every other voter."""

    def __init__(self, representative_weight=0.6, student_weight=0.4):
        self.weights = {
            REPRESENTATIVES: float(representative_weight),
            STUDENTS: float(student_weight),
        }

    def classify(self, student, election):
        if student is None or not student.is_room_representative:
            return STUDENTS

        # A representative of another school counts as an ordinary voter.
        scope = election.school_scope
        if scope is None or student.effective_school == scope:
            return REPRESENTATIVES
        return STUDENTS

    def weight(self, constituency):
        return self.weights.get(constituency, 0.0)


def default_weighting():
    return RepresentativeWeighting(
        representative_weight=current_app.config.get("REPRESENTATIVE_WEIGHT", 0.6),
        student_weight=current_app.config.get("STUDENT_WEIGHT", 0.4),
    )


def tally_weighted_election(election, policy=None, now=None):
    policy = policy or default_weighting()
    constituencies = policy.constituencies

    candidates = [
        candidate
        for candidate in election.candidates
        if candidate.status != CANDIDATE_REJECTED
    ]
    counts = {
        candidate.id: {constituency: 0 for constituency in constituencies}
        for candidate in candidates
    }
    totals = {constituency: 0 for constituency in constituencies}

    votes = election.votes
    user_ids = {vote.user_id for vote in votes}
    students_by_user = {}
    if user_ids:
        students_by_user = {
            student.user_id: student
            for student in Student.query.filter(Student.user_id.in_(user_ids)).all()
        }

    # Totals cover every recorded vote, including votes for a candidate
    # that is no longer listed.
    for vote in votes:
        constituency = policy.classify(students_by_user.get(vote.user_id), election)
        if constituency not in totals:
            continue
        totals[constituency] += 1
        if vote.candidate_id in counts:
            counts[vote.candidate_id][constituency] += 1

    results = []
    for candidate in candidates:
        candidate_counts = counts[candidate.id]
        percents = {
            constituency: (
                candidate_counts[constituency] / totals[constituency] * 100
                if totals[constituency] > 0
                else 0.0
            )
            for constituency in constituencies
        }
        score = sum(
            policy.weight(constituency) * percents[constituency]
            for constituency in constituencies
        )
        results.append(
            {
                "candidate": candidate,
                "counts": candidate_counts,
                "percents": percents,
                "total_votes": sum(candidate_counts.values()),
                "score": score,
            }
        )

    # Unrounded scores; ties keep candidate order.
    results.sort(key=lambda row: -row["score"])

    winners = []
    if results and results[0]["score"] > 0:
        top_score = results[0]["score"]
        winners = [row["candidate"] for row in results if row["score"] == top_score]

    total_votes = len(votes)
    total_tokens = len(election.vote_tokens)
    participation_rate = (total_votes / total_tokens * 100) if total_tokens > 0 else 0.0

    return {
        "status": election.status(now),
        "total_votes": total_votes,
        "totals": totals,
        "total_tokens": total_tokens,
        "participation_rate": participation_rate,
        "results": results,
        "winner": winners[0] if len(winners) == 1 else None,
        "winners": winners,
        "is_tie": len(winners) > 1,
    }
