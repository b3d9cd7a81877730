from flask import current_app
from sqlalchemy.exc import IntegrityError

from campus_vote.errors import (
    AlreadyVoted,
    ElectionError,
    ElectionNotActive,
    InvalidCandidate,
)
from campus_vote.extensions import db
from campus_vote.models import Candidate, Election, Vote
from campus_vote.models.candidate import CANDIDATE_REJECTED
from campus_vote.services.clock import utcnow
from campus_vote.services.vote_tokens import consume, validate


def has_voted(user_id, election_id):
    return (
        Vote.query.filter_by(user_id=user_id, election_id=election_id).first()
        is not None
    )


def cast_vote(election_id, candidate_id, token_value, now=None):
    """Record one vote paid for with a vote token.

    The voter is whoever the token was issued to. Inserting the vote and
    consuming the token share one transaction: either both land or neither
    does. A concurrent duplicate is stopped by the conditional token update
    or, failing that, by the unique (user, election) constraint on votes.
    """
    now = now or utcnow()

    try:
        token = validate(token_value, election_id, lock=True, now=now)
        user_id = token.user_id

        # The token may outlive an election that has since been closed.
        election = db.session.get(Election, election_id)
        if election is None or not election.is_open_for_voting(now):
            raise ElectionNotActive()

        if has_voted(user_id, election_id):
            raise AlreadyVoted()

        candidate = db.session.get(Candidate, candidate_id)
        if (
            candidate is None
            or candidate.election_id != election_id
            or candidate.status == CANDIDATE_REJECTED
        ):
            raise InvalidCandidate()

        vote = Vote(
            user_id=user_id,
            election_id=election_id,
            candidate_id=candidate_id,
            created_at=now,
        )
        db.session.add(vote)
        db.session.flush()

        consume(token_value, now=now)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.info(
            "Duplicate vote rejected by constraint in election %s", election_id
        )
        raise AlreadyVoted() from None
    except ElectionError:
        db.session.rollback()
        raise

    current_app.logger.info("Vote recorded in election %s", election_id)
    return vote
