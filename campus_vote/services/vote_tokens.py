"""Vote tokens: one-time, election-scoped, expiring voting capabilities.

A vote token is a random opaque string stored in ``vote_tokens``. Holding it
authorises exactly one vote in one election; it has nothing in common with
the signed account session tokens handed out at login.

There is at most one token row per (user, election). An expired, unused
token is rotated in place, so the unique constraint on the table is what
keeps a voter from holding two live tokens at once.
"""

import secrets
from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from campus_vote.errors import (
    AlreadyVoted,
    ElectionMismatch,
    ElectionNotActive,
    InvalidToken,
    NotEligible,
    NotFound,
    TokenAlreadyUsed,
    TokenExpired,
)
from campus_vote.extensions import db
from campus_vote.models import Election, Vote, VoteToken
from campus_vote.services.clock import utcnow
from campus_vote.services.eligibility import get_resolver, student_for_user


def generate_vote_token():
    return secrets.token_urlsafe(32)


def _token_expiry(election, now):
    ttl = timedelta(hours=current_app.config.get("VOTE_TOKEN_TTL_HOURS", 24))
    return min(now + ttl, election.vote_end)


def issue_or_get_token(user_id, election_id, now=None):
    """Return the caller's live token for the election, minting one if needed."""
    now = now or utcnow()

    election = db.session.get(Election, election_id)
    if election is None:
        raise NotFound("Élection non trouvée")
    if not election.is_open_for_voting(now):
        raise ElectionNotActive()

    student = student_for_user(user_id)
    if student is None:
        raise NotEligible("Accès refusé")
    if not get_resolver().is_eligible(student, election):
        raise NotEligible()

    if Vote.query.filter_by(user_id=user_id, election_id=election.id).first():
        raise AlreadyVoted()

    token = VoteToken.query.filter_by(user_id=user_id, election_id=election.id).first()
    if token is not None:
        if token.is_used:
            raise AlreadyVoted()
        if not token.is_expired(now):
            return token

        token.token = generate_vote_token()
        token.created_at = now
        token.expires_at = _token_expiry(election, now)
    else:
        token = VoteToken(
            token=generate_vote_token(),
            user_id=user_id,
            election_id=election.id,
            created_at=now,
            expires_at=_token_expiry(election, now),
        )
        db.session.add(token)

    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent first request for the same voter.
        db.session.rollback()
        token = VoteToken.query.filter_by(user_id=user_id, election_id=election_id).first()
        if token is None or token.is_used or token.is_expired(now):
            raise

    current_app.logger.info(
        "Vote token issued for user %s in election %s", user_id, election_id
    )
    return token


def validate(token_value, election_id, lock=False, now=None):
    """Check a token can be redeemed for ``election_id`` without consuming it."""
    now = now or utcnow()

    if not token_value:
        raise InvalidToken()

    query = VoteToken.query.filter_by(token=token_value)
    if lock:
        query = query.with_for_update()
    token = query.first()

    if token is None:
        raise InvalidToken()
    if token.is_expired(now):
        raise TokenExpired()
    if token.is_used:
        raise TokenAlreadyUsed()
    if token.election_id != election_id:
        raise ElectionMismatch()
    return token


def consume(token_value, now=None):
    """Flip ``is_used`` from false to true, failing if someone got there first.

    This is a single conditional UPDATE; the caller owns the transaction.
    """
    now = now or utcnow()
    result = db.session.execute(
        db.update(VoteToken)
        .where(VoteToken.token == token_value, VoteToken.is_used.is_(False))
        .values(is_used=True, used_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise TokenAlreadyUsed()


def issue_tokens_for_election(election, resolver=None, now=None):
    """Give every eligible student a token for a freshly created election.

    Each issuance is committed on its own. A failure is rolled back, logged
    and reported; the remaining students are still processed.
    """
    now = now or utcnow()
    resolver = resolver or get_resolver()

    election_id = election.id
    expires_at = election.vote_end
    user_ids = [student.user_id for student in resolver.eligible_students(election)]
    already_issued = {
        user_id
        for (user_id,) in db.session.query(VoteToken.user_id).filter_by(
            election_id=election_id
        )
    }

    current_app.logger.info(
        "Issuing vote tokens for election %s: %d eligible students",
        election_id,
        len(user_ids),
    )

    issued = 0
    skipped = 0
    failed = []
    for user_id in user_ids:
        if user_id in already_issued:
            skipped += 1
            continue

        try:
            db.session.add(
                VoteToken(
                    token=generate_vote_token(),
                    user_id=user_id,
                    election_id=election_id,
                    created_at=now,
                    expires_at=expires_at,
                )
            )
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.warning(
                "Could not issue vote token for user %s in election %s: %s",
                user_id,
                election_id,
                exc,
            )
            failed.append({"userId": user_id, "error": exc.__class__.__name__})
        else:
            issued += 1

    current_app.logger.info(
        "Vote tokens for election %s: %d issued, %d skipped, %d failed",
        election_id,
        issued,
        skipped,
        len(failed),
    )
    return {"issued": issued, "skipped": skipped, "failed": failed}
