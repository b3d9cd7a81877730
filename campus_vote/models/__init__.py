from campus_vote.models.candidate import Candidate
from campus_vote.models.election import Election
from campus_vote.models.registration_code import RegistrationCode
from campus_vote.models.student import Student
from campus_vote.models.user import User
from campus_vote.models.vote import Vote
from campus_vote.models.vote_token import VoteToken

__all__ = [
    "User",
    "Student",
    "Election",
    "Candidate",
    "VoteToken",
    "Vote",
    "RegistrationCode",
]
