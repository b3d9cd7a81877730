from campus_vote.services.voting.weighted import (
    REPRESENTATIVES,
    STUDENTS,
    RepresentativeWeighting,
    WeightingPolicy,
    tally_weighted_election,
)

__all__ = [
    "REPRESENTATIVES",
    "STUDENTS",
    "RepresentativeWeighting",
    "WeightingPolicy",
    "tally_weighted_election",
]
