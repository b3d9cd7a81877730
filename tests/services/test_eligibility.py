from campus_vote.models import Student
from campus_vote.services.eligibility import EligibilityResolver, is_eligible


def test_room_election_requires_same_program_and_year(make_student, make_election):
    election = make_election("ROOM", program="Droit", year=2)

    assert is_eligible(make_student(program="Droit", year=2), election)
    assert not is_eligible(make_student(program="Droit", year=3), election)
    assert not is_eligible(make_student(program="Economie", year=2), election)


def test_school_election_uses_school_derived_from_program(make_student, make_election):
    election = make_election("SCHOOL", school="ESMEA")

    assert is_eligible(make_student(program="Commerce", year=1), election)
    assert is_eligible(make_student(program="Assurances", year=3), election)
    assert not is_eligible(make_student(program="Droit", year=1), election)


def test_university_policy_defaults_to_every_student(make_student, make_election):
    election = make_election("UNIVERSITY")

    assert is_eligible(make_student(program="Droit"), election)


def test_university_policy_can_be_restricted_to_delegates(app, make_student, make_election):
    election = make_election("UNIVERSITY")
    delegate = make_student(delegate=True)
    student = make_student()

    app.config["UNIVERSITY_ELIGIBILITY"] = "delegates"
    assert is_eligible(delegate, election)
    assert not is_eligible(student, election)


def test_policies_can_be_replaced_per_election_type(make_student, make_election):
    election = make_election("ROOM", program="Droit", year=2)
    student = make_student(program="Droit", year=2)

    resolver = EligibilityResolver(policies={"ROOM": lambda student, election: False})
    assert not resolver.is_eligible(student, election)


def test_missing_student_is_never_eligible(make_election):
    assert not EligibilityResolver().is_eligible(None, make_election("UNIVERSITY"))


def test_eligible_students_skips_inactive_and_unclaimed_records(
    db_session, make_student, make_election
):
    election = make_election("ROOM", program="Droit", year=1)
    eligible = make_student(program="Droit", year=1)
    make_student(program="Droit", year=1, active=False)
    make_student(program="Droit", year=2)
    db_session.add(
        Student(last_name="Sans", first_name="Compte", program="Droit", year=1, matricule="UUC-1")
    )
    db_session.commit()

    students = EligibilityResolver().eligible_students(election)
    assert [student.id for student in students] == [eligible.id]
