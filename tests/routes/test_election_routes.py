from datetime import timedelta

from campus_vote.extensions import db
from campus_vote.models import Candidate, Election, Vote, VoteToken
from campus_vote.services.clock import isoformat, utcnow


def _windows(**overrides):
    now = utcnow()
    windows = {
        "dateDebutCandidature": isoformat(now - timedelta(days=2)),
        "dateFinCandidature": isoformat(now - timedelta(days=1)),
        "dateDebut": isoformat(now - timedelta(hours=1)),
        "dateFin": isoformat(now + timedelta(days=1)),
    }
    windows.update(overrides)
    return windows


def test_create_room_election_issues_tokens(client, auth_headers, admin_user, make_student):
    voters = [make_student(program="Droit", year=2) for _ in range(2)]
    make_student(program="Droit", year=3)

    response = client.post(
        "/elections",
        headers=auth_headers(admin_user),
        json={"type": "SALLE", "titre": "Responsable L2 Droit", "filiere": "Droit", "annee": 2, **_windows()},
    )
    payload = response.get_json()

    assert response.status_code == 201
    assert payload["tokens"] == {"issued": 2, "skipped": 0, "failed": []}
    election = db.session.get(Election, payload["electionId"])
    assert election.type == "ROOM"
    assert election.school == "FDE"
    assert {t.user_id for t in election.vote_tokens} == {v.user_id for v in voters}


def test_create_election_validation(client, auth_headers, admin_user):
    headers = auth_headers(admin_user)

    response = client.post("/elections", headers=headers, json={"type": "CLUB", "titre": "x", **_windows()})
    assert response.get_json()["message"] == "Type d'élection invalide"

    response = client.post("/elections", headers=headers, json={"type": "ROOM", "titre": "x", **_windows()})
    assert response.get_json()["message"] == "Les élections par salle nécessitent filière et année"

    response = client.post("/elections", headers=headers, json={"type": "ECOLE", "titre": "x", **_windows()})
    assert response.status_code == 400

    now = utcnow()
    response = client.post(
        "/elections",
        headers=headers,
        json={
            "type": "UNIVERSITE",
            "titre": "x",
            **_windows(dateFinCandidature=isoformat(now + timedelta(hours=2))),
        },
    )
    assert response.status_code == 400
    assert Election.query.count() == 0


def test_create_election_requires_admin(client, auth_headers, make_student):
    student = make_student()

    response = client.post(
        "/elections",
        headers=auth_headers(student.user),
        json={"type": "UNIVERSITY", "titre": "x", **_windows()},
    )
    assert response.status_code == 403
    assert client.post("/elections", json={}).status_code == 401


def test_list_elections_hides_closed_and_inactive(client, make_election, make_candidate):
    open_election = make_election("UNIVERSITY", title="Ouverte")
    make_candidate(open_election)
    make_election("UNIVERSITY", title="Finie", phase="ended")
    make_election("UNIVERSITY", title="Désactivée", is_active=False)

    payload = client.get("/elections").get_json()

    assert [e["titre"] for e in payload] == ["Ouverte"]
    assert len(payload[0]["candidates"]) == 1
    assert payload[0]["totalVotes"] == 0


def test_list_by_type_accepts_front_end_names(client, make_election):
    make_election("ROOM", program="Droit", year=2, title="Salle")
    make_election("SCHOOL", school="FDE", title="Ecole")

    assert [e["titre"] for e in client.get("/elections/by-type/salle").get_json()] == ["Salle"]
    assert [e["titre"] for e in client.get("/elections/by-type/SCHOOL?ecole=fde").get_json()] == ["Ecole"]
    assert client.get("/elections/by-type/SCHOOL?ecole=ESMEA").get_json() == []
    assert client.get("/elections/by-type/club").status_code == 400


def test_election_detail_reports_status_and_stats(client, make_election):
    election = make_election("UNIVERSITY", phase="ended")

    payload = client.get(f"/elections/{election.id}").get_json()

    assert payload["statut"] == "CLOSED"
    assert payload["stats"] == {"totalVotes": 0, "totalTokens": 0, "participationRate": 0.0}
    assert client.get("/elections/999").status_code == 404


def test_close_election_ends_voting(client, auth_headers, admin_user, make_election, make_student):
    election = make_election("UNIVERSITY")
    voter = make_student()

    response = client.put(f"/elections/{election.id}/close", headers=auth_headers(admin_user))
    assert response.status_code == 200

    election = db.session.get(Election, election.id)
    assert not election.is_active
    assert election.vote_end <= utcnow()
    assert election.status() == "CLOSED"

    response = client.get(f"/vote/token/{election.id}", headers=auth_headers(voter.user))
    assert response.status_code == 400

    again = client.put(f"/elections/{election.id}/close", headers=auth_headers(admin_user))
    assert again.status_code == 400
    assert again.get_json()["message"] == "Cette élection est déjà clôturée"


def test_delete_election_removes_dependents(
    client, db_session, auth_headers, admin_user, make_election, make_candidate, make_student
):
    election = make_election("UNIVERSITY")
    candidate = make_candidate(election)
    voter = make_student()
    db_session.add_all(
        [
            VoteToken(
                token="tok-delete",
                user_id=voter.user_id,
                election_id=election.id,
                expires_at=election.vote_end,
                is_used=True,
            ),
            Vote(user_id=voter.user_id, election_id=election.id, candidate_id=candidate.id),
        ]
    )
    db_session.commit()
    election_id = election.id

    response = client.delete(f"/elections/{election_id}", headers=auth_headers(admin_user))

    assert response.status_code == 200
    assert db.session.get(Election, election_id) is None
    assert Candidate.query.count() == 0
    assert VoteToken.query.count() == 0
    assert Vote.query.count() == 0
