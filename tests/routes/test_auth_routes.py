from campus_vote.extensions import db
from campus_vote.models import RegistrationCode, Student, User


def _generate_code(client, headers):
    response = client.post("/codes/generate", headers=headers, json={"quantity": 1})
    assert response.status_code == 201
    return response.get_json()["data"]["codes"][0]


def _first_year(code, email="awa@ucao.example"):
    return {
        "email": email,
        "password": "motdepasse1",
        "nom": "Diallo",
        "prenom": "Awa",
        "filiere": "Droit",
        "annee": 1,
        "code": code,
    }


def test_first_year_registration_claims_the_code(client, auth_headers, admin_user):
    code = _generate_code(client, auth_headers(admin_user))

    response = client.post("/register", json=_first_year(code))
    assert response.status_code == 201

    user = db.session.get(User, response.get_json()["userId"])
    assert user.student.school == "FDE"
    assert user.student.registration_code == code
    claimed = RegistrationCode.query.filter_by(code=code).one()
    assert claimed.is_used
    assert claimed.used_by == user.id

    reuse = client.post("/register", json=_first_year(code, email="autre@ucao.example"))
    assert reuse.status_code == 400
    assert reuse.get_json()["message"] == "Code invalide ou déjà utilisé."
    assert User.query.filter_by(email="autre@ucao.example").first() is None


def test_first_year_registration_needs_a_code(client):
    response = client.post("/register", json=_first_year(""))
    assert response.status_code == 400
    assert response.get_json()["message"] == "Code requis pour la 1ère année."


def test_later_year_registration_claims_matricule(client, db_session):
    db_session.add(
        Student(last_name="Ba", first_name="Moussa", program="Economie", year=2, matricule="UUC-2023-001")
    )
    db_session.commit()
    body = {
        "email": "moussa@ucao.example",
        "password": "motdepasse1",
        "nom": "Ba",
        "prenom": "Moussa",
        "filiere": "Economie",
        "annee": 2,
        "matricule": "UUC-2023-001",
    }

    response = client.post("/register", json=body)
    assert response.status_code == 201
    student = Student.query.filter_by(matricule="UUC-2023-001").one()
    assert student.user_id == response.get_json()["userId"]

    again = client.post("/register", json={**body, "email": "autre@ucao.example"})
    assert again.get_json()["message"] == "Ce matricule est déjà utilisé."


def test_registration_rejects_duplicate_email(client, make_user, db_session):
    make_user(email="pris@ucao.example")
    db_session.commit()

    response = client.post("/register", json=_first_year("UCAO-0000-0000", email="pris@ucao.example"))
    assert response.status_code == 400
    assert response.get_json()["message"] == "Email déjà utilisé."


def test_login_and_me(client, make_student, user_password):
    student = make_student(program="Droit", year=3)

    response = client.post("/login", json={"email": student.user.email, "password": user_password})
    payload = response.get_json()
    assert response.status_code == 200
    assert payload["role"] == "ETUDIANT"

    me = client.get("/me", headers={"Authorization": f"Bearer {payload['token']}"})
    assert me.status_code == 200
    assert me.get_json()["etudiant"]["filiere"] == "Droit"


def test_login_failures(client, make_student, user_password):
    student = make_student()
    inactive = make_student(active=False)

    response = client.post("/login", json={"email": student.user.email, "password": "wrong-password"})
    assert response.status_code == 401

    response = client.post("/login", json={"email": inactive.user.email, "password": user_password})
    assert response.status_code == 403

    assert client.get("/me").status_code == 401
    assert client.get("/me", headers={"Authorization": "Bearer forged"}).status_code == 401


def test_change_password(client, auth_headers, make_student, user_password):
    student = make_student()
    headers = auth_headers(student.user)
    email = student.user.email

    wrong = client.post(
        "/change-password",
        headers=headers,
        json={"currentPassword": "nope", "newPassword": "nouveau-mdp", "confirmPassword": "nouveau-mdp"},
    )
    assert wrong.status_code == 401

    mismatch = client.post(
        "/change-password",
        headers=headers,
        json={"currentPassword": user_password, "newPassword": "nouveau-mdp", "confirmPassword": "autre-mdp"},
    )
    assert mismatch.status_code == 400

    ok = client.post(
        "/change-password",
        headers=headers,
        json={"currentPassword": user_password, "newPassword": "nouveau-mdp", "confirmPassword": "nouveau-mdp"},
    )
    assert ok.status_code == 200
    assert client.post("/login", json={"email": email, "password": "nouveau-mdp"}).status_code == 200


def test_codes_listing_filters_by_status(client, auth_headers, admin_user):
    headers = auth_headers(admin_user)
    used = _generate_code(client, headers)
    _generate_code(client, headers)
    client.post("/register", json=_first_year(used))

    unused = client.get("/codes?status=unused", headers=headers).get_json()["data"]
    assert unused["totalItems"] == 1
    used_codes = client.get("/codes?status=used", headers=headers).get_json()["data"]["codes"]
    assert [c["code"] for c in used_codes] == [used]
    assert used_codes[0]["usedBy"] == "awa@ucao.example"
    assert client.get("/codes?status=bogus", headers=headers).status_code == 400


def test_code_generation_limits(client, auth_headers, admin_user, make_student):
    response = client.post("/codes/generate", headers=auth_headers(admin_user), json={"quantity": 101})
    assert response.status_code == 400

    response = client.post("/codes/generate", headers=auth_headers(admin_user), json={"quantity": 3})
    assert len(response.get_json()["data"]["codes"]) == 3

    student = make_student()
    assert client.post("/codes/generate", headers=auth_headers(student.user), json={}).status_code == 403
