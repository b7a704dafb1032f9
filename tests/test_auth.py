PASSWORD = "password123"


def test_register_login_me(client):
    r = client.post(
        "/auth/register",
        json={"email": "new@example.com", "password": "longenough", "full_name": "New Teacher", "role": "teacher"},
    )
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "teacher"
    assert "hashed_password" not in r.json()

    r = client.post("/auth/login", json={"email": "new@example.com", "password": "longenough"})
    assert r.status_code == 200, r.text
    token = r.json()["access_token"]
    assert r.json()["token_type"] == "bearer"

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "new@example.com"


def test_register_defaults_to_student_and_rejects_duplicates(client):
    r = client.post("/auth/register", json={"email": "s@example.com", "password": "longenough"})
    assert r.status_code == 201
    assert r.json()["role"] == "student"

    again = client.post("/auth/register", json={"email": "s@example.com", "password": "longenough"})
    assert again.status_code == 400


def test_login_with_wrong_password(client):
    r = client.post("/auth/login", json={"email": "student1@example.com", "password": "not-it"})
    assert r.status_code == 401

    ok = client.post("/auth/login", json={"email": "student1@example.com", "password": PASSWORD})
    assert ok.status_code == 200


def test_protected_routes_need_a_valid_token(client):
    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_course_and_enrollment_flow(client, teacher_headers, student_headers, seed_data):
    r = client.post("/courses/", headers=teacher_headers, json={"title": "Databases"})
    assert r.status_code == 201, r.text
    course_id = r.json()["id"]
    assert r.json()["teacher_id"] == seed_data["teacher"]

    assert client.post("/courses/", headers=student_headers, json={"title": "Nope"}).status_code == 403

    r = client.post("/enrollments", headers=student_headers, json={"course_id": course_id})
    assert r.status_code == 201, r.text
    assert client.post("/enrollments", headers=student_headers, json={"course_id": course_id}).status_code == 409

    mine = client.get("/courses/me", headers=student_headers).json()
    assert {c["id"] for c in mine} == {seed_data["course"], course_id}

    taught = client.get("/courses/me", headers=teacher_headers).json()
    assert {c["id"] for c in taught} == {seed_data["course"], course_id}
