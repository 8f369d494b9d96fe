import itertools
import os
import tempfile
from pathlib import Path

# point the app at a throwaway database before anything imports it
_TMP = Path(tempfile.mkdtemp(prefix="classquest-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["ADMIN_EMAILS"] = "admin@example.com"
os.environ["LOGIN_RATE_LIMIT"] = "5"
os.environ["TRUST_USER_HEADER"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from classquest import models
from classquest.database import engine
from classquest.main import app
from classquest.routers.auth import login_limiter


@pytest.fixture(autouse=True)
def reset_db():
    """Recreate every table (plus the character classes) for each test."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        session.add(models.CharacterClass(name="Mage", speed=8))
        session.add(models.CharacterClass(name="Warrior", speed=6))
        session.commit()
    login_limiter.reset()
    app.dependency_overrides.clear()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def register(client):
    """Factory: register a user and return its JSON plus auth headers."""
    counter = itertools.count(1)

    def _register(name=None, email=None, username=None, password="secret123"):
        n = next(counter)
        payload = {
            "name": name or f"User {n}",
            "email": email or f"user{n}@example.com",
            "username": username or f"user{n}",
            "password": password,
        }
        r = client.post("/api/auth/register", json=payload)
        assert r.status_code == 201, r.text
        body = r.json()
        return {"user": body["user"], "token": body["token"],
                "headers": {"Authorization": f"Bearer {body['token']}"}}

    return _register


@pytest.fixture
def admin(register):
    return register(name="Admin", email="admin@example.com", username="admin")


@pytest.fixture
def make_teacher(client, register, admin):
    def _make(**kwargs):
        account = register(**kwargs)
        r = client.post("/api/teachers", json={"user_id": account["user"]["id"]}, headers=admin["headers"])
        assert r.status_code == 201, r.text
        account["teacher"] = r.json()
        return account

    return _make


@pytest.fixture
def teacher(make_teacher):
    return make_teacher(name="Teacher", email="teacher@example.com", username="teacher")


def enrol(client, teacher_account, student, course_id):
    """Invite `student` by email and accept; returns the member id."""
    r = client.post("/api/invitations", json={
        "course_id": course_id, "name": "Welcome aboard", "email": student["user"]["email"],
    }, headers=teacher_account["headers"])
    assert r.status_code == 201, r.text
    r = client.post(f"/api/invitations/{r.json()['id']}/accept", headers=student["headers"])
    assert r.status_code == 200, r.text
    r = client.get(f"/api/courses/{course_id}/unassigned", headers=teacher_account["headers"])
    return next(m["member_id"] for m in r.json() if m["user_id"] == student["user"]["id"])


@pytest.fixture
def classroom(client, register, teacher):
    """A course with one group holding two students that each have a character."""
    course = client.post("/api/courses", json={"name": "Potions 101"}, headers=teacher["headers"]).json()
    group = client.post("/api/groups", json={"course_id": course["id"], "name": "Red Team"},
                        headers=teacher["headers"]).json()
    classes = client.get("/api/characters/classes", headers=teacher["headers"]).json()
    students = []
    for n in range(2):
        student = register(name=f"Student {n}")
        student["member_id"] = enrol(client, teacher, student, course["id"])
        r = client.post("/api/characters", json={
            "course_id": course["id"], "class_id": classes[n]["id"], "name": f"Hero {n}",
        }, headers=student["headers"])
        assert r.status_code == 201, r.text
        student["character"] = r.json()
        students.append(student)
    r = client.post(f"/api/groups/{group['id']}/members",
                    json={"member_ids": [s["member_id"] for s in students]}, headers=teacher["headers"])
    assert r.status_code == 200, r.text
    return {"course": course, "group": group, "teacher": teacher, "students": students}
