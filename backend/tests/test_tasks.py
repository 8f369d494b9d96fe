import pytest
from fastapi.testclient import TestClient
from sqlalchemy import update
from sqlmodel import Session

from classquest import models
from classquest.database import engine
from classquest.errors import ConflictError
from classquest.main import app
from classquest.services import TaskService

client = TestClient(app)


def _task(classroom, **overrides):
    payload = {"course_id": classroom["course"]["id"], "name": "Write an essay", "experience": 120, "gold": 30}
    payload.update(overrides)
    r = client.post("/api/tasks", json=payload, headers=classroom["teacher"]["headers"])
    assert r.status_code == 201, r.text
    return r.json()


def test_task_validation_and_permissions(classroom):
    course_id = classroom["course"]["id"]
    student = classroom["students"][0]
    r = client.post("/api/tasks", json={"course_id": course_id, "name": "ab", "experience": -5},
                    headers=classroom["teacher"]["headers"])
    assert r.status_code == 400
    assert {e["field"] for e in r.json()["errors"]} == {"name", "experience"}
    r = client.post("/api/tasks", json={"course_id": course_id, "name": "Sneaky task"}, headers=student["headers"])
    assert r.status_code == 403


def test_assign_to_group_skips_existing_rows(classroom):
    task = _task(classroom)
    group_id = classroom["group"]["id"]
    headers = classroom["teacher"]["headers"]
    r = client.post(f"/api/tasks/{task['id']}/assign", json={"group_ids": [group_id]}, headers=headers)
    assert r.json() == {"task_id": task["id"], "assigned": 2, "skipped": 0}
    r = client.post(f"/api/tasks/{task['id']}/assign", json={"group_ids": [group_id]}, headers=headers)
    assert r.json() == {"task_id": task["id"], "assigned": 0, "skipped": 2}
    listed = client.get("/api/tasks", params={"course_id": classroom["course"]["id"]}, headers=headers).json()
    assert listed[0]["assigned_count"] == 2


def test_complete_pays_rewards_exactly_once(classroom):
    task = _task(classroom, energy=-20)
    client.post(f"/api/tasks/{task['id']}/assign", json={"group_ids": [classroom["group"]["id"]]},
                headers=classroom["teacher"]["headers"])
    student = classroom["students"][0]
    character_id = student["character"]["id"]

    mine = client.get("/api/tasks", params={"character_id": character_id}, headers=student["headers"]).json()
    assert [(t["id"], t["completed"]) for t in mine] == [(task["id"], False)]

    r = client.post(f"/api/tasks/{task['id']}/complete", json={"character_id": character_id}, headers=student["headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["rewards"] == {"experience": 120, "gold": 30, "energy": -20, "health": 0}
    assert body["character"]["experience"] == 120
    assert body["character"]["level"] == 2

    r = client.post(f"/api/tasks/{task['id']}/complete", json={"character_id": character_id}, headers=student["headers"])
    assert r.status_code == 409
    character = client.get(f"/api/characters/{character_id}", headers=student["headers"]).json()
    assert (character["experience"], character["gold"], character["energy"]) == (120, 30, 80)

    progress = client.get(f"/api/tasks/{task['id']}/progress", headers=student["headers"]).json()
    assert progress == {"task_id": task["id"], "assigned": 2, "completed": 1, "percentage": 50.0}


def test_completion_authorization(classroom):
    task = _task(classroom)
    first, second = classroom["students"]
    url = f"/api/tasks/{task['id']}/complete"

    # not assigned yet
    r = client.post(url, json={"character_id": first["character"]["id"]}, headers=first["headers"])
    assert r.status_code == 403
    # someone else's character
    r = client.post(url, json={"character_id": first["character"]["id"]}, headers=second["headers"])
    assert r.status_code == 403
    r = client.post(url, json={"character_id": 9999}, headers=first["headers"])
    assert r.status_code == 404
    r = client.post("/api/tasks/9999/complete", json={"character_id": first["character"]["id"]}, headers=first["headers"])
    assert r.status_code == 404

    # a teacher may award an unassigned task directly
    r = client.post(url, json={"character_id": first["character"]["id"]}, headers=classroom["teacher"]["headers"])
    assert r.status_code == 200
    assert r.json()["completed"] is True


def test_character_from_another_course_is_rejected(classroom, register):
    teacher = classroom["teacher"]
    other = client.post("/api/courses", json={"name": "Other course"}, headers=teacher["headers"]).json()
    foreign_task = client.post("/api/tasks", json={"course_id": other["id"], "name": "Elsewhere"},
                               headers=teacher["headers"]).json()
    character_id = classroom["students"][0]["character"]["id"]
    r = client.post(f"/api/tasks/{foreign_task['id']}/complete", json={"character_id": character_id},
                    headers=teacher["headers"])
    assert r.status_code == 403


def test_energy_and_health_are_capped(classroom):
    task = _task(classroom, experience=0, gold=0, energy=50, health=50)
    character_id = classroom["students"][0]["character"]["id"]
    r = client.post(f"/api/tasks/{task['id']}/complete", json={"character_id": character_id},
                    headers=classroom["teacher"]["headers"])
    assert r.json()["rewards"] == {"experience": 0, "gold": 0, "energy": 0, "health": 0}
    assert r.json()["character"]["energy"] == 100


def test_update_and_delete_task(classroom):
    task = _task(classroom)
    headers = classroom["teacher"]["headers"]
    r = client.put(f"/api/tasks/{task['id']}", json={"gold": 99, "due_date": "2026-12-01"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["gold"] == 99
    assert r.json()["due_date"] == "2026-12-01"
    client.post(f"/api/tasks/{task['id']}/assign", json={"group_ids": [classroom["group"]["id"]]}, headers=headers)
    assert client.delete(f"/api/tasks/{task['id']}", headers=headers).status_code == 204
    assert client.get(f"/api/tasks/{task['id']}", headers=headers).status_code == 404
    character_id = classroom["students"][0]["character"]["id"]
    assert client.get("/api/tasks", params={"character_id": character_id}, headers=headers).json() == []


def test_completion_claim_rejects_row_completed_underneath(classroom):
    task = _task(classroom)
    client.post(f"/api/tasks/{task['id']}/assign", json={"group_ids": [classroom["group"]["id"]]},
                headers=classroom["teacher"]["headers"])
    student = classroom["students"][0]
    character_id = student["character"]["id"]

    with Session(engine) as session:
        user = session.get(models.User, student["user"]["id"])
        service = TaskService(session, user)
        loaded = service.repo.get_assignment(task["id"], character_id)
        assert loaded.completed is False
        # another request completes the row after this session loaded it
        with engine.begin() as conn:
            conn.execute(
                update(models.CharacterTask)
                .where(models.CharacterTask.id == loaded.id)
                .values(completed=True)
            )
        with pytest.raises(ConflictError):
            service.complete(task["id"], character_id)

    character = client.get(f"/api/characters/{character_id}", headers=student["headers"]).json()
    assert (character["experience"], character["gold"]) == (0, 0)
