from fastapi.testclient import TestClient

from classquest.main import app

client = TestClient(app)


def _course_event(classroom, **overrides):
    payload = {
        "name": "Goblin raid",
        "type": "disaster",
        "rank": "B",
        "gold": -50,
        "health": -150,
        "experience": 10,
        "course_id": classroom["course"]["id"],
    }
    payload.update(overrides)
    r = client.post("/api/events", json=payload, headers=classroom["teacher"]["headers"])
    assert r.status_code == 201, r.text
    return r.json()


def test_event_scope_and_permissions(classroom, admin):
    teacher = classroom["teacher"]
    student = classroom["students"][0]
    global_payload = {"name": "Meteor shower", "type": "fortune", "gold": 20, "is_global": True}

    assert client.post("/api/events", json=global_payload, headers=teacher["headers"]).status_code == 403
    r = client.post("/api/events", json=global_payload, headers=admin["headers"])
    assert r.status_code == 201
    assert r.json()["rank"] == "D"

    r = client.post("/api/events", json={"name": "No scope"}, headers=teacher["headers"])
    assert r.status_code == 400
    r = client.post("/api/events", json={"name": "Bad rank", "rank": "Z", "course_id": classroom["course"]["id"]},
                    headers=teacher["headers"])
    assert r.status_code == 400
    r = client.post("/api/events", json={"name": "Student event", "course_id": classroom["course"]["id"]},
                    headers=student["headers"])
    assert r.status_code == 403

    _course_event(classroom)
    available = client.get("/api/events", params={"course_id": classroom["course"]["id"]},
                           headers=student["headers"]).json()
    assert {e["name"] for e in available} == {"Meteor shower", "Goblin raid"}
    assert [e["name"] for e in client.get("/api/events", headers=student["headers"]).json()] == ["Meteor shower"]


def test_apply_event_clamps_and_records_history(classroom):
    event = _course_event(classroom)
    first, second = classroom["students"]
    ids = [first["character"]["id"], second["character"]["id"], 9999]

    assert client.post(f"/api/events/{event['id']}/apply", json={"character_ids": ids},
                       headers=first["headers"]).status_code == 403

    r = client.post(f"/api/events/{event['id']}/apply", json={"character_ids": ids},
                    headers=classroom["teacher"]["headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["affected_characters"] == 2
    assert body["skipped"] == [9999]
    impact = body["impacts"][0]
    # health 100 - 150 floors at 0, gold 0 - 50 stays 0
    assert (impact["health_change"], impact["gold_change"], impact["experience_change"]) == (-100, 0, 10)

    character = client.get(f"/api/characters/{first['character']['id']}", headers=first["headers"]).json()
    assert (character["health"], character["gold"], character["experience"]) == (0, 0, 10)

    history = client.get(f"/api/events/history/character/{first['character']['id']}",
                         headers=first["headers"]).json()
    assert len(history) == 1
    assert history[0]["event_name"] == "Goblin raid"
    assert history[0]["health_change"] == -100
    assert len(client.get(f"/api/events/{event['id']}/history", headers=first["headers"]).json()) == 2

    # applied events cannot be deleted, only deactivated
    headers = classroom["teacher"]["headers"]
    assert client.delete(f"/api/events/{event['id']}", headers=headers).status_code == 409
    r = client.put(f"/api/events/{event['id']}", json={"is_active": False}, headers=headers)
    assert r.json()["is_active"] is False
    r = client.post(f"/api/events/{event['id']}/apply", json={"character_ids": ids[:1]}, headers=headers)
    assert r.status_code == 409


def test_apply_to_group_and_random(classroom):
    headers = classroom["teacher"]["headers"]
    group_id = classroom["group"]["id"]
    assert client.post("/api/events/random", json={"group_id": group_id}, headers=headers).status_code == 404

    event = _course_event(classroom, name="Harvest festival", type="fortune", gold=40, health=0, experience=0)
    r = client.post(f"/api/events/{event['id']}/apply-group", json={"group_id": group_id}, headers=headers)
    assert r.status_code == 200
    assert r.json()["affected_characters"] == 2

    r = client.post("/api/events/random", json={"group_id": group_id}, headers=headers)
    assert r.status_code == 200
    assert r.json()["event"]["id"] == event["id"]
    stats = client.get(f"/api/groups/{group_id}/statistics", headers=headers).json()
    assert stats["total_gold"] == 160

    student = classroom["students"][0]
    r = client.post("/api/events/random", json={"group_id": group_id}, headers=student["headers"])
    assert r.status_code == 403


def test_course_event_cannot_hit_another_course(classroom, teacher):
    other = client.post("/api/courses", json={"name": "Elsewhere"}, headers=teacher["headers"]).json()
    foreign = client.post("/api/events", json={"name": "Foreign storm", "course_id": other["id"], "energy": -5},
                          headers=teacher["headers"]).json()
    character_id = classroom["students"][0]["character"]["id"]
    r = client.post(f"/api/events/{foreign['id']}/apply", json={"character_ids": [character_id]},
                    headers=teacher["headers"])
    assert r.status_code == 400
