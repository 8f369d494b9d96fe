from fastapi.testclient import TestClient

from classquest.main import app

client = TestClient(app)


def test_character_creation_rules(register, teacher):
    course = client.post("/api/courses", json={"name": "Drama"}, headers=teacher["headers"]).json()
    student = register()
    classes = client.get("/api/characters/classes", headers=student["headers"]).json()
    assert [c["name"] for c in classes] == ["Mage", "Warrior"]
    payload = {"course_id": course["id"], "class_id": classes[0]["id"], "name": "Merlin"}

    # must be enrolled first
    assert client.post("/api/characters", json=payload, headers=student["headers"]).status_code == 403

    inv = client.post("/api/invitations", json={"course_id": course["id"], "name": "Drama club"},
                      headers=teacher["headers"]).json()
    client.post("/api/invitations/redeem", json={"code": inv["code"]}, headers=student["headers"])

    check = client.get("/api/characters/check", params={"course_id": course["id"]}, headers=student["headers"])
    assert check.json() == {"has_character": False, "character_id": None}
    assert client.get(f"/api/characters/course/{course['id']}", headers=student["headers"]).status_code == 404

    bad = dict(payload, class_id=9999)
    assert client.post("/api/characters", json=bad, headers=student["headers"]).status_code == 404

    r = client.post("/api/characters", json=payload, headers=student["headers"])
    assert r.status_code == 201
    character = r.json()
    assert character["class"]["name"] == "Mage"
    assert (character["energy"], character["health"], character["level"]) == (100, 100, 1)

    assert client.post("/api/characters", json=payload, headers=student["headers"]).status_code == 409
    check = client.get("/api/characters/check", params={"course_id": course["id"]}, headers=student["headers"])
    assert check.json() == {"has_character": True, "character_id": character["id"]}


def test_teacher_stat_adjustment_is_clamped(classroom):
    teacher = classroom["teacher"]
    student = classroom["students"][0]
    character_id = student["character"]["id"]

    r = client.post(f"/api/characters/{character_id}/stats", json={"gold": 5}, headers=student["headers"])
    assert r.status_code == 403

    r = client.post(f"/api/characters/{character_id}/stats",
                    json={"experience": 250, "gold": -40, "reason": "helped a classmate"}, headers=teacher["headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["experience"] == 250
    assert body["gold"] == 0
    assert body["applied"]["gold"] == 0
    assert body["level"] == 3


def test_bulk_adjustment_requires_single_course(classroom, teacher):
    ids = [s["character"]["id"] for s in classroom["students"]]
    r = client.put("/api/characters/stats", json={"items": [
        {"character_id": ids[0], "experience": 10},
        {"character_id": ids[1], "gold": 7, "health": -30},
    ]}, headers=teacher["headers"])
    assert r.status_code == 200
    results = {row["character_id"]: row for row in r.json()}
    assert results[ids[0]]["experience"] == 10
    assert (results[ids[1]]["gold"], results[ids[1]]["health"]) == (7, 70)

    r = client.put("/api/characters/stats", json={"items": [{"character_id": 9999, "gold": 1}]},
                   headers=teacher["headers"])
    assert r.status_code == 404


def test_other_students_cannot_view_a_character(classroom):
    first, second = classroom["students"]
    r = client.get(f"/api/characters/{first['character']['id']}", headers=second["headers"])
    assert r.status_code == 403
    r = client.get(f"/api/characters/{first['character']['id']}", headers=classroom["teacher"]["headers"])
    assert r.status_code == 200
    assert r.json()["group_id"] == classroom["group"]["id"]
