from fastapi.testclient import TestClient

from classquest.main import app

client = TestClient(app)


def test_only_teachers_create_courses(register, teacher):
    student = register()
    assert client.post("/api/courses", json={"name": "Biology"}, headers=student["headers"]).status_code == 403
    r = client.post("/api/courses", json={"name": "Biology"}, headers=teacher["headers"])
    assert r.status_code == 201
    teaching = client.get("/api/courses/teaching", headers=teacher["headers"]).json()
    assert [c["name"] for c in teaching] == ["Biology"]
    assert client.get(f"/api/courses/{r.json()['id']}", headers=student["headers"]).status_code == 403


def test_invitation_accept_flow(register, teacher):
    course = client.post("/api/courses", json={"name": "Chemistry"}, headers=teacher["headers"]).json()
    student = register()
    intruder = register()

    r = client.post("/api/invitations", json={
        "course_id": course["id"], "name": "Join chemistry", "email": student["user"]["email"],
    }, headers=teacher["headers"])
    assert r.status_code == 201
    inv = r.json()
    assert len(inv["code"]) == 8

    assert client.get("/api/invitations/count", headers=student["headers"]).json() == {"count": 1}
    assert client.get("/api/notifications/unread-count", headers=student["headers"]).json() == {"count": 1}
    pending = client.get("/api/invitations", headers=student["headers"]).json()
    assert [p["id"] for p in pending] == [inv["id"]]

    assert client.post(f"/api/invitations/{inv['id']}/accept", headers=intruder["headers"]).status_code == 403
    r = client.post(f"/api/invitations/{inv['id']}/accept", headers=student["headers"])
    assert r.status_code == 200
    assert r.json()["used"] is True
    assert r.json()["already_enrolled"] is False
    assert client.post(f"/api/invitations/{inv['id']}/accept", headers=student["headers"]).status_code == 409
    assert client.post("/api/invitations/9999/accept", headers=student["headers"]).status_code == 404

    enrolled = client.get("/api/courses/enrolled", headers=student["headers"]).json()
    assert [c["id"] for c in enrolled] == [course["id"]]
    assert client.get("/api/invitations/count", headers=student["headers"]).json() == {"count": 0}
    sent = client.get("/api/invitations/sent", headers=teacher["headers"]).json()
    assert sent[0]["used"] is True


def test_invitation_for_unknown_email_and_non_teacher(register, teacher):
    course = client.post("/api/courses", json={"name": "Physics"}, headers=teacher["headers"]).json()
    outsider = register()
    r = client.post("/api/invitations", json={
        "course_id": course["id"], "name": "Join physics", "email": "ghost@example.com",
    }, headers=teacher["headers"])
    assert r.status_code == 404
    r = client.post("/api/invitations", json={"course_id": course["id"], "name": "Join physics"},
                    headers=outsider["headers"])
    assert r.status_code == 403


def test_open_code_is_single_use(register, teacher):
    course = client.post("/api/courses", json={"name": "History"}, headers=teacher["headers"]).json()
    inv = client.post("/api/invitations", json={"course_id": course["id"], "name": "Open seat"},
                      headers=teacher["headers"]).json()
    first, second = register(), register()
    r = client.post("/api/invitations/redeem", json={"code": inv["code"]}, headers=first["headers"])
    assert r.status_code == 200
    assert r.json()["user_id"] == first["user"]["id"]
    r = client.post("/api/invitations/redeem", json={"code": inv["code"]}, headers=second["headers"])
    assert r.status_code == 409
    r = client.post("/api/invitations/redeem", json={"code": "ZZZZZZZZ"}, headers=second["headers"])
    assert r.status_code == 404


def test_open_invitation_cannot_be_used_by_id(register, teacher):
    course = client.post("/api/courses", json={"name": "Secret club"}, headers=teacher["headers"]).json()
    inv = client.post("/api/invitations", json={"course_id": course["id"], "name": "Open seat"},
                      headers=teacher["headers"]).json()
    stranger, holder = register(), register()

    assert client.post(f"/api/invitations/{inv['id']}/accept", headers=stranger["headers"]).status_code == 403
    assert client.post(f"/api/invitations/{inv['id']}/reject", headers=stranger["headers"]).status_code == 403
    assert client.get("/api/courses/enrolled", headers=stranger["headers"]).json() == []

    r = client.post("/api/invitations/redeem", json={"code": inv["code"]}, headers=holder["headers"])
    assert r.status_code == 200
    assert r.json()["user_id"] == holder["user"]["id"]
    enrolled = client.get("/api/courses/enrolled", headers=holder["headers"]).json()
    assert [c["id"] for c in enrolled] == [course["id"]]


def test_reject_marks_invitation_used(register, teacher):
    course = client.post("/api/courses", json={"name": "Geography"}, headers=teacher["headers"]).json()
    student = register()
    inv = client.post("/api/invitations", json={
        "course_id": course["id"], "name": "Maps", "email": student["user"]["email"],
    }, headers=teacher["headers"]).json()
    r = client.post(f"/api/invitations/{inv['id']}/reject", headers=student["headers"])
    assert r.status_code == 200
    assert r.json()["used"] is True
    assert client.post(f"/api/invitations/{inv['id']}/accept", headers=student["headers"]).status_code == 409
    assert client.get("/api/courses/enrolled", headers=student["headers"]).json() == []


def test_group_membership(classroom):
    teacher = classroom["teacher"]
    group = classroom["group"]
    course = classroom["course"]
    students = classroom["students"]

    detail = client.get(f"/api/groups/{group['id']}", headers=students[0]["headers"]).json()
    assert detail["member_count"] == 2
    assert {m["character_name"] for m in detail["members"]} == {"Hero 0", "Hero 1"}

    assert client.get(f"/api/courses/{course['id']}/unassigned", headers=teacher["headers"]).json() == []

    r = client.delete(f"/api/groups/{group['id']}/members/{students[0]['member_id']}", headers=teacher["headers"])
    assert r.status_code == 200
    assert r.json()["member_count"] == 1
    unassigned = client.get(f"/api/courses/{course['id']}/unassigned", headers=teacher["headers"]).json()
    assert [m["member_id"] for m in unassigned] == [students[0]["member_id"]]
    assert unassigned[0]["character_id"] == students[0]["character"]["id"]

    # students cannot manage groups
    r = client.post(f"/api/groups/{group['id']}/members", json={"member_ids": [students[0]["member_id"]]},
                    headers=students[1]["headers"])
    assert r.status_code == 403


def test_member_can_only_join_group_of_own_course(classroom, teacher):
    other = client.post("/api/courses", json={"name": "Other course"}, headers=teacher["headers"]).json()
    other_group = client.post("/api/groups", json={"course_id": other["id"], "name": "Blue Team"},
                              headers=teacher["headers"]).json()
    member_id = classroom["students"][0]["member_id"]
    r = client.post(f"/api/groups/{other_group['id']}/members", json={"member_ids": [member_id]},
                    headers=teacher["headers"])
    assert r.status_code == 400
    r = client.post(f"/api/groups/{other_group['id']}/members", json={"member_ids": [9999]},
                    headers=teacher["headers"])
    assert r.status_code == 404


def test_course_groups_overview_and_statistics(classroom):
    course = classroom["course"]
    group = classroom["group"]
    student = classroom["students"][0]

    overview = client.get(f"/api/courses/{course['id']}/groups", headers=student["headers"]).json()
    assert len(overview) == 1
    assert overview[0]["member_count"] == 2
    assert overview[0]["total_experience"] == 0
    assert overview[0]["average_energy"] == 100
    assert all(m["character"]["level"] == 1 for m in overview[0]["members"])

    stats = client.get(f"/api/groups/{group['id']}/statistics", headers=student["headers"]).json()
    assert stats["character_count"] == 2
    assert stats["average_health"] == 100


def test_deleting_a_group_keeps_members_and_characters(classroom):
    teacher = classroom["teacher"]
    course = classroom["course"]
    assert client.delete(f"/api/groups/{classroom['group']['id']}", headers=teacher["headers"]).status_code == 204
    unassigned = client.get(f"/api/courses/{course['id']}/unassigned", headers=teacher["headers"]).json()
    assert len(unassigned) == 2
    student = classroom["students"][0]
    r = client.get(f"/api/characters/course/{course['id']}", headers=student["headers"])
    assert r.status_code == 200
    assert r.json()["group_id"] is None


def test_course_with_students_cannot_be_deleted(classroom, teacher):
    course = classroom["course"]
    assert client.delete(f"/api/courses/{course['id']}", headers=teacher["headers"]).status_code == 409
    empty = client.post("/api/courses", json={"name": "Empty course"}, headers=teacher["headers"]).json()
    client.post("/api/groups", json={"course_id": empty["id"], "name": "Nobody"}, headers=teacher["headers"])
    assert client.delete(f"/api/courses/{empty['id']}", headers=teacher["headers"]).status_code == 204
    assert client.get(f"/api/courses/{empty['id']}", headers=teacher["headers"]).status_code == 404


def test_co_teacher_can_manage_course(classroom, make_teacher):
    course = classroom["course"]
    co = make_teacher()
    assert client.put(f"/api/courses/{course['id']}", json={"name": "Renamed"}, headers=co["headers"]).status_code == 403
    r = client.post(f"/api/courses/{course['id']}/teachers", json={"teacher_id": co["teacher"]["id"]},
                    headers=classroom["teacher"]["headers"])
    assert r.status_code == 200
    assert len(r.json()["teachers"]) == 2
    r = client.put(f"/api/courses/{course['id']}", json={"name": "Renamed"}, headers=co["headers"])
    assert r.status_code == 200
    assert r.json()["name"] == "Renamed"
