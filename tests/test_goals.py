from conftest import auth_headers


def create_goal(client, token, goal="Run a 10k", progress=0):
    return client.post(
        "/api/goals", json={"goal": goal, "progress": progress}, headers=auth_headers(token)
    )


def test_create_and_list_goals(client, alice, bob):
    user, token = alice
    res = create_goal(client, token)
    assert res.status_code == 201
    assert res.json()["message"] == "Goal created successfully"
    goal = res.json()["data"]
    assert goal["userId"] == user["id"]
    assert goal["progress"] == 0

    mine = client.get("/api/goals", headers=auth_headers(token)).json()
    assert mine["count"] == 1
    theirs = client.get(f"/api/goals/user/{user['id']}", headers=auth_headers(bob[1])).json()
    assert [g["id"] for g in theirs["data"]] == [goal["id"]]
    assert client.get("/api/goals", headers=auth_headers(bob[1])).json()["data"] == []


def test_progress_is_clamped(client, alice):
    token = alice[1]
    assert create_goal(client, token, progress=150).json()["data"]["progress"] == 100
    assert create_goal(client, token, progress=-5).json()["data"]["progress"] == 0


def test_goal_requires_text(client, alice):
    res = create_goal(client, alice[1], goal="")
    assert res.status_code == 400


def test_update_goal_and_achievement(client, alice):
    user, token = alice
    goal = create_goal(client, token).json()["data"]

    res = client.put(f"/api/goals/{goal['id']}", json={"progress": 40}, headers=auth_headers(token))
    assert res.status_code == 200
    assert res.json()["data"]["progress"] == 40

    client.put(f"/api/goals/{goal['id']}", json={"progress": 100}, headers=auth_headers(token))
    notes = client.get(
        f"/api/notifications/user/{user['id']}", headers=auth_headers(token)
    ).json()["data"]
    achievements = [n for n in notes if n["type"] == "achievement"]
    assert len(achievements) == 1
    assert achievements[0]["relatedId"] == goal["id"]

    # already complete, no second notification
    client.put(f"/api/goals/{goal['id']}", json={"progress": 100}, headers=auth_headers(token))
    notes = client.get(
        f"/api/notifications/user/{user['id']}", headers=auth_headers(token)
    ).json()["data"]
    assert len([n for n in notes if n["type"] == "achievement"]) == 1


def test_only_owner_changes_goal(client, alice, bob):
    goal = create_goal(client, alice[1]).json()["data"]
    headers = auth_headers(bob[1])

    assert client.put(f"/api/goals/{goal['id']}", json={"progress": 10}, headers=headers).status_code == 403
    assert client.delete(f"/api/goals/{goal['id']}", headers=headers).status_code == 403


def test_delete_goal(client, alice):
    token = alice[1]
    goal = create_goal(client, token).json()["data"]

    res = client.delete(f"/api/goals/{goal['id']}", headers=auth_headers(token))
    assert res.status_code == 200
    assert res.json() == {"success": True, "message": "Goal deleted successfully"}

    res = client.delete(f"/api/goals/{goal['id']}", headers=auth_headers(token))
    assert res.status_code == 404
    assert res.json()["error"] == "Goal not found"
