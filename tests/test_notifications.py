from conftest import CARDIO_ZONE_ID, auth_headers


def join(client, user, token):
    return client.post(
        "/api/queues",
        json={"userId": user["id"], "zoneId": CARDIO_ZONE_ID},
        headers=auth_headers(token),
    )


def test_joining_creates_notification(client, alice):
    user, token = alice
    join(client, user, token)

    res = client.get(f"/api/notifications/user/{user['id']}", headers=auth_headers(token))
    assert res.status_code == 200
    body = res.json()
    assert body["count"] == 1
    assert body["unreadCount"] == 1
    note = body["data"][0]
    assert note["type"] == "queue_update"
    assert note["title"] == "Queue Joined"
    assert "Cardio Zone" in note["message"]
    assert "position #1" in note["message"]
    assert note["isRead"] is False
    assert note["priority"] == "medium"
    assert note["relatedType"] == "queue"


def test_mark_one_read(client, alice):
    user, token = alice
    join(client, user, token)
    note = client.get(
        f"/api/notifications/user/{user['id']}", headers=auth_headers(token)
    ).json()["data"][0]

    res = client.put(f"/api/notifications/{note['id']}/read", headers=auth_headers(token))
    assert res.status_code == 200
    assert res.json()["message"] == "Notification marked as read"
    assert res.json()["data"]["isRead"] is True

    body = client.get(f"/api/notifications/user/{user['id']}", headers=auth_headers(token)).json()
    assert body["unreadCount"] == 0

    res = client.put("/api/notifications/999/read", headers=auth_headers(token))
    assert res.status_code == 404
    assert res.json()["error"] == "Notification not found"


def test_mark_all_read(client, alice, bob):
    user, token = alice
    join(client, user, token)
    goal = client.post(
        "/api/goals", json={"goal": "Plank 2 minutes"}, headers=auth_headers(token)
    ).json()["data"]
    client.put(f"/api/goals/{goal['id']}", json={"progress": 100}, headers=auth_headers(token))

    assert (
        client.put(f"/api/notifications/user/{user['id']}/read-all", headers=auth_headers(bob[1])).status_code
        == 403
    )

    res = client.put(f"/api/notifications/user/{user['id']}/read-all", headers=auth_headers(token))
    assert res.status_code == 200
    assert res.json()["data"] == 2

    body = client.get(f"/api/notifications/user/{user['id']}", headers=auth_headers(token)).json()
    assert body["count"] == 2
    assert body["unreadCount"] == 0


def test_all_notifications(client, alice, bob):
    join(client, *alice)
    join(client, *bob)

    body = client.get("/api/notifications", headers=auth_headers(alice[1])).json()
    assert body["message"] == "All notifications retrieved successfully"
    assert body["count"] == 2
    assert client.get("/api/notifications").status_code == 401
