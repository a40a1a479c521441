from conftest import CARDIO_ZONE_ID, PALLADIUM_ID, auth_headers


def test_list_and_get_users(client, alice, bob):
    headers = auth_headers(alice[1])
    body = client.get("/api/users", headers=headers).json()
    assert body["count"] == 2
    assert [u["email"] for u in body["data"]] == ["alice@nyu.edu", "bob@nyu.edu"]

    res = client.get(f"/api/users/{bob[0]['id']}", headers=headers)
    assert res.json()["data"]["name"] == "Bob"
    assert client.get("/api/users/999", headers=headers).status_code == 404
    assert client.get("/api/users").status_code == 401


def test_update_profile(client, alice):
    user, token = alice
    res = client.put(
        f"/api/users/{user['id']}",
        json={"major": "Computer Science", "fitnessLevel": "Intermediate", "bio": "Morning lifter"},
        headers=auth_headers(token),
    )
    assert res.status_code == 200
    assert res.json()["message"] == "Profile updated successfully"
    data = res.json()["data"]
    assert data["major"] == "Computer Science"
    assert data["fitnessLevel"] == "Intermediate"
    assert data["name"] == "Alice"


def test_update_profile_rules(client, alice, bob):
    user, token = alice
    url = f"/api/users/{user['id']}"

    res = client.put(url, json={"email": "bob@nyu.edu"}, headers=auth_headers(token))
    assert res.status_code == 409
    assert res.json()["message"] == "Email already in use"

    res = client.put(url, json={"name": " x "}, headers=auth_headers(token))
    assert res.status_code == 400

    res = client.put(url, json={"bio": "hi"}, headers=auth_headers(bob[1]))
    assert res.status_code == 403


def test_change_password(client, alice):
    user, token = alice
    url = f"/api/users/{user['id']}/password"

    res = client.put(
        url,
        json={"currentPassword": "wrong-one", "newPassword": "newsecret"},
        headers=auth_headers(token),
    )
    assert res.status_code == 401
    assert res.json()["message"] == "Current password is incorrect"

    res = client.put(
        url, json={"currentPassword": "password123", "newPassword": "123"}, headers=auth_headers(token)
    )
    assert res.status_code == 400

    res = client.put(
        url,
        json={"currentPassword": "password123", "newPassword": "newsecret"},
        headers=auth_headers(token),
    )
    assert res.status_code == 200
    assert res.json()["message"] == "Password updated successfully"

    login = client.post("/api/auth/login", json={"email": "alice@nyu.edu", "password": "newsecret"})
    assert login.status_code == 200


def test_settings_status(client):
    assert client.get("/api/settings").json() == {
        "success": True,
        "message": "Settings API is running",
    }


def test_delete_account_removes_everything(client, alice, bob):
    user, token = alice
    headers = auth_headers(token)
    client.post("/api/goals", json={"goal": "Stretch daily"}, headers=headers)
    client.post(
        "/api/history",
        json={
            "userId": user["id"],
            "facilityId": PALLADIUM_ID,
            "zoneId": CARDIO_ZONE_ID,
            "duration": 20,
            "type": "Cardio",
        },
        headers=headers,
    )
    client.post("/api/support/issues", json={"userId": user["id"], "message": "Help"}, headers=headers)
    client.post("/api/queues", json={"userId": user["id"], "zoneId": CARDIO_ZONE_ID}, headers=headers)
    behind = client.post(
        "/api/queues", json={"userId": bob[0]["id"], "zoneId": CARDIO_ZONE_ID}, headers=auth_headers(bob[1])
    ).json()["data"]

    assert client.delete(f"/api/settings/account/{user['id']}", headers=auth_headers(bob[1])).status_code == 403

    res = client.delete(f"/api/settings/account/{user['id']}", headers=headers)
    assert res.status_code == 200
    body = res.json()
    assert body["message"] == "Account deleted successfully"
    assert body["data"]["user"] == {"id": user["id"], "email": "alice@nyu.edu", "name": "Alice"}
    assert body["data"]["removedRecords"] == {
        "queues": 1,
        "goals": 1,
        "history": 1,
        "notifications": 1,
        "supportIssues": 1,
    }

    # the deleted user's token no longer authenticates
    assert client.get("/api/auth/me", headers=headers).status_code == 401
    login = client.post("/api/auth/login", json={"email": "alice@nyu.edu", "password": "password123"})
    assert login.status_code == 401

    moved = client.get(f"/api/queues/{behind['id']}", headers=auth_headers(bob[1])).json()["data"]
    assert moved["position"] == 1
    line = client.get(f"/api/zones/{CARDIO_ZONE_ID}/queue").json()["data"]
    assert [e["queueId"] for e in line] == [behind["id"]]


def test_delete_user_route(client, alice):
    user, token = alice
    res = client.delete(f"/api/users/{user['id']}", headers=auth_headers(token))
    assert res.status_code == 200
    assert res.json()["data"]["removedRecords"]["queues"] == 0


def test_profile_email_must_use_allowed_domain(client, alice):
    user, token = alice
    url = f"/api/users/{user['id']}"

    res = client.put(url, json={"email": "alice@gmail.com"}, headers=auth_headers(token))
    assert res.status_code == 400
    assert "@nyu.edu" in res.json()["message"]

    res = client.put(url, json={"email": "Alice.Smith@NYU.edu"}, headers=auth_headers(token))
    assert res.status_code == 200
    assert res.json()["data"]["email"] == "alice.smith@nyu.edu"
