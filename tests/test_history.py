from datetime import datetime, timedelta, timezone

from conftest import CARDIO_ZONE_ID, PALLADIUM_ID, PAULSON_ID, WEIGHT_ROOM_ID, auth_headers


def log_workout(client, user, token, **overrides):
    body = {
        "userId": user["id"],
        "facilityId": PALLADIUM_ID,
        "zoneId": CARDIO_ZONE_ID,
        "duration": 30,
        "type": "Cardio",
        "exercises": ["Treadmill"],
        "caloriesBurned": 250,
    }
    body.update(overrides)
    return client.post("/api/history", json=body, headers=auth_headers(token))


def test_log_workout(client, alice):
    user, token = alice
    res = log_workout(client, user, token, notes="easy pace")
    assert res.status_code == 201
    assert res.json()["message"] == "Workout logged successfully"
    workout = res.json()["data"]
    assert workout["zoneName"] == "Cardio Zone"
    assert workout["notes"] == "easy pace"
    assert workout["date"]

    res = client.get(f"/api/history/{workout['id']}", headers=auth_headers(token))
    assert res.json()["data"]["id"] == workout["id"]
    assert client.get("/api/history/999", headers=auth_headers(token)).status_code == 404


def test_log_workout_validation(client, alice, bob):
    user, token = alice
    assert log_workout(client, user, token, duration=0).status_code == 400
    assert log_workout(client, user, token, type="").status_code == 400
    assert log_workout(client, user, token, facilityId=PAULSON_ID).status_code == 404
    assert log_workout(client, user, bob[1]).status_code == 403


def test_history_stats(client, alice):
    user, token = alice
    log_workout(client, user, token)
    log_workout(client, user, token, duration=45, caloriesBurned=300, exercises=["Rower", "Treadmill"])
    log_workout(
        client,
        user,
        token,
        zoneId=WEIGHT_ROOM_ID,
        type="Strength",
        duration=60,
        caloriesBurned=0,
        exercises=["Squat"],
    )

    body = client.get("/api/history", headers=auth_headers(token)).json()
    assert body["count"] == 3
    stats = body["stats"]
    assert stats["totalWorkouts"] == 3
    assert stats["totalMinutes"] == 135
    assert stats["totalCalories"] == 550
    assert stats["mostFrequentGym"] == "Cardio Zone"
    assert stats["mostFrequentExercise"] == "Treadmill"
    assert stats["workoutTypeBreakdown"] == {"Cardio": 2, "Strength": 1}


def test_empty_history(client, alice):
    body = client.get("/api/history", headers=auth_headers(alice[1])).json()
    assert body["data"] == []
    assert body["stats"]["totalWorkouts"] == 0
    assert body["stats"]["mostFrequentGym"] is None


def test_history_filters(client, alice):
    user, token = alice
    log_workout(client, user, token)
    log_workout(client, user, token, zoneId=WEIGHT_ROOM_ID, type="Strength")
    url = f"/api/history/user/{user['id']}"
    headers = auth_headers(token)

    by_type = client.get(f"{url}?type=strength", headers=headers).json()
    assert [w["type"] for w in by_type["data"]] == ["Strength"]

    by_location = client.get(f"{url}?location=cardio", headers=headers).json()
    assert [w["zoneName"] for w in by_location["data"]] == ["Cardio Zone"]

    today = datetime.now(timezone.utc).date()
    same_day = client.get(
        f"{url}?startDate={today.isoformat()}&endDate={today.isoformat()}", headers=headers
    ).json()
    assert same_day["count"] == 2

    tomorrow = (today + timedelta(days=1)).isoformat()
    assert client.get(f"{url}?startDate={tomorrow}", headers=headers).json()["count"] == 0
