from conftest import CARDIO_ZONE_ID, PALLADIUM_ID, PAULSON_ID, auth_headers


def test_index_banner(client):
    body = client.get("/").json()
    assert body["message"] == "SmartFit API Server"
    assert body["status"] == "running"
    assert body["endpoints"]["queues"] == "/api/queues"
    assert body["websocket"] == "/ws"


def test_unknown_route(client):
    res = client.get("/api/nothing-here")
    assert res.status_code == 404
    body = res.json()
    assert body["success"] is False
    assert body["error"] == "Route not found"
    assert body["path"] == "/api/nothing-here"


def test_list_facilities(client):
    res = client.get("/api/facilities")
    assert res.status_code == 200
    body = res.json()
    assert body["count"] == 2
    assert [f["name"] for f in body["data"]] == [
        "Palladium Athletic Facility",
        "Paulson Athletic Facility",
    ]
    palladium = body["data"][0]
    assert palladium["hoursWeekdays"] == "6:00 AM - 11:00 PM"
    assert "Pool" in palladium["amenities"]


def test_get_facility(client):
    res = client.get(f"/api/facilities/{PAULSON_ID}")
    assert res.status_code == 200
    assert res.json()["data"]["name"] == "Paulson Athletic Facility"

    res = client.get("/api/facilities/999")
    assert res.status_code == 404
    assert res.json()["error"] == "Facility not found"

    assert client.get("/api/facilities/abc").status_code == 400


def test_list_zones(client):
    body = client.get("/api/zones").json()
    assert body["count"] == 5

    body = client.get(f"/api/zones?facilityId={PALLADIUM_ID}").json()
    assert [z["name"] for z in body["data"]] == [
        "Cardio Zone",
        "Weight Room",
        "Functional Training Zone",
    ]
    assert all(z["facilityId"] == PALLADIUM_ID for z in body["data"])
    assert all(z["status"] == "available" for z in body["data"])


def test_list_zones_unknown_facility(client):
    res = client.get("/api/zones?facilityId=999")
    assert res.status_code == 404
    assert res.json()["error"] == "No zones found for this facility"

    res = client.get("/api/zones?facilityId=not-an-id")
    assert res.status_code == 404
    assert res.json()["error"] == "Facility not found"


def test_get_zone(client):
    res = client.get(f"/api/zones/{CARDIO_ZONE_ID}")
    assert res.status_code == 200
    zone = res.json()["data"]
    assert zone["name"] == "Cardio Zone"
    assert zone["queueLength"] == 0
    assert zone["averageWaitTime"] == 0
    assert "Treadmills" in zone["equipment"]

    assert client.get("/api/zones/999").json()["error"] == "Zone not found"
    assert client.get("/api/zones/999/queue").status_code == 404


def test_zone_status_follows_line_length(client, register):
    statuses = []
    for n in range(6):
        user, token = register(f"Member {n}", f"member{n}@nyu.edu")
        res = client.post(
            "/api/queues",
            json={"userId": user["id"], "zoneId": CARDIO_ZONE_ID},
            headers=auth_headers(token),
        )
        assert res.status_code == 201
        zone = client.get(f"/api/zones/{CARDIO_ZONE_ID}").json()["data"]
        statuses.append(zone["status"])

    assert statuses == ["available", "available", "moderate", "moderate", "moderate", "busy"]
    zone = client.get(f"/api/zones/{CARDIO_ZONE_ID}").json()["data"]
    assert zone["queueLength"] == 6
    assert zone["averageWaitTime"] == 42
