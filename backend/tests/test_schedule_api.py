import logging


def session(session_id, weekday, start, end, lane, enrollment_ids=None):
    return {
        "id": session_id,
        "weekday": weekday,
        "startsAt": start,
        "endsAt": end,
        "yPosition": lane,
        "enrollmentIds": enrollment_ids or [],
        "room": None,
    }


def reposition_body(sessions, weekday, start, end, lane, moving_id, **extra):
    body = {
        "sessions": sessions,
        "enrollments": [{"id": "e1", "studentId": "st1", "subjectId": "sub1"}],
        "subjects": [{"id": "sub1", "name": "Math", "color": "#000"}],
        "targetWeekday": weekday,
        "targetStart": start,
        "targetEnd": end,
        "targetLane": lane,
        "movingSessionId": moving_id,
    }
    body.update(extra)
    return body


def test_reposition_endpoint_cascades_and_compacts(client):
    sessions = [
        session("m", 0, "10:00", "11:00", 3, ["e1"]),
        session("a", 0, "11:00", "12:00", 3),
        session("b", 0, "10:30", "11:30", 4),
        session("c", 0, "11:30", "12:30", 5),
        session("z", 6, "09:00", "10:00", 2),
    ]
    response = client.post("/api/schedule/reposition", json=reposition_body(sessions, 0, "10:00", "11:30", 3, "m"))

    assert response.status_code == 200
    payload = {item["id"]: item for item in response.json()["sessions"]}
    assert [payload[key]["yPosition"] for key in ("m", "a", "b", "c")] == [1, 2, 3, 3]
    assert payload["m"]["endsAt"] == "11:30"
    assert payload["m"]["enrollmentIds"] == ["e1"]
    assert payload["z"] == session("z", 6, "09:00", "10:00", 2)


def test_reposition_endpoint_inserts_new_session(client):
    sessions = [session("A", 1, "10:00", "11:00", 1)]
    body = reposition_body(
        sessions,
        1,
        "10:00",
        "11:00",
        1,
        "X",
        session=session("X", 1, "10:00", "11:00", 1, ["e1"]),
    )
    response = client.post("/api/schedule/reposition", json=body)

    assert response.status_code == 200
    items = response.json()["sessions"]
    assert [item["id"] for item in items] == ["A", "X"]
    assert items[0]["yPosition"] == 1
    assert items[1]["yPosition"] == 2
    assert items[1]["enrollmentIds"] == ["e1"]


def test_reposition_endpoint_strict_move_requires_existing_session(client):
    body = reposition_body([], 0, "10:00", "11:00", 1, "ghost", insertIfAbsent=False)
    response = client.post("/api/schedule/reposition", json=body)

    assert response.status_code == 404
    assert response.json()["message"] == "Session with id ghost not found"


def test_reposition_endpoint_rejects_duplicate_ids(client):
    sessions = [session("a", 0, "10:00", "11:00", 1), session("a", 1, "10:00", "11:00", 1)]
    response = client.post("/api/schedule/reposition", json=reposition_body(sessions, 0, "10:00", "11:00", 1, "a"))

    assert response.status_code == 400
    assert response.json()["details"] == {"duplicate_ids": ["a"]}


def test_reposition_endpoint_validates_intervals(client):
    response = client.post("/api/schedule/reposition", json=reposition_body([], 0, "11:00", "10:00", 1, "x"))
    assert response.status_code == 422

    bad_session = session("a", 0, "10:00", "10:00", 1)
    response = client.post("/api/schedule/reposition", json=reposition_body([bad_session], 0, "10:00", "11:00", 1, "a"))
    assert response.status_code == 422

    response = client.post("/api/schedule/reposition", json=reposition_body([], 7, "10:00", "11:00", 1, "x"))
    assert response.status_code == 422

    response = client.post("/api/schedule/reposition", json=reposition_body([], 0, "10:00", "11:00", 0, "x"))
    assert response.status_code == 422


def test_reposition_endpoint_logs_round_limit(client, override_settings, caplog):
    override_settings(cascade_max_rounds=1)
    sessions = [
        session("x", 0, "13:00", "14:00", 1),
        session("a", 0, "10:00", "11:00", 1),
        session("b", 0, "10:00", "11:00", 2),
    ]
    with caplog.at_level(logging.WARNING, logger="weekgrid.trace"):
        response = client.post("/api/schedule/reposition", json=reposition_body(sessions, 0, "10:00", "11:00", 1, "x"))

    assert response.status_code == 200
    lanes = {item["id"]: item["yPosition"] for item in response.json()["sessions"]}
    assert lanes == {"x": 1, "a": 2, "b": 2}
    assert any("cascade.round_limit" in record.getMessage() for record in caplog.records)


def test_collisions_endpoint(client):
    body = {
        "sessions": [
            session("a", 2, "09:00", "10:00", 1),
            session("b", 2, "09:30", "10:30", 2),
            session("c", 2, "10:00", "11:00", 1),
        ],
        "weekday": 2,
        "startsAt": "09:45",
        "endsAt": "10:15",
        "excludeSessionId": "c",
    }
    response = client.post("/api/schedule/collisions", json=body)

    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == ["a", "b"]


def test_conflicts_endpoint_reports_with_resolutions(client):
    body = {
        "sessions": [
            session("s1", 3, "09:00", "10:00", 2),
            session("s2", 3, "09:30", "10:30", 2),
        ],
    }
    response = client.post("/api/schedule/conflicts", json=body)

    assert response.status_code == 200
    report = response.json()
    types = sorted(conflict["conflict_type"] for conflict in report["conflicts"])
    assert types == ["lane_gap", "lane_overlap"]
    actions = sorted(action["action_type"] for action in report["suggested_resolutions"])
    assert actions == ["compact_lanes", "reposition_session"]


def test_resolve_applies_suggested_compaction(client):
    snapshot = {"sessions": [session("s1", 3, "09:00", "10:00", 4), session("s2", 0, "09:00", "10:00", 1)]}
    report = client.post("/api/schedule/conflicts", json=snapshot).json()
    action = next(a for a in report["suggested_resolutions"] if a["action_type"] == "compact_lanes")

    response = client.post("/api/schedule/resolve", json={"snapshot": snapshot, "action": action})

    assert response.status_code == 200
    lanes = {item["id"]: item["yPosition"] for item in response.json()["sessions"]}
    assert lanes == {"s1": 1, "s2": 1}
    recheck = client.post("/api/schedule/conflicts", json={"sessions": response.json()["sessions"]})
    assert recheck.json()["conflicts"] == []


def test_resolve_applies_suggested_reposition(client):
    snapshot = {
        "sessions": [
            session("s1", 2, "09:00", "10:00", 1),
            session("s2", 2, "09:30", "10:30", 1),
            session("s3", 2, "13:00", "14:00", 1),
        ],
    }
    report = client.post("/api/schedule/conflicts", json=snapshot).json()
    action = next(a for a in report["suggested_resolutions"] if a["action_type"] == "reposition_session")

    response = client.post("/api/schedule/resolve", json={"snapshot": snapshot, "action": action})

    assert response.status_code == 200
    lanes = {item["id"]: item["yPosition"] for item in response.json()["sessions"]}
    assert lanes == {"s1": 2, "s2": 1, "s3": 1}
    recheck = client.post("/api/schedule/conflicts", json={"sessions": response.json()["sessions"]})
    assert recheck.json()["conflicts"] == []


def test_resolve_unknown_target_session(client):
    action = {
        "action_type": "reposition_session",
        "description": "Move",
        "target_session_id": "ghost",
        "parameters": {},
    }
    response = client.post("/api/schedule/resolve", json={"snapshot": {"sessions": []}, "action": action})

    assert response.status_code == 404
    assert response.json()["message"] == "Session with id ghost not found"


def test_resolve_rejects_bad_parameters(client):
    snapshot = {"sessions": [session("s1", 0, "09:00", "10:00", 1)]}
    compact = {"action_type": "compact_lanes", "description": "Compact", "parameters": {"weekday": 9}}
    response = client.post("/api/schedule/resolve", json={"snapshot": snapshot, "action": compact})
    assert response.status_code == 400

    move = {
        "action_type": "reposition_session",
        "description": "Move",
        "target_session_id": "s1",
        "parameters": {"startsAt": "11:00", "endsAt": "10:00"},
    }
    response = client.post("/api/schedule/resolve", json={"snapshot": snapshot, "action": move})
    assert response.status_code == 400


def test_zero_or_missing_lane_is_read_as_first_lane(client):
    unplaced = session("a", 0, "10:00", "11:00", 0)
    missing = session("b", 1, "10:00", "11:00", None)
    body = reposition_body([unplaced, missing], 5, "08:00", "09:00", 1, "c")
    response = client.post("/api/schedule/reposition", json=body)

    assert response.status_code == 200
    lanes = {item["id"]: item["yPosition"] for item in response.json()["sessions"]}
    assert lanes == {"a": 1, "b": 1, "c": 1}

    body = reposition_body([session("a", 0, "10:00", "11:00", -1)], 0, "10:00", "11:00", 1, "a")
    assert client.post("/api/schedule/reposition", json=body).status_code == 422
