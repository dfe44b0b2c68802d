from datetime import datetime, timezone


def parse_ts(value: str) -> datetime:
    # Responses render UTC as a trailing Z
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def iso(dt: datetime) -> str:
    return dt.isoformat()


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def create_task(client, title="Write report", note=None, estimated_pomos=None) -> dict:
    payload = {"title": title}
    if note is not None:
        payload["note"] = note
    if estimated_pomos is not None:
        payload["estimatedPomos"] = estimated_pomos
    res = client.post("/api/tasks", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def start_session(client, task_id, started_at, kind=0, planned_minutes=25):
    return client.post(
        "/api/sessions",
        json={
            "taskId": task_id,
            "kind": kind,
            "plannedMinutes": planned_minutes,
            "startedAt": started_at if isinstance(started_at, str) else iso(started_at),
        },
    )


def complete_session(client, session_id, **body):
    return client.patch(f"/api/sessions/{session_id}/complete", json=body)
