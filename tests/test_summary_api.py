from datetime import date, timedelta

import pytest

from .helpers import complete_session, create_task, start_session, utc

ZERO_DAY = {"focusMinutes": 0, "breakMinutes": 0, "totalSessions": 0, "completedSessions": 0}


def day_totals(entry: dict) -> dict:
    return {k: entry[k] for k in ZERO_DAY}


class TestSummary:
    def test_gap_filled_range(self, client):
        task = create_task(client)
        s = start_session(client, task["id"], utc(2024, 1, 1, 9, 0)).json()
        complete_session(client, s["id"], endedAt="2024-01-01T09:25:00Z")

        res = client.get("/api/summary?from=2024-01-01&to=2024-01-03")
        assert res.status_code == 200
        body = res.json()
        assert body["from"] == "2024-01-01"
        assert body["to"] == "2024-01-03"
        assert [d["date"] for d in body["days"]] == ["2024-01-01", "2024-01-02", "2024-01-03"]
        assert day_totals(body["days"][0]) == {
            "focusMinutes": 25,
            "breakMinutes": 0,
            "totalSessions": 1,
            "completedSessions": 1,
        }
        assert day_totals(body["days"][1]) == ZERO_DAY
        assert day_totals(body["days"][2]) == ZERO_DAY

    def test_mixed_sessions_in_one_day(self, client):
        a = create_task(client, title="A")
        b = create_task(client, title="B")
        c = create_task(client, title="C")

        # Focus with explicit minutes
        s1 = start_session(client, a["id"], utc(2024, 3, 10, 9, 0)).json()
        complete_session(client, s1["id"], endedAt="2024-03-10T09:30:00Z", actualMinutes=20)
        # Break with computed minutes (5m40s -> 5)
        s2 = start_session(client, b["id"], utc(2024, 3, 10, 9, 30), kind=1, planned_minutes=5).json()
        complete_session(client, s2["id"], endedAt="2024-03-10T09:35:40Z")
        # Still running: counted, but contributes no minutes
        start_session(client, c["id"], utc(2024, 3, 10, 10, 0))

        res = client.get("/api/summary?from=2024-03-10&to=2024-03-10")
        assert res.status_code == 200
        days = res.json()["days"]
        assert len(days) == 1
        assert day_totals(days[0]) == {
            "focusMinutes": 20,
            "breakMinutes": 5,
            "totalSessions": 3,
            "completedSessions": 2,
        }

    def test_to_day_is_fully_included(self, client):
        task = create_task(client)
        s = start_session(client, task["id"], utc(2024, 1, 3, 23, 59, 0)).json()
        complete_session(client, s["id"], actualMinutes=1)
        outside = create_task(client, title="Outside")
        start_session(client, outside["id"], utc(2024, 1, 4, 0, 0, 0))

        days = client.get("/api/summary?from=2024-01-01&to=2024-01-03").json()["days"]
        assert days[-1]["date"] == "2024-01-03"
        assert days[-1]["totalSessions"] == 1
        assert sum(d["totalSessions"] for d in days) == 1

    @pytest.mark.parametrize("span", [0, 1, 6, 30, 365])
    def test_length_matches_range(self, client, span):
        first = date(2024, 1, 1)
        last = first + timedelta(days=span)
        res = client.get(f"/api/summary?from={first.isoformat()}&to={last.isoformat()}")
        assert res.status_code == 200
        days = [date.fromisoformat(d["date"]) for d in res.json()["days"]]
        assert len(days) == span + 1
        assert days == sorted(set(days))
        assert days[0] == first and days[-1] == last

    def test_reversed_range(self, client):
        res = client.get("/api/summary?from=2024-01-03&to=2024-01-01")
        assert res.status_code == 400
        assert res.json()["detail"] == "'to' must be greater than or equal to 'from'."

    @pytest.mark.parametrize(
        "query",
        [
            "from=2024-01-01&to=nope",
            "from=2024-02-30&to=2024-03-01",
            "from=2024-01-01",
            "to=2024-01-01",
            "",
        ],
    )
    def test_invalid_dates(self, client, query):
        res = client.get(f"/api/summary?{query}")
        assert res.status_code == 400
        assert res.json()["detail"] == "Invalid date format. Use YYYY-MM-DD."

    def test_range_ending_on_last_representable_day(self, client):
        task = create_task(client)
        s = start_session(client, task["id"], utc(9999, 12, 31, 8, 0)).json()
        complete_session(client, s["id"], endedAt="9999-12-31T08:25:00Z")

        res = client.get("/api/summary?from=9999-12-30&to=9999-12-31")
        assert res.status_code == 200
        days = res.json()["days"]
        assert [d["date"] for d in days] == ["9999-12-30", "9999-12-31"]
        assert day_totals(days[0]) == ZERO_DAY
        assert day_totals(days[1]) == {
            "focusMinutes": 25,
            "breakMinutes": 0,
            "totalSessions": 1,
            "completedSessions": 1,
        }
