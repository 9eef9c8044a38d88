from datetime import datetime, timezone

from helpers import png_data_url, record_body
from services.errors import StorageError


def local_day(stamp: datetime) -> str:
    return stamp.astimezone().date().isoformat()


def test_save_and_summarize_scenario(client):
    first = client.post(
        "/records",
        json=record_body(
            healthStatus="Healthy",
            predictions=[{"className": "healthy", "probability": 0.95}],
            timestamp="2024-01-01T10:00:00Z",
        ),
    )
    assert first.status_code == 200
    body = first.json()
    assert body["success"] is True
    assert body["id"] == body["record"]["id"]
    assert body["record"]["healthStatus"] == "healthy"

    second = client.post(
        "/records", json=record_body(healthStatus="unhealthy", timestamp="2024-01-01T11:00:00Z")
    )
    assert second.status_code == 200

    summary = client.get("/records/summary").json()
    assert summary["totalRecords"] == 2
    assert summary["healthyCount"] == 1
    assert summary["unhealthyCount"] == 1
    assert summary["dailyAnalysis"] == [
        {
            "date": local_day(datetime(2024, 1, 1, 10, tzinfo=timezone.utc)),
            "count": 2,
            "healthyCount": 1,
            "unhealthyCount": 1,
        }
    ]


def test_missing_fields_are_named(client):
    response = client.post("/records", json={"subjectId": "oak"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["missingFields"] == ["imageData", "healthStatus", "predictions"]
    assert client.get("/records").json()["count"] == 0


def test_empty_predictions_rejected(client):
    response = client.post("/records", json=record_body(predictions=[]))
    assert response.status_code == 400
    assert response.json()["missingFields"] == ["predictions"]


def test_invalid_json_and_non_object(client):
    response = client.post("/records", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid JSON data"}

    response = client.post("/records", json=[1, 2])
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request format"


def test_empty_store_list(client):
    response = client.get("/records")
    assert response.status_code == 200
    assert response.json() == {"success": True, "count": 0, "data": []}


def test_list_limit_and_order(client):
    for day in (3, 1, 2):
        client.post("/records", json=record_body(subjectId=f"d{day}", timestamp=f"2024-01-0{day}T12:00:00Z"))

    body = client.get("/records", params={"limit": 2}).json()
    assert body["count"] == 3
    assert len(body["data"]) == 2
    assert [r["subjectId"] for r in body["data"]] == ["d3", "d2"]

    body = client.get("/records", params={"sort": "asc"}).json()
    assert [r["subjectId"] for r in body["data"]] == ["d1", "d2", "d3"]


def test_bad_query_parameters(client):
    response = client.get("/records", params={"limit": 0})
    assert response.status_code == 400
    assert response.json()["invalidFields"] == ["limit"]

    response = client.get("/records", params={"limit": "many"})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_storage_failure_is_a_500(client, monkeypatch):
    async def broken(record):
        raise StorageError("Failed to insert record")

    monkeypatch.setattr(client.app.state.record_store._dal, "create_record", broken)
    response = client.post("/records", json=record_body())
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to insert record"}


def test_status_and_seed(client):
    status = client.get("/records/status").json()
    assert status["recordCount"] == 0
    assert status["latestRecord"] is None

    seeded = client.post("/records/seed")
    assert seeded.status_code == 200
    record_id = seeded.json()["id"]

    status = client.get("/records/status").json()
    assert status["success"] is True
    assert status["recordCount"] == 1
    assert status["latestRecord"]["healthStatus"] == "healthy"

    record = client.get(f"/records/{record_id}").json()
    assert record["predictions"] == [
        {"className": "healthy", "probability": 0.95},
        {"className": "unhealthy", "probability": 0.05},
    ]


def test_thumbnail(client):
    saved = client.post("/records", json=record_body(imageData=png_data_url(size=(400, 200)))).json()
    response = client.get(f"/records/{saved['id']}/thumbnail")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content.startswith(b"\x89PNG")

    broken = client.post("/records", json=record_body(imageData="bm90IGFuIGltYWdl")).json()
    assert client.get(f"/records/{broken['id']}/thumbnail").status_code == 422


def test_unknown_record(client):
    response = client.get("/records/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Record not found"}
    assert client.get("/records/does-not-exist/thumbnail").status_code == 404


def test_health(client):
    assert client.get("/health").json() == {"ok": True, "db_initialized": True}


def test_oversized_probability_is_a_400(client):
    body = record_body(predictions=[{"className": "healthy", "probability": 10**400}])
    response = client.post("/records", json=body)
    assert response.status_code == 400
    assert response.json()["invalidFields"] == ["predictions[0].probability"]
    assert client.get("/records").json()["count"] == 0


def test_out_of_range_timestamps_are_rejected_and_summary_still_works(client):
    for stamp in ("0001-01-01T00:00:00+05:00", "0001-01-01T00:00:00Z"):
        response = client.post("/records", json=record_body(timestamp=stamp))
        assert response.status_code == 400
        assert response.json()["invalidFields"] == ["timestamp"]

    client.post("/records", json=record_body(timestamp="0001-01-02T00:00:00Z"))
    summary = client.get("/records/summary")
    assert summary.status_code == 200
    assert summary.json()["totalRecords"] == 1
