"""Tests for the performance HTTP API."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_db
from app.main import app
from app.services.performance import scoring_config_store, weekly_reports
from app.services.performance.errors import InvalidConfigError
from app.services.performance.metrics import MemberRecord, TaskRecord

DONE = TaskRecord("t1", True, due_at=datetime(2026, 3, 3, tzinfo=UTC), completed_at=datetime(2026, 3, 2, tzinfo=UTC))


@pytest.fixture
def client(db_session):
    def _get_db_override():
        yield db_session

    app.dependency_overrides[get_db] = _get_db_override
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def use_source(monkeypatch):
    def _use(source):
        monkeypatch.setattr(weekly_reports, "_source", source)
        return source

    return _use


def _members(*ids: str) -> list[MemberRecord]:
    return [MemberRecord(person_id=pid, display_name=f"Agent {pid}") for pid in ids]


def _weights(completion=40, timeliness=30, quality=20, kra=10, **extra) -> dict:
    return {
        "completion_weight": completion,
        "timeliness_weight": timeliness,
        "quality_weight": quality,
        "kra_alignment_weight": kra,
        **extra,
    }


# ---------------------------------------------------------------------------
# Health and metrics
# ---------------------------------------------------------------------------


def test_health_and_metrics(client):
    assert client.get("/health").json() == {"status": "ok"}
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "performance_reports_generated" in response.text


# ---------------------------------------------------------------------------
# Scoring config
# ---------------------------------------------------------------------------


def test_scoring_config_lifecycle(client):
    assert client.get("/performance/scoring-config").status_code == 404

    created = client.post("/performance/scoring-config/defaults")
    assert created.status_code == 200
    assert created.json()["completion_weight"] == 40

    updated = client.put("/performance/scoring-config", json=_weights(25, 25, 25, 25, updated_by="hr"))
    assert updated.status_code == 200
    assert updated.json()["updated_by"] == "hr"

    current = client.get("/api/v1/performance/scoring-config").json()
    assert current["quality_weight"] == 25


def test_invalid_weights_return_400_with_total(client):
    client.post("/performance/scoring-config/defaults")

    response = client.put("/performance/scoring-config", json=_weights(50))

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "invalid_config"
    assert body["total"] == 110
    assert client.get("/performance/scoring-config").json()["completion_weight"] == 40


def test_out_of_range_weight_is_a_validation_error(client):
    response = client.put("/performance/scoring-config", json=_weights(120, 0, -20, 0))
    assert response.status_code == 422


def test_validate_endpoint_does_not_store(client):
    response = client.post("/performance/scoring-config/validate", json=_weights(10, 10, 10, 10))

    assert response.json() == {"valid": False, "total": 40}
    assert client.get("/performance/scoring-config").status_code == 404


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def test_generate_partial_report(client, fake_source, use_source):
    use_source(
        fake_source(
            members=_members("m1", "m2", "m3"),
            tasks={"m1": [DONE], "m3": [DONE]},
            failing={"m2"},
        )
    )

    response = client.post(
        "/performance/reports/generate",
        json={"scope_type": "team", "scope_id": "team-1", "week_start": "2026-03-04"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["partial"] is True
    assert body["members_scored"] == 2
    assert body["failed_members"] == ["m2"]
    assert body["detail"] == "Metrics unavailable for 1 of 3 members"
    report = body["report"]
    assert report["week_start"] == "2026-03-02"
    assert report["week_end"] == "2026-03-08"
    assert report["partial"] is True
    assert report["weights"]["completion_weight"] == 40
    assert report["member_scores"][0]["person_id"] == "m1"


def test_generate_empty_scope_returns_422(client, fake_source, use_source):
    use_source(fake_source(members=[]))

    response = client.post("/performance/reports/generate", json={"scope_type": "team", "scope_id": "empty"})

    assert response.status_code == 422
    assert response.json()["code"] == "empty_scope"


def test_generate_total_failure_returns_503(client, fake_source, use_source):
    use_source(fake_source(members=_members("m1", "m2"), failing={"m1", "m2"}))

    response = client.post(
        "/performance/reports/generate",
        json={"scope_type": "team", "scope_id": "team-1", "week_start": "2026-03-02"},
    )

    assert response.status_code == 503
    assert response.json()["failed_members"] == ["m1", "m2"]


def test_generate_timeout_returns_504(client, fake_source, use_source):
    use_source(fake_source(members=_members("m1"), delay=0.5))

    response = client.post(
        "/performance/reports/generate",
        json={"scope_type": "user", "scope_id": "m1", "week_start": "2026-03-02", "timeout_seconds": 0.05},
    )

    assert response.status_code == 504


def test_read_and_list_reports(client, fake_source, use_source):
    use_source(fake_source(members=_members("m1"), tasks={"m1": [DONE]}))
    for week_start in ("2026-02-23", "2026-03-02"):
        client.post(
            "/performance/reports/generate",
            json={"scope_type": "user", "scope_id": "m1", "week_start": week_start},
        )

    single = client.get("/performance/reports/user/m1/2026-03-05")
    assert single.status_code == 200
    assert single.json()["week_start"] == "2026-03-02"
    assert single.json()["partial"] is False

    listed = client.get("/performance/reports/user/m1", params={"limit": 5}).json()
    assert [item["week_start"] for item in listed] == ["2026-03-02", "2026-02-23"]

    missing = client.get("/performance/reports/user/m1/2025-01-06")
    assert missing.status_code == 404


# ---------------------------------------------------------------------------
# KPIs
# ---------------------------------------------------------------------------


def test_kpi_endpoints(client, person):
    created = client.post(
        "/performance/kpis",
        json={"person_id": str(person.id), "name": "Drops spliced", "current_week_planned": 100},
    )
    assert created.status_code == 201
    kpi = created.json()
    assert kpi["status"] == "not_started"

    patched = client.patch(f"/performance/kpis/{kpi['id']}", json={"current_week_actual": 130})
    assert patched.status_code == 200
    assert patched.json()["variance"] == 30
    assert patched.json()["status"] == "tracked"

    listed = client.get("/performance/kpis", params={"person_id": str(person.id)}).json()
    assert [item["id"] for item in listed] == [kpi["id"]]

    archived = client.post("/performance/kpis/archives", json={"label": "2026-03"})
    assert archived.status_code == 201
    assert archived.json()["kpi_count"] == 1
    archives = client.get("/performance/kpis/archives", params={"label": "2026-03"}).json()
    assert archives[0]["data"][0]["variance"] == 30


def test_kpi_patch_with_null_figure_is_rejected(client, person):
    kpi = client.post(
        "/performance/kpis",
        json={"person_id": str(person.id), "name": "Installs", "current_week_actual": 4},
    ).json()

    response = client.patch(f"/performance/kpis/{kpi['id']}", json={"current_week_actual": None})

    assert response.status_code == 422
    current = client.get(f"/performance/kpis/{kpi['id']}").json()
    assert current["current_week_actual"] == 4
    assert current["weeks_tracked"] == 0


def test_out_of_range_error_body_lists_weights(client, monkeypatch):
    def _reject(*args, **kwargs):
        raise InvalidConfigError(100, out_of_range={"completion_weight": 150, "timeliness_weight": -50})

    monkeypatch.setattr(scoring_config_store, "set_config", _reject)

    response = client.put("/performance/scoring-config", json=_weights())

    assert response.status_code == 400
    assert response.json()["out_of_range"] == {"completion_weight": 150, "timeliness_weight": -50}


def test_kpi_not_found_and_bad_ids(client):
    assert client.get("/performance/kpis/8b7f3c1e-0000-4000-8000-000000000000").status_code == 404
    assert client.get("/performance/kpis/not-a-uuid").status_code == 404
    assert client.get("/performance/kpis", params={"person_id": "not-a-uuid"}).status_code == 400


def test_kpi_rollover_endpoint(client, person):
    kpi = client.post(
        "/performance/kpis",
        json={"person_id": str(person.id), "name": "Installs", "next_week_target": 8},
    ).json()
    client.patch(f"/performance/kpis/{kpi['id']}", json={"current_week_actual": 5})

    response = client.post("/performance/kpis/rollover", json={"as_of": "2099-01-07"})

    assert response.status_code == 200
    assert response.json() == {"rolled_over": 1, "week_start": "2099-01-05"}
    rolled = client.get(f"/performance/kpis/{kpi['id']}").json()
    assert rolled["current_week_planned"] == 8
    assert rolled["last_week_actual"] == 5
