"""
Tests for the exchange engine HTTP API

Uses TestClient against an app built from an explicit Config.
"""

import pytest
from fastapi.testclient import TestClient
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from utils.config import Config
from web.app import create_app


NOW = "2025-06-01T12:00:00"


@pytest.fixture
def client():
    config = Config(operator_email_domains=["peak1031.com"], allowed_origins=[])
    return TestClient(create_app(config))


class TestHealth:

    def test_root(self, client):
        assert client.get("/").json() == {"status": "ok"}

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_api_health(self, client):
        data = client.get("/api/health").json()

        assert data["status"] == "healthy"
        assert data["version"] == "1.0"


class TestEvaluateEndpoint:

    def test_evaluate(self, client, sample_record):
        response = client.post("/api/exchanges/evaluate", json={"record": sample_record, "now": NOW})

        assert response.status_code == 200
        data = response.json()
        assert data["stage"] == "FUNDS_RECEIVED"
        assert data["days_remaining"]["days"] == 8
        assert len(data["participants"]) == 10
        assert data["participants"][1]["role"] == "Coordinator"

    def test_operator_domains_from_config(self, sample_record):
        config = Config(operator_email_domains=["otherfirm.com"], allowed_origins=[])
        client = TestClient(create_app(config))

        data = client.post("/api/exchanges/evaluate", json={"record": sample_record, "now": NOW}).json()

        assert data["participants"][1]["role"] == "Assigned User"

    def test_bad_now(self, client):
        response = client.post("/api/exchanges/evaluate", json={"record": {}, "now": "whenever"})

        assert response.status_code == 400

    def test_record_required(self, client):
        response = client.post("/api/exchanges/evaluate", json={"now": NOW})

        assert response.status_code == 422

    def test_empty_record(self, client):
        data = client.post("/api/exchanges/evaluate", json={"record": {}, "now": NOW}).json()

        assert data["stage"] == "PENDING"
        assert data["participants"] == []


class TestStageEndpoint:

    def test_stage_with_facts(self, client, sample_record):
        data = client.post("/api/exchanges/stage", json={"record": sample_record, "now": NOW}).json()

        assert data["stage"] == "FUNDS_RECEIVED"
        assert data["rule"] == "proceeds_received"
        assert data["facts"]["Day 45"]["source_kind"] == "alias"

    def test_now_changes_stage(self, client, sample_record):
        data = client.post(
            "/api/exchanges/stage",
            json={"record": sample_record, "now": "2025-06-10T00:00:00Z"},
        ).json()

        assert data["stage"] == "IDENTIFICATION_OPEN"


class TestResolveEndpoint:

    def test_selected_labels(self, client, sample_record):
        data = client.post(
            "/api/exchanges/resolve",
            json={"record": sample_record, "labels": ["Bank", "Day 180"]},
        ).json()

        fields = data["fields"]
        assert [f["label"] for f in fields] == ["Bank", "Day 180"]
        assert fields[0]["value"] == "Israel Discount Bank"
        assert fields[1]["source_path"] == "pp_data.custom_field_values[Day 180]"

    def test_all_labels_when_none_given(self, client):
        data = client.post("/api/exchanges/resolve", json={"record": {}}).json()
        labels = client.get("/api/exchanges/labels").json()["labels"]

        assert len(data["fields"]) == len(labels)
        assert all(f["source_kind"] == "absent" for f in data["fields"])
