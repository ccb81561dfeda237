import pytest
from unittest.mock import patch

def test_health_check(client):
    with patch("api.health._check_database", return_value={"status": "up", "dialect": "sqlite"}), \
         patch("api.health._check_suggestion_service", return_value={"status": "disabled"}):

        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "services": {
                "database": {"status": "up", "dialect": "sqlite"},
                "suggestion_service": {"status": "disabled"}
            }
        }

def test_health_check_degraded(client):
    with patch("api.health._check_database", return_value={"status": "down", "error": "refused"}), \
         patch("api.health._check_suggestion_service", return_value={"status": "disabled"}):
        assert client.get("/api/health").json()["status"] == "degraded"

def test_schema(client, temp_sqlite_db):
    response = client.post("/api/schema", json={"db_type": "sqlite", "file_path": temp_sqlite_db})
    assert response.status_code == 200
    data = response.json()
    assert data["dialect"] == "sqlite"
    by_name = {t["table"]["name"]: t for t in data["tables"]}
    assert set(by_name) == {"customer", "client_mapping", "orders", "order_item", "audit_log"}
    assert by_name["client_mapping"]["related"] == ["customer"]

def test_schema_bad_connection(client):
    response = client.post("/api/schema", json={"db_type": "sqlite", "file_path": "/nonexistent/dir/x.db"})
    assert response.status_code == 400

def test_synthesize(client, temp_sqlite_db):
    payload = {
        "connection": {"db_type": "sqlite", "file_path": temp_sqlite_db},
        "template": {
            "endpoints": {
                "GET /api/customer/{id}": {"path_params": {"id": None}},
                "POST /api/customer": {"body": {"email": None, "id": None}},
                "POST /api/patients": {"body": None},
            }
        },
        "seed": 42,
        "use_suggestions": False,
    }
    response = client.post("/api/synthesize", json=payload)
    assert response.status_code == 200
    data = response.json()

    endpoints = data["template"]["endpoints"]
    assert endpoints["GET /api/customer/{id}"]["path_params"]["id"] in (1, 2, 3)
    assert endpoints["POST /api/customer"]["body"]["email"].endswith("@example.com")
    assert "id" not in endpoints["POST /api/customer"]["body"]
    assert endpoints["POST /api/patients"] == {"body": None}

    summary = data["summary"]
    assert summary["endpoints_total"] == 3
    assert summary["endpoints_filled"] == 2
    assert [r["status"] for r in summary["results"]] == ["success", "success", "skipped"]

def test_suggestion_service_check_uses_ollama_client():
    from api.health import _check_suggestion_service
    from config import settings
    with patch.object(settings, "LLM_PROVIDER", "ollama"), \
         patch("api.health.OllamaClient.is_healthy", return_value=(True, "llama3")) as healthy:
        assert _check_suggestion_service() == {"status": "up", "provider": "ollama", "model": "llama3"}
    healthy.assert_called_once()

def test_suggestion_service_check_down():
    import httpx
    from api.health import _check_suggestion_service
    from config import settings
    with patch.object(settings, "LLM_PROVIDER", "ollama"), \
         patch("integrations.ollama_client.httpx.get", side_effect=httpx.ConnectError("refused")):
        status = _check_suggestion_service()
    assert status["status"] == "down"
    assert status["provider"] == "ollama"
    assert "refused" in status["error"]
