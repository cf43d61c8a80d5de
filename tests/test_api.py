import pytest
from fastapi.testclient import TestClient

from conftest import FakeLLM

from portfolio_bi.main import app, get_assistant


@pytest.fixture
def llm():
    return FakeLLM(answer="Let me check.", tool_calls=[{
        "name": "execute_sql_query",
        "arguments": {"sql_query": "SELECT country, SUM(in_app_revenue + ads_revenue) AS total_revenue "
                                   "FROM app_metrics GROUP BY country ORDER BY total_revenue DESC LIMIT 1",
                      "query_description": "top country"},
    }])


@pytest.fixture
def client(make_assistant, llm):
    assistant = make_assistant(llm)
    app.dependency_overrides[get_assistant] = lambda: assistant
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_config_reports_sections(client):
    assert set(client.get("/config").json()) == {"llm", "nlp", "sql"}


def test_templates_and_stats(client):
    body = client.get("/api/query").json()
    assert len(body["templates"]) == 13
    assert body["stats"]["totalApps"] == 3.0


def test_run_template(client):
    resp = client.post("/api/query", json={"templateId": "total-downloads"})
    assert resp.status_code == 200
    assert resp.json()["data"] == [{"total_installs": 950.0}]


def test_run_custom_sql_with_limit(client):
    resp = client.post("/api/query", json={"customSql": "SELECT app_name FROM app_metrics", "options": {"limit": 2}})
    body = resp.json()
    assert resp.status_code == 200
    assert body["rowCount"] == 2
    assert body["sql"] == "SELECT app_name FROM app_metrics LIMIT 2"


def test_rejected_sql_is_a_400(client):
    resp = client.post("/api/query", json={"customSql": "DROP TABLE app_metrics"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Only SELECT queries are allowed"
    assert resp.json()["errorKind"] == "validation"


def test_execution_error_is_shown(client):
    resp = client.post("/api/query", json={"customSql": "SELECT * FROM nonexistent_table"})
    assert resp.status_code == 400
    assert "nonexistent_table" in resp.json()["error"]


def test_unknown_template_is_a_404(client):
    assert client.post("/api/query", json={"templateId": "nope"}).status_code == 404


def test_query_needs_sql_or_template(client):
    resp = client.post("/api/query", json={})
    assert resp.status_code == 400


def test_malformed_options_are_rejected(client):
    resp = client.post("/api/query", json={"customSql": "SELECT 1", "options": {"limit": "lots"}})
    assert resp.status_code == 422


def test_templates_by_category(client):
    body = client.get("/api/templates", params={"category": "downloads"}).json()
    assert {t["category"] for t in body["templates"]} == {"downloads"}
    assert client.get("/api/templates", params={"category": "bogus"}).status_code == 400


def test_stats(client):
    assert client.get("/api/stats").json()["totalUaCost"] == 97.0


def test_chat_round_trip(client):
    resp = client.post("/api/chat", json={
        "message": "which country generates the most revenue",
        "conversationHistory": [{"role": "user", "content": "hi", "timestamp": "2025-01-01T00:00:00Z"}],
    })
    body = resp.json()
    assert resp.status_code == 200
    assert body["response"] == "US generates the most revenue, with $270."
    assert body["isTwoStep"] is True
    assert body["initialResponse"] == "Let me check."
    assert body["shouldShowTable"] is False
    assert body["queryResult"]["data"] == [{"country": "US", "total_revenue": 270.0}]


def test_chat_show_sql_uses_last_query(client, llm):
    resp = client.post("/api/chat", json={"message": "show sql", "lastSqlQuery": "SELECT 7"})
    assert "SELECT 7" in resp.json()["response"]
    assert llm.calls == []


def test_chat_needs_a_message(client):
    assert client.post("/api/chat", json={"message": ""}).status_code == 422


def test_chat_internal_fault_is_masked(client, monkeypatch, make_assistant):
    assistant = app.dependency_overrides[get_assistant]()

    def boom(*args, **kwargs):
        raise KeyError("secret internals")

    monkeypatch.setattr(assistant, "chat", boom)
    resp = client.post("/api/chat", json={"message": "how many apps?"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to process chat message"}


def test_recent_queries(client):
    client.post("/api/query", json={"customSql": "SELECT 1"})
    queries = client.get("/api/queries", params={"limit": 1}).json()["queries"]
    assert queries[0]["sqlGenerated"] == "SELECT 1"


def test_export_csv(client):
    resp = client.post("/api/export", json={"rows": [{"a": 1, "b": "x,y"}]})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert resp.text == 'a,b\n1,"x,y"'
