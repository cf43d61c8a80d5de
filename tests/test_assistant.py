from conftest import FakeLLM

from portfolio_bi.nlp.prompts import FALLBACK_RESPONSE, NO_QUERY_RESPONSE
from portfolio_bi.services.sessions import ConversationTurn
from portfolio_bi.sql.runner import QueryResult

COUNT_CALL = {
    "name": "execute_sql_query",
    "arguments": {"sql_query": "SELECT COUNT(DISTINCT app_name) AS app_count FROM app_metrics",
                  "query_description": "Count apps"},
}

COUNTRY_CALL = {
    "tool": "execute_sql_query",
    "parameters": {"sql": "SELECT country, SUM(in_app_revenue + ads_revenue) AS total_revenue "
                          "FROM app_metrics GROUP BY country ORDER BY total_revenue DESC"},
}


def test_scalar_question_is_two_step_text(make_assistant):
    llm = FakeLLM(answer="Let me count the apps.", tool_calls=[COUNT_CALL])
    reply = make_assistant(llm).chat("how many apps do we have?", [])
    assert reply.response == "There are 3 apps."
    assert reply.is_two_step is True
    assert reply.initial_response == "Let me count the apps."
    assert reply.should_show_table is False
    assert reply.query_result.row_count == 1
    assert reply.sql_query.startswith("SELECT COUNT(DISTINCT app_name)")


def test_list_question_shows_table(make_assistant):
    llm = FakeLLM(answer="Here is the breakdown.", tool_calls=[COUNTRY_CALL])
    reply = make_assistant(llm).chat("list all countries by revenue", [])
    assert reply.should_show_table is True
    assert reply.query_result.row_count == 3
    assert reply.response.startswith("Found 3 results. Top entries: US ($270)")


def test_history_and_last_sql_reach_the_model(make_assistant):
    llm = FakeLLM(answer="Sure.")
    history = [ConversationTurn(role="user", content="hi", timestamp="")]
    make_assistant(llm).chat("and for Android?", history, last_sql_query="SELECT 1")
    call = llm.calls[0]
    assert call["history"] == history
    assert "Previous SQL: SELECT 1" in call["context_hint"]


def test_generation_failure_returns_fallback(make_assistant):
    llm = FakeLLM(error=RuntimeError("upstream 503"))
    reply = make_assistant(llm).chat("how many apps?", [])
    assert reply.response == FALLBACK_RESPONSE
    assert "503" not in reply.response
    assert reply.query_result is None


def test_no_tool_calls_never_fabricates_sql(make_assistant, executor):
    before = len(executor.query_log.recent())
    reply = make_assistant(FakeLLM(answer="")).chat("how many apps do we have?", [])
    assert reply.response == NO_QUERY_RESPONSE
    assert reply.query_result is None
    assert len(executor.query_log.recent()) == before


def test_failed_query_keeps_initial_text_and_error(make_assistant):
    bad = {"name": "execute_sql_query", "arguments": {"sql_query": "SELECT * FROM nonexistent_table"}}
    reply = make_assistant(FakeLLM(answer="Checking.", tool_calls=[bad])).chat("show installs", [])
    assert reply.response == "Checking."
    assert reply.query_result.success is False
    assert "nonexistent_table" in reply.query_result.error
    assert reply.should_show_table is False


def test_show_sql_request_skips_the_model(make_assistant):
    llm = FakeLLM(answer="unused")
    last = QueryResult(success=True, data=[], sql="SELECT 42")
    reply = make_assistant(llm).chat("show me the SQL", [], last_query_result=last)
    assert "SELECT 42" in reply.response
    assert llm.calls == []


def test_asking_for_a_new_sql_query_reaches_the_model(make_assistant):
    llm = FakeLLM(answer="Counting apps.", tool_calls=[COUNT_CALL])
    reply = make_assistant(llm).chat("Write a SQL query that counts our apps", [])
    assert len(llm.calls) == 1
    assert reply.query_result.success is True
    assert reply.sql_query.startswith("SELECT COUNT(DISTINCT app_name)")


def test_greeting_skips_the_model(make_assistant):
    llm = FakeLLM(answer="unused")
    reply = make_assistant(llm).chat("hello", [])
    assert "app portfolio" in reply.response
    assert llm.calls == []


def test_run_query_accepts_template_ids_and_sql(make_assistant):
    assistant = make_assistant()
    assert assistant.run_query("total-downloads").data == [{"total_installs": 950.0}]
    assert assistant.run_query("SELECT 1", limit=5).sql == "SELECT 1 LIMIT 5"
    assert assistant.run_query("not a query").error_kind == "validation"


def test_reply_serializes_for_the_wire(make_assistant):
    llm = FakeLLM(answer="ok", tool_calls=[COUNT_CALL, {"name": "get_database_stats"}])
    data = make_assistant(llm).chat("how many apps?", []).to_dict()
    assert data["queryResult"]["success"] is True
    assert data["stats"]["totalInstalls"] == 950.0
    assert set(data) == {"response", "queryResult", "sqlQuery", "shouldShowTable", "isTwoStep",
                         "initialResponse", "templates", "stats"}
