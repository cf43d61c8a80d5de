import pytest

from portfolio_bi.nlp.tools import (
    ExecuteSql, GetStats, ListTemplates, ShowSql,
    dispatch, normalize_tool_call, normalize_tool_calls, wants_sql,
)


@pytest.mark.parametrize("raw", [
    {"name": "execute_sql_query", "arguments": {"sql_query": "SELECT 1", "query_description": "one"}},
    {"tool": "execute_sql_query", "parameters": {"sql": "SELECT 1", "description": "one"}},
    {"name": "execute_sql_query", "args": {"query": "SELECT 1", "query_description": "one"}},
    {"function": {"name": "execute_sql_query", "arguments": '{"sql_query": "SELECT 1", "query_description": "one"}'}},
])
def test_execute_call_shapes_normalize_the_same(raw):
    assert normalize_tool_call(raw) == ExecuteSql(sql="SELECT 1", description="one")


def test_other_tools_normalize():
    assert normalize_tool_call({"name": "get_query_templates", "arguments": {"category": "revenue"}}) == ListTemplates("revenue")
    assert normalize_tool_call({"tool": "get_query_templates"}) == ListTemplates(None)
    assert normalize_tool_call({"name": "get_database_stats"}) == GetStats()
    assert normalize_tool_call({"name": "show_sql_query"}) == ShowSql()


def test_unknown_and_malformed_calls_are_dropped():
    calls = normalize_tool_calls([{"name": "rm_rf"}, "nonsense", {"name": "get_database_stats"}])
    assert calls == [GetStats()]
    assert normalize_tool_calls(None) == []


def test_unparseable_string_arguments_become_empty():
    assert normalize_tool_call({"name": "execute_sql_query", "arguments": "{not json"}) == ExecuteSql(sql="")


@pytest.mark.parametrize("text", [
    "show me the SQL",
    "show sql",
    "show the sql",
    "can you display the last SQL?",
    "sql",
    "what sql query was used?",
    "what is the sql behind that answer",
])
def test_wants_sql(text):
    assert wants_sql(text)


@pytest.mark.parametrize("text", [
    "how many apps do we have?",
    "Write a SQL query that counts our apps",
    "give me a sql query for revenue by country",
    "which sql statement would list all iOS apps?",
])
def test_questions_about_writing_sql_are_not_show_requests(text):
    assert not wants_sql(text)


def test_successful_execution_is_summarized(executor):
    outcome = dispatch(
        "how many apps do we have?", "Let me count.",
        [ExecuteSql("SELECT COUNT(DISTINCT app_name) AS app_count FROM app_metrics", "count apps")],
        executor,
    )
    assert outcome.query_result.success
    assert outcome.response == "There are 3 apps."
    assert outcome.is_two_step is True
    assert outcome.initial_response == "Let me count."
    assert outcome.sql_query.endswith("LIMIT 1000")
    assert executor.query_log.recent(1)[0].query_text == "count apps"


def test_failed_execution_keeps_initial_response(executor):
    outcome = dispatch("q", "Checking.", [ExecuteSql("SELECT * FROM nonexistent_table")], executor)
    assert outcome.query_result.success is False
    assert outcome.response == "Checking."
    assert outcome.is_two_step is False


def test_failed_execution_without_text_explains_error(executor):
    outcome = dispatch("q", "", [ExecuteSql("DROP TABLE app_metrics")], executor)
    assert outcome.response.startswith("Sorry, I couldn't run that query: Only SELECT")


def test_lookups_do_not_change_text(executor):
    outcome = dispatch("what can you do", "Here you go.", [ListTemplates("trends"), GetStats()], executor)
    assert outcome.response == "Here you go."
    assert {t["id"] for t in outcome.templates} == {"revenue-trends", "download-trends"}
    assert outcome.stats["totalApps"] == 3.0
    assert outcome.query_result is None


def test_show_sql_prefers_this_requests_query(executor):
    outcome = dispatch("q", "Done.", [ExecuteSql("SELECT 1"), ShowSql()], executor, last_sql_query="SELECT 2")
    assert "SELECT 1 LIMIT 1000" in outcome.response
    assert "SELECT 2" not in outcome.response


def test_show_sql_uses_session_sql_without_executing(executor):
    before = len(executor.query_log.recent())
    outcome = dispatch("q", "", [ShowSql()], executor, last_sql_query="SELECT 2")
    assert outcome.response == "```sql\nSELECT 2\n```"
    assert len(executor.query_log.recent()) == before


def test_show_sql_with_nothing_to_show(executor):
    outcome = dispatch("q", "", [ShowSql()], executor)
    assert "No SQL query" in outcome.response
