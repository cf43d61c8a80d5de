"""
Tool calls emitted by the language model, and the single-pass dispatcher that runs them.

The model is not consistent about shapes: a call may name its tool under ``tool``
or ``name`` (or inside an OpenAI-style ``function`` object) and carry its
arguments under ``parameters``, ``arguments`` or ``args``, sometimes as a JSON
string. ``normalize_tool_call`` folds all of those into one of four tagged
variants so nothing downstream has to probe fields.
"""
import re, json, logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from ..sql import templates
from ..sql.runner import SQLExecutor, QueryResult, DEFAULT_ROW_LIMIT
from ..services.summarizer import summarize

logger = logging.getLogger(__name__)

EXECUTE_SQL = "execute_sql_query"
LIST_TEMPLATES = "get_query_templates"
GET_STATS = "get_database_stats"
SHOW_SQL = "show_sql_query"

# Only requests to see SQL that already ran; "write a SQL query ..." must reach the model
SHOW_SQL_PATTERNS = [
    r"\b(show|display|print|reveal|view|see)\s+(me\s+)?((the|that|your)\s+)?((last|previous)\s+)?sql\b",
    r"^(what|which)\s+sql\b.*\b(used|run|ran|executed)\b",
    r"\bsql\s+(for|of|from|behind)\s+(the|that|this)\s+((last|previous)\s+)?(query|result|answer)\b",
    r"^sql\??$",
]

@dataclass(frozen=True)
class ExecuteSql:
    sql: str
    description: str = ""

@dataclass(frozen=True)
class ListTemplates:
    category: Optional[str] = None

@dataclass(frozen=True)
class GetStats:
    pass

@dataclass(frozen=True)
class ShowSql:
    pass

ToolCall = Union[ExecuteSql, ListTemplates, GetStats, ShowSql]

@dataclass
class DispatchOutcome:
    response: str
    query_result: Optional[QueryResult] = None
    sql_query: Optional[str] = None
    templates: Optional[List[Dict[str, Any]]] = None
    stats: Optional[Dict[str, float]] = None
    is_two_step: bool = False
    initial_response: Optional[str] = None
    executed: List[str] = field(default_factory=list)

def wants_sql(text: str) -> bool:
    text_lower = (text or "").strip().lower()
    return any(re.search(p, text_lower) for p in SHOW_SQL_PATTERNS)

def _first(mapping: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        value = mapping.get(k)
        if value not in (None, ""):
            return value
    return None

def normalize_tool_call(raw: Any) -> Optional[ToolCall]:
    if not isinstance(raw, dict):
        logger.warning("[nlp] ignoring non-dict tool call: %r", raw)
        return None

    fn = raw.get("function") if isinstance(raw.get("function"), dict) else {}
    name = _first(raw, "tool", "name") or fn.get("name")
    args = _first(raw, "parameters", "arguments", "args")
    if args is None:
        args = fn.get("arguments")
    if isinstance(args, str):
        try:
            args = json.loads(args)
        except ValueError:
            logger.warning("[nlp] tool %s has unparseable arguments", name)
            args = {}
    args = args if isinstance(args, dict) else {}

    if name == EXECUTE_SQL:
        sql = _first(args, "sql_query", "sql", "query") or ""
        description = _first(args, "query_description", "description") or ""
        return ExecuteSql(sql=str(sql), description=str(description))
    if name == LIST_TEMPLATES:
        return ListTemplates(category=_first(args, "category"))
    if name == GET_STATS:
        return GetStats()
    if name == SHOW_SQL:
        return ShowSql()

    logger.warning("[nlp] unknown tool call: %r", name)
    return None

def normalize_tool_calls(raws: Optional[Iterable[Any]]) -> List[ToolCall]:
    calls = []
    for raw in raws or []:
        call = normalize_tool_call(raw)
        if call is not None:
            calls.append(call)
    return calls

def _append_sql(text: str, sql: Optional[str]) -> str:
    if not sql:
        block = "No SQL query has been run in this conversation yet."
    else:
        block = f"```sql\n{sql}\n```"
    return f"{text}\n\n{block}" if text else block

def dispatch(question: str, initial_response: str, calls: List[ToolCall], executor: SQLExecutor,
             last_sql_query: Optional[str] = None, row_limit: Optional[int] = DEFAULT_ROW_LIMIT) -> DispatchOutcome:
    outcome = DispatchOutcome(response=initial_response)

    for call in calls:
        if isinstance(call, ExecuteSql):
            result = executor.execute(call.sql, limit=row_limit, description=call.description or question)
            outcome.query_result = result
            outcome.sql_query = result.sql or call.sql
            outcome.executed.append(EXECUTE_SQL)
            if result.success:
                outcome.response = summarize(question, result, initial_response)
                outcome.is_two_step = True
                outcome.initial_response = initial_response
            elif not outcome.response:
                outcome.response = f"Sorry, I couldn't run that query: {result.error}"
        elif isinstance(call, ListTemplates):
            found = templates.get_by_category(call.category) if call.category else templates.get_all()
            outcome.templates = [t.to_dict() for t in found]
            outcome.executed.append(LIST_TEMPLATES)
        elif isinstance(call, GetStats):
            outcome.stats = executor.get_query_stats()
            outcome.executed.append(GET_STATS)
        elif isinstance(call, ShowSql):
            outcome.response = _append_sql(outcome.response, outcome.sql_query or last_sql_query)
            outcome.executed.append(SHOW_SQL)

    return outcome
