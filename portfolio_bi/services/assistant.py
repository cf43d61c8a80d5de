"""
The entry points the HTTP layer and the Slack bridge call into.

The assistant owns no conversation state: history, the last result and the
last SQL are passed in on every call and handed back in the reply.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..nlp import agent, config
from ..nlp.prompts import FALLBACK_RESPONSE, NO_QUERY_RESPONSE
from ..nlp.tools import DispatchOutcome, ShowSql, dispatch, normalize_tool_calls, wants_sql
from ..sql import templates
from ..sql.runner import SQLExecutor, QueryResult, DEFAULT_ROW_LIMIT
from .classifier import should_show_table
from .csv_export import export_csv

logger = logging.getLogger(__name__)

Generator = Callable[[str, Sequence[Any], str], agent.LLMResponse]

@dataclass
class ChatReply:
    response: str
    query_result: Optional[QueryResult] = None
    sql_query: Optional[str] = None
    should_show_table: bool = False
    is_two_step: bool = False
    initial_response: Optional[str] = None
    templates: Optional[List[Dict[str, Any]]] = None
    stats: Optional[Dict[str, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response": self.response,
            "queryResult": self.query_result.to_dict() if self.query_result else None,
            "sqlQuery": self.sql_query,
            "shouldShowTable": self.should_show_table,
            "isTwoStep": self.is_two_step,
            "initialResponse": self.initial_response,
            "templates": self.templates,
            "stats": self.stats,
        }

class Assistant:
    def __init__(self, executor: Optional[SQLExecutor] = None, generate: Optional[Generator] = None,
                 row_limit: Optional[int] = DEFAULT_ROW_LIMIT):
        self.executor = executor or SQLExecutor()
        self.generate = generate or agent.generate_response
        self.row_limit = row_limit

    def run_template(self, template_id: str, limit: Optional[int] = None,
                     timeout_ms: Optional[int] = None) -> QueryResult:
        return self.executor.execute_template(template_id, limit=limit, timeout_ms=timeout_ms)

    def run_sql(self, sql: str, limit: Optional[int] = None, timeout_ms: Optional[int] = None) -> QueryResult:
        return self.executor.execute(sql, limit=limit, timeout_ms=timeout_ms, description=f"Custom SQL: {sql}")

    def run_query(self, sql_or_template_id: str, limit: Optional[int] = None,
                  timeout_ms: Optional[int] = None) -> QueryResult:
        if templates.get_by_id(sql_or_template_id) is not None:
            return self.run_template(sql_or_template_id, limit=limit, timeout_ms=timeout_ms)
        return self.run_sql(sql_or_template_id, limit=limit, timeout_ms=timeout_ms)

    def list_templates(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        found = templates.get_by_category(category) if category else templates.get_all()
        return [t.to_dict() for t in found]

    def recent_queries(self, limit: int = 50) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self.executor.query_log.recent(limit)]

    def get_stats(self) -> Dict[str, float]:
        return self.executor.get_query_stats()

    def export_csv(self, rows: List[Dict[str, Any]]) -> str:
        return export_csv(rows)

    def _context_hint(self, last_sql_query: Optional[str]) -> str:
        hint = config.CONTEXT_HINT
        if last_sql_query:
            hint += f"\nPrevious SQL: {last_sql_query}"
        return hint

    def chat(self, message: str, history: Sequence[Any] = (), last_query_result: Optional[QueryResult] = None,
             last_sql_query: Optional[str] = None) -> ChatReply:
        last_sql_query = last_sql_query or (last_query_result.sql if last_query_result else None)

        if wants_sql(message):
            outcome = dispatch(message, "Here is the SQL from the last query:", [ShowSql()],
                               self.executor, last_sql_query=last_sql_query)
            return ChatReply(response=outcome.response, sql_query=last_sql_query)

        canned = agent.small_talk_reply(message)
        if canned:
            return ChatReply(response=canned)

        try:
            llm = self.generate(message, list(history), self._context_hint(last_sql_query))
        except Exception:
            logger.exception("[chat] generation service failed")
            return ChatReply(response=FALLBACK_RESPONSE)

        calls = normalize_tool_calls(llm.tool_calls)
        if not calls:
            # no tool call means no data; never guess SQL from keywords
            return ChatReply(response=llm.answer or NO_QUERY_RESPONSE)

        outcome: DispatchOutcome = dispatch(message, llm.answer, calls, self.executor,
                                            last_sql_query=last_sql_query, row_limit=self.row_limit)
        result = outcome.query_result
        show_table = False
        if result is not None and result.success:
            show_table = should_show_table(message, result.row_count > 0)

        logger.info("[chat] tools=%s table=%s", ",".join(outcome.executed), show_table)
        return ChatReply(
            response=outcome.response or NO_QUERY_RESPONSE,
            query_result=result,
            sql_query=outcome.sql_query,
            should_show_table=show_table,
            is_two_step=outcome.is_two_step,
            initial_response=outcome.initial_response,
            templates=outcome.templates,
            stats=outcome.stats,
        )
