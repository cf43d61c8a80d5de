"""
Shared fixtures: a throwaway sqlite metrics store and a scripted language model.
"""
from typing import Any, Dict, List, Optional

import pytest

from portfolio_bi.nlp.agent import LLMResponse
from portfolio_bi.services.assistant import Assistant
from portfolio_bi.sql.runner import SQLExecutor
from portfolio_bi.sql.seeds import ensure_db, insert_metrics

# app_name, platform, date, country, installs, in_app_revenue, ads_revenue, ua_cost
METRIC_ROWS = [
    ("Paint Pro", "iOS", "2025-01-01", "US", 100, 50.0, 20.0, 10.0),
    ("Paint Pro", "Android", "2025-01-01", "IN", 200, 30.0, 10.0, 5.0),
    ("FitTrack", "iOS", "2025-01-02", "US", 300, 80.5, 19.5, 40.0),
    # same tuple ingested twice; aggregates must count both
    ("FitTrack", "iOS", "2025-01-02", "US", 300, 80.5, 19.5, 40.0),
    ("TimerX", "Android", "2025-01-03", "DE", 50, 5.0, 5.0, 2.0),
]


class FakeLLM:
    """Stands in for the generation service; records every call."""

    def __init__(self, answer: str = "", tool_calls: Optional[List[Dict[str, Any]]] = None,
                 error: Optional[Exception] = None):
        self.answer = answer
        self.tool_calls = tool_calls or []
        self.error = error
        self.calls = []

    def __call__(self, question, history, context_hint):
        self.calls.append({"question": question, "history": history, "context_hint": context_hint})
        if self.error:
            raise self.error
        return LLMResponse(answer=self.answer, tool_calls=list(self.tool_calls))


@pytest.fixture
def empty_db(tmp_path) -> str:
    return ensure_db(str(tmp_path / "metrics.db"))


@pytest.fixture
def db_path(empty_db) -> str:
    insert_metrics(empty_db, METRIC_ROWS)
    return empty_db


@pytest.fixture
def executor(db_path) -> SQLExecutor:
    return SQLExecutor(db_path)


@pytest.fixture
def make_assistant(executor):
    def _make(llm: Optional[FakeLLM] = None) -> Assistant:
        return Assistant(executor=executor, generate=llm or FakeLLM(answer="ok"))
    return _make
