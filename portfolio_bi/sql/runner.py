import os, re, math, time, logging, sqlite3, threading
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from dotenv import load_dotenv

from . import templates
from .query_log import QueryLog
from .validator import validate

load_dotenv()

logger = logging.getLogger(__name__)

DB_PATH = os.getenv("DB_PATH", "data/rounds.db")
DEFAULT_ROW_LIMIT = int(os.getenv("DEFAULT_ROW_LIMIT", "1000"))
QUERY_TIMEOUT_MS = int(os.getenv("QUERY_TIMEOUT_MS", "0"))

STATS_SQL = (
    "SELECT COUNT(DISTINCT app_name) AS total_apps, "
    "SUM(in_app_revenue + ads_revenue) AS total_revenue, "
    "SUM(installs) AS total_installs, "
    "SUM(ua_cost) AS total_ua_cost "
    "FROM app_metrics"
)

TRAILING_SEMICOLON = re.compile(r";\s*$")

def get_sql_config():
    """Get current SQL execution configuration as a dict"""
    return {
        "db_path": DB_PATH,
        "default_row_limit": DEFAULT_ROW_LIMIT,
        "query_timeout_ms": QUERY_TIMEOUT_MS,
    }

class QueryTimeout(Exception):
    pass

class QueryCanceller:
    """Interrupts a connection from a timer thread, never after it was closed."""

    def __init__(self, con):
        self.con = con
        self.fired = False
        self.closed = False
        self._lock = threading.Lock()

    def fire(self):
        with self._lock:
            if self.closed:
                return
            self.fired = True
            # interrupt() is safe to call from another thread
            self.con.interrupt()

    def close(self):
        with self._lock:
            self.closed = True
            self.con.close()

@dataclass
class QueryResult:
    success: bool
    data: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[str] = None
    sql: Optional[str] = None
    execution_time: float = 0.0
    row_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error,
            "errorKind": self.error_kind,
            "sql": self.sql,
            "executionTime": self.execution_time,
            "rowCount": self.row_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueryResult":
        rows = data.get("data") or []
        return cls(
            success=bool(data.get("success")),
            data=rows,
            error=data.get("error"),
            error_kind=data.get("errorKind"),
            sql=data.get("sql"),
            execution_time=data.get("executionTime") or 0.0,
            row_count=data.get("rowCount") or len(rows),
        )

def normalize_value(value: Any) -> Any:
    """Make store values JSON-safe: integers become floats, NaN becomes None."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (int, np.integer, Decimal)):
        return float(value)
    if isinstance(value, (float, np.floating)):
        value = float(value)
        return None if math.isnan(value) else value
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: normalize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_value(v) for v in value]
    return value

def apply_limit(sql: str, limit: Optional[int]) -> str:
    sql = TRAILING_SEMICOLON.sub("", sql.strip())
    if limit and "limit" not in sql.lower():
        sql = f"{sql} LIMIT {int(limit)}"
    return sql

def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)

class SQLExecutor:
    def __init__(self, db_path: Optional[str] = None, query_log: Optional[QueryLog] = None):
        self.db_path = db_path or DB_PATH
        self.query_log = query_log if query_log is not None else QueryLog(self.db_path)

    def _read(self, sql: str, timeout_ms: Optional[int]) -> pd.DataFrame:
        con = sqlite3.connect(self.db_path)
        canceller = QueryCanceller(con)
        timer = None
        try:
            if timeout_ms:
                timer = threading.Timer(timeout_ms / 1000.0, canceller.fire)
                timer.start()
            try:
                return pd.read_sql_query(sql, con)
            except Exception as e:
                if canceller.fired:
                    raise QueryTimeout(f"Query timed out after {timeout_ms} ms") from e
                raise
        finally:
            if timer is not None:
                timer.cancel()
            canceller.close()

    def execute(self, sql: str, limit: Optional[int] = None, timeout_ms: Optional[int] = None,
                description: Optional[str] = None, log_query: bool = True) -> QueryResult:
        start = time.perf_counter()

        verdict = validate(sql)
        if not verdict["valid"]:
            logger.info("[sql] rejected query: %s", verdict["reason"])
            return QueryResult(
                success=False, error=verdict["reason"], error_kind="validation",
                sql=sql, execution_time=_elapsed_ms(start),
            )

        final_sql = apply_limit(sql, limit)
        timeout_ms = timeout_ms if timeout_ms is not None else QUERY_TIMEOUT_MS
        try:
            df = self._read(final_sql, timeout_ms)
            rows = normalize_value(df.to_dict(orient="records"))
            result = QueryResult(
                success=True, data=rows, sql=final_sql,
                execution_time=_elapsed_ms(start), row_count=len(rows),
            )
        except Exception as e:
            kind = "timeout" if isinstance(e, QueryTimeout) else "execution"
            error = str(e) or e.__class__.__name__
            logger.warning("[sql] query failed (%s): %s", kind, error)
            result = QueryResult(
                success=False, error=error, error_kind=kind,
                sql=final_sql, execution_time=_elapsed_ms(start),
            )

        if log_query:
            self.query_log.append(description or final_sql, final_sql, result.data)
        logger.info("[sql] %s rows=%d in %.1fms", "ok" if result.success else "failed",
                    result.row_count, result.execution_time)
        return result

    def execute_template(self, template_id: str, limit: Optional[int] = None,
                         timeout_ms: Optional[int] = None) -> QueryResult:
        template = templates.get_by_id(template_id)
        if template is None:
            return QueryResult(
                success=False, error=f"Template with ID '{template_id}' not found",
                error_kind="not_found",
            )
        return self.execute(template.sql, limit=limit, timeout_ms=timeout_ms,
                            description=f"Template: {template.id}")

    def get_query_stats(self) -> Dict[str, float]:
        stats = {"totalApps": 0.0, "totalRevenue": 0.0, "totalInstalls": 0.0, "totalUaCost": 0.0}
        try:
            result = self.execute(STATS_SQL, log_query=False)
            if not result.success or not result.data:
                return stats
            row = result.data[0]
            stats["totalApps"] = row.get("total_apps") or 0.0
            stats["totalRevenue"] = row.get("total_revenue") or 0.0
            stats["totalInstalls"] = row.get("total_installs") or 0.0
            stats["totalUaCost"] = row.get("total_ua_cost") or 0.0
        except Exception:
            logger.exception("[sql] stats query failed")
        return stats
