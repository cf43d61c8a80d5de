import json, logging, sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class QueryLogEntry:
    query_text: str
    sql_generated: str
    result: str
    timestamp: str
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "queryText": self.query_text,
            "sqlGenerated": self.sql_generated,
            "result": self.result,
            "timestamp": self.timestamp,
        }

class QueryLog:
    """Append-only audit trail of executed queries, stored next to the metrics."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def append(self, query_text: str, sql: str, rows: Optional[List[Dict[str, Any]]]) -> Optional[QueryLogEntry]:
        entry = QueryLogEntry(
            query_text=query_text,
            sql_generated=sql,
            result=json.dumps(rows or []),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        # best-effort: losing an audit row must not fail the query
        try:
            con = sqlite3.connect(self.db_path)
            try:
                with con:
                    cur = con.execute(
                        "INSERT INTO query_log (query_text, sql_generated, result, timestamp) VALUES (?,?,?,?)",
                        (entry.query_text, entry.sql_generated, entry.result, entry.timestamp),
                    )
                    new_id = cur.lastrowid
            finally:
                con.close()
        except sqlite3.Error:
            logger.exception("[sql] failed to write query log entry")
            return None
        return QueryLogEntry(entry.query_text, entry.sql_generated, entry.result, entry.timestamp, id=new_id)

    def recent(self, limit: int = 50) -> List[QueryLogEntry]:
        con = sqlite3.connect(self.db_path)
        try:
            rows = con.execute(
                "SELECT id, query_text, sql_generated, result, timestamp FROM query_log ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        finally:
            con.close()
        return [
            QueryLogEntry(query_text=r[1], sql_generated=r[2], result=r[3], timestamp=r[4], id=r[0])
            for r in rows
        ]
