"""
Static checks on generated SQL before it reaches the store.

This is a keyword gate that allows a single statement type (SELECT). It is not
a parser: UNION-based exfiltration or subqueries calling privileged functions
are not detected here.
"""
from typing import Dict, Any, List

FORBIDDEN_PATTERNS = (
    "drop table",
    "delete from",
    "insert into",
    "update ",
    "create table",
    "alter table",
    "truncate",
    "/*",
    "*/",
)

def _find_forbidden(text: str):
    for pattern in FORBIDDEN_PATTERNS:
        if pattern in text:
            return pattern
    return None

def _split_comments(sql: str):
    code: List[str] = []
    comments: List[str] = []
    for line in sql.split("\n"):
        stripped = line.strip()
        if stripped.startswith("--"):
            comments.append(stripped[2:].strip())
        else:
            code.append(line)
    return "\n".join(code), comments

def validate(sql: str) -> Dict[str, Any]:
    if not isinstance(sql, str) or not sql.strip():
        return {"valid": False, "reason": "Empty SQL"}

    if not sql.strip().lower().startswith("select"):
        return {"valid": False, "reason": "Only SELECT queries are allowed"}

    code, comments = _split_comments(sql)
    hit = _find_forbidden(code.lower())
    if hit:
        return {"valid": False, "reason": f"Query contains forbidden pattern: {hit}"}

    # comments may explain a query, but not carry forbidden keywords
    for body in comments:
        hit = _find_forbidden(body.lower())
        if hit:
            return {"valid": False, "reason": f"Comment contains forbidden pattern: {hit}"}

    return {"valid": True}
