import re, logging
from typing import Any, Dict, List, Optional, Tuple

from ..sql.runner import QueryResult
from .formatting import format_value, format_number

logger = logging.getLogger(__name__)

GROUP_COLUMNS = ("country", "app_name", "name", "platform", "date")
MEASURE_COLUMNS = (
    "total_revenue", "revenue", "in_app_revenue", "ads_revenue", "net_profit", "roi",
    "app_count", "count", "total_count", "total_installs", "installs", "popularity",
    "total_ua_cost", "ua_cost", "avg_revenue", "avg_installs", "value",
)

NO_RESULTS = "The query ran successfully but returned no results."
COUNT_STOPWORDS = {"do", "does", "did", "are", "is", "were", "was", "have", "has", "we", "in", "on", "for", "there", "with"}

def _first_present(row: Dict[str, Any], columns) -> Tuple[Optional[str], Any]:
    for col in columns:
        if row.get(col) is not None:
            return col, row[col]
    return None, None

def _pick_group(row: Dict[str, Any]) -> Tuple[Optional[str], Any]:
    col, val = _first_present(row, GROUP_COLUMNS)
    if col:
        return col, val
    for k, v in row.items():
        if isinstance(v, str):
            return k, v
    return None, None

def _pick_measure(row: Dict[str, Any]) -> Tuple[Optional[str], Any]:
    col, val = _first_present(row, MEASURE_COLUMNS)
    if col:
        return col, val
    for k, v in row.items():
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return k, v
    return None, None

def _count_subject(question: str) -> str:
    m = re.search(r"how many\s+(.*)", question)
    if not m:
        return ""
    words = []
    for w in re.findall(r"[a-z0-9]+", m.group(1)):
        if w in COUNT_STOPWORDS:
            break
        words.append(w)
    return " ".join(words[:3])

def _label(col: str) -> str:
    return col.replace("_", " ")

def _single_row(question: str, row: Dict[str, Any]) -> str:
    group_col, name = _pick_group(row)
    measure_col, value = _pick_measure(row)
    shown = format_value(value, measure_col) if measure_col else None

    if "country" in question and "revenue" in question and name is not None and shown:
        if "least" in question or "lowest" in question:
            return f"{name} generates the least revenue, with {shown}."
        return f"{name} generates the most revenue, with {shown}."

    if "how many" in question and shown:
        subject = _count_subject(question)
        if name is not None:
            return f"{name} has {format_number(value)} {subject}".rstrip() + "."
        if subject:
            return f"There are {format_number(value)} {subject}."
        return f"The count is {format_number(value)}."

    if name is not None and shown:
        return f"{name} has {shown} in {_label(measure_col)}."
    if shown:
        return f"The {_label(measure_col)} is {shown}."
    if name is not None:
        return f"The result is {name}."
    return "The query returned one row: " + ", ".join(f"{k}={v}" for k, v in row.items())

def _many_rows(rows: List[Dict[str, Any]]) -> str:
    pairs = []
    for row in rows[:3]:
        _, name = _pick_group(row)
        measure_col, value = _pick_measure(row)
        if name is None and measure_col is None:
            continue
        if measure_col is None:
            pairs.append(str(name))
        elif name is None:
            pairs.append(format_value(value, measure_col))
        else:
            pairs.append(f"{name} ({format_value(value, measure_col)})")
    text = f"Found {len(rows)} results"
    if pairs:
        text += ". Top entries: " + ", ".join(pairs)
    return text + "."

def summarize(question: str, result: QueryResult, initial_response: str = "") -> str:
    """Turn a query result into a one-line answer without calling the model.

    Falls back to ``initial_response`` if anything about the rows is unexpected.
    """
    try:
        q = (question or "").lower()
        rows = result.data or []
        if not rows:
            return NO_RESULTS
        if len(rows) == 1:
            return _single_row(q, rows[0])
        return _many_rows(rows)
    except Exception:
        logger.warning("[chat] summary formatting failed; keeping initial response", exc_info=True)
        return initial_response
