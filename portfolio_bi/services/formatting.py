from typing import Any, Dict, List, Optional

from ..nlp import config

CURRENCY_HINTS = ("revenue", "cost", "spend", "profit", "roi", "price")

def is_currency_column(col: Optional[str]) -> bool:
    col = (col or "").lower()
    return any(h in col for h in CURRENCY_HINTS)

def _abbreviate(val: float) -> Optional[str]:
    if not config.SUMMARY_ABBREVIATE:
        return None
    if abs(val) >= config.SUMMARY_MILLIONS_AT:
        return f"{val/1_000_000:.1f}M"
    if abs(val) >= config.SUMMARY_THOUSANDS_AT:
        return f"{val/1_000:.1f}K"
    return None

def format_number(val: Any) -> str:
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        return str(val)
    short = _abbreviate(val)
    if short:
        return short
    if float(val).is_integer():
        return f"{int(val):,}"
    return f"{val:,.2f}"

def format_currency(val: Any) -> str:
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        return str(val)
    short = _abbreviate(val)
    if short:
        return f"${short}"
    if float(val).is_integer():
        return f"${int(val):,}"
    return f"${val:,.2f}"

def format_value(val: Any, col: Optional[str]) -> str:
    if is_currency_column(col):
        return format_currency(val)
    return format_number(val)

def _fmt_cell(val, col):
    # 1,234 ; 12.34 ; pct columns -> 12.3%
    if val is None:
        return ""
    if isinstance(val, bool):
        return "true" if val else "false"
    if isinstance(val, (int, float)):
        if "pct" in col.lower() or "percent" in col.lower():
            return f"{val*100:.1f}%"
        return format_number(val)
    return str(val)

def rows_to_markdown_table(rows: List[Dict[str, Any]], max_rows: int = 10) -> str:
    if not rows:
        return "_No rows returned_"
    headers = list(rows[0].keys())
    lines = []
    lines.append("| " + " | ".join(headers) + " |")
    lines.append("| " + " | ".join(["---"]*len(headers)) + " |")
    for row in rows[:max_rows]:
        vals = [_fmt_cell(row.get(col), col) for col in headers]
        lines.append("| " + " | ".join(vals) + " |")
    if len(rows) > max_rows:
        lines.append(f"_…plus {len(rows)-max_rows} more rows_")
    return "\n".join(lines)
