import csv, logging
from typing import Any, Dict, List, Optional
import pandas as pd
from slack_bolt import App

logger = logging.getLogger(__name__)

def _csv_cell(val: Any) -> Any:
    # query results carry every number as float; whole ones print as 600, not 600.0
    if isinstance(val, float) and val.is_integer():
        return int(val)
    return val

def export_csv(rows: List[Dict[str, Any]]) -> str:
    """Header from the first row's keys, one line per row, no trailing newline."""
    if not rows:
        return ""
    columns = list(rows[0].keys())
    records = [{col: _csv_cell(row.get(col)) for col in columns} for row in rows]
    # object dtype keeps a None from turning an int column into floats
    df = pd.DataFrame(records, columns=columns, dtype=object)
    text = df.to_csv(index=False, lineterminator="\n", quoting=csv.QUOTE_MINIMAL, na_rep="")
    return text[:-1] if text.endswith("\n") else text

def upload_csv(app: App, channel: str, rows: List[Dict[str, Any]], title: str = "export.csv",
               filename: str = "export.csv", thread_ts: Optional[str] = None):
    app.client.files_upload_v2(
        channel=channel,
        content=export_csv(rows),
        filename=filename,
        title=title,
        thread_ts=thread_ts
    )
    logger.info("[slack] uploaded %s (%d rows) to %s", filename, len(rows), channel)
