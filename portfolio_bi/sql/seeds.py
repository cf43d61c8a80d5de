import os, random, sqlite3, math, logging
from pathlib import Path
from datetime import date, timedelta
from typing import Iterable, Optional, Tuple
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DB_PATH = os.getenv("DB_PATH", "data/rounds.db")
SCHEMA = Path(__file__).with_name("schema.sql").read_text(encoding="utf-8")

APPS = [
    ("Paint Pro", "Android"),
    ("Paint Pro", "iOS"),
    ("Countdown", "Android"),
    ("Countdown", "iOS"),
    ("FitTrack", "Android"),
    ("FitTrack", "iOS"),
    ("NoteMaster", "Android"),
    ("NoteMaster", "iOS"),
    ("BudgetBuddy", "Android"),
    ("BudgetBuddy", "iOS"),
    ("QR Scaner", "iOS"),
    ("TimerX", "Android"),
]

COUNTRIES = ["US","GB","DE","FR","CA","BR","IN","AU"]

MetricRow = Tuple[str, str, str, str, int, float, float, float]

INSERT_METRIC = (
    "INSERT INTO app_metrics (app_name, platform, date, country, installs, in_app_revenue, ads_revenue, ua_cost) "
    "VALUES (?,?,?,?,?,?,?,?)"
)

def ensure_db(db_path: Optional[str] = None) -> str:
    """Create the database file and its tables if they don't exist yet."""
    path = Path(db_path or DB_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    con = sqlite3.connect(path)
    with con:
        con.executescript(SCHEMA)
    con.close()
    return str(path)

def insert_metrics(db_path: str, rows: Iterable[MetricRow]) -> int:
    rows = list(rows)
    con = sqlite3.connect(db_path)
    with con:
        con.executemany(INSERT_METRIC, rows)
    con.close()
    return len(rows)

def seasonality(day_idx):
    # Weekly seasonality + mild monthly trend
    return 1.0 + 0.15*math.sin(2*math.pi*(day_idx%7)/7.0) + 0.05*math.sin(2*math.pi*(day_idx%30)/30.0)

def base_installs(app, platform):
    base_map = {
        "Paint Pro": 220,
        "Countdown": 180,
        "FitTrack": 260,
        "NoteMaster": 200,
        "BudgetBuddy": 240,
        "QR Scaner": 190,
        "TimerX": 210,
    }
    base = base_map.get(app, 200)
    if platform == "iOS":
        base = int(base * 0.9)
    return base

def generate_rows(start: date, end: date, seed: int = 42) -> Iterable[MetricRow]:
    rng = random.Random(seed)
    day_idx = 0
    for app_name, platform in APPS:
        for c in COUNTRIES:
            d = start
            while d <= end:
                s = seasonality(day_idx)
                inst = max(0, int(base_installs(app_name, platform) * s * rng.uniform(0.8, 1.3)))
                # revenue mix
                iap = round(inst * rng.uniform(0.05, 0.18), 2)
                ads = round(inst * rng.uniform(0.02, 0.12), 2)
                ua = round(inst * rng.uniform(0.02, 0.16), 2)
                yield (app_name, platform, d.isoformat(), c, inst, iap, ads, ua)
                d += timedelta(days=1)
                day_idx += 1

def run(db_path: Optional[str] = None, start: date = date(2024, 12, 1), end: date = date(2025, 8, 15)) -> int:
    db_path = ensure_db(db_path)
    con = sqlite3.connect(db_path)
    with con:
        con.execute("DELETE FROM app_metrics")
    con.close()
    count = insert_metrics(db_path, generate_rows(start, end))
    logger.info("[sql] seeded %d rows into %s", count, db_path)
    return count

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    load_dotenv()
    run(os.getenv("DB_PATH", DB_PATH))
