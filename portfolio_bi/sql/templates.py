from dataclasses import dataclass, asdict, field
from typing import Dict, Any, Optional, Tuple

CATEGORIES = ("revenue", "downloads", "performance", "comparison", "trends")

@dataclass(frozen=True)
class SQLTemplate:
    id: str
    name: str
    description: str
    category: str
    sql: str
    parameters: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["parameters"] = list(self.parameters)
        return data

SQL_TEMPLATES: Tuple[SQLTemplate, ...] = (
    SQLTemplate(
        id="total-revenue",
        name="Total Revenue",
        description="Total revenue (in-app + ads) across all apps",
        category="revenue",
        sql="SELECT SUM(in_app_revenue + ads_revenue) AS total_revenue FROM app_metrics",
    ),
    SQLTemplate(
        id="revenue-by-platform",
        name="Revenue by Platform",
        description="Revenue breakdown by platform (iOS vs Android)",
        category="revenue",
        sql="SELECT platform, SUM(in_app_revenue + ads_revenue) AS total_revenue FROM app_metrics GROUP BY platform ORDER BY total_revenue DESC",
    ),
    SQLTemplate(
        id="top-revenue-apps",
        name="Top Revenue Apps",
        description="Top 5 apps by total revenue",
        category="revenue",
        sql="SELECT app_name, SUM(in_app_revenue + ads_revenue) AS total_revenue FROM app_metrics GROUP BY app_name ORDER BY total_revenue DESC LIMIT 5",
    ),
    SQLTemplate(
        id="revenue-by-country",
        name="Revenue by Country",
        description="Revenue breakdown by country",
        category="revenue",
        sql="SELECT country, SUM(in_app_revenue + ads_revenue) AS total_revenue FROM app_metrics GROUP BY country ORDER BY total_revenue DESC",
    ),
    SQLTemplate(
        id="total-downloads",
        name="Total Downloads",
        description="Total installs across all apps",
        category="downloads",
        sql="SELECT SUM(installs) AS total_installs FROM app_metrics",
    ),
    SQLTemplate(
        id="downloads-by-platform",
        name="Downloads by Platform",
        description="Installs breakdown by platform",
        category="downloads",
        sql="SELECT platform, SUM(installs) AS total_installs FROM app_metrics GROUP BY platform ORDER BY total_installs DESC",
    ),
    SQLTemplate(
        id="top-downloaded-apps",
        name="Top Downloaded Apps",
        description="Top 5 apps by installs",
        category="downloads",
        sql="SELECT app_name, SUM(installs) AS total_installs FROM app_metrics GROUP BY app_name ORDER BY total_installs DESC LIMIT 5",
    ),
    SQLTemplate(
        id="ua-spend-analysis",
        name="UA Spend Analysis",
        description="Total UA spend against total revenue",
        category="performance",
        sql=(
            "SELECT SUM(ua_cost) AS total_ua_cost, SUM(in_app_revenue + ads_revenue) AS total_revenue, "
            "SUM(in_app_revenue + ads_revenue) - SUM(ua_cost) AS net_profit FROM app_metrics"
        ),
    ),
    SQLTemplate(
        id="roi-by-app",
        name="ROI by App",
        description="Revenue minus UA spend for each app and platform",
        category="performance",
        sql=(
            "SELECT app_name, platform, SUM(in_app_revenue + ads_revenue) AS total_revenue, SUM(ua_cost) AS total_ua_cost, "
            "SUM(in_app_revenue + ads_revenue) - SUM(ua_cost) AS roi FROM app_metrics "
            "GROUP BY app_name, platform ORDER BY roi DESC"
        ),
    ),
    SQLTemplate(
        id="platform-comparison",
        name="Platform Comparison",
        description="Compare iOS vs Android daily averages",
        category="comparison",
        sql=(
            "SELECT platform, AVG(in_app_revenue + ads_revenue) AS avg_revenue, AVG(installs) AS avg_installs, "
            "AVG(ua_cost) AS avg_ua_cost FROM app_metrics GROUP BY platform"
        ),
    ),
    SQLTemplate(
        id="country-performance",
        name="Country Performance",
        description="Apps, revenue and installs by country",
        category="comparison",
        sql=(
            "SELECT country, COUNT(DISTINCT app_name) AS app_count, AVG(in_app_revenue + ads_revenue) AS avg_revenue, "
            "AVG(installs) AS avg_installs FROM app_metrics GROUP BY country ORDER BY avg_revenue DESC"
        ),
    ),
    SQLTemplate(
        id="revenue-trends",
        name="Revenue Trends",
        description="Daily revenue over the last 30 days of data",
        category="trends",
        sql="SELECT date, SUM(in_app_revenue + ads_revenue) AS daily_revenue FROM app_metrics GROUP BY date ORDER BY date DESC LIMIT 30",
    ),
    SQLTemplate(
        id="download-trends",
        name="Download Trends",
        description="Daily installs over the last 30 days of data",
        category="trends",
        sql="SELECT date, SUM(installs) AS daily_installs FROM app_metrics GROUP BY date ORDER BY date DESC LIMIT 30",
    ),
)

def get_all() -> Tuple[SQLTemplate, ...]:
    return SQL_TEMPLATES

def get_by_id(template_id: str) -> Optional[SQLTemplate]:
    for template in SQL_TEMPLATES:
        if template.id == template_id:
            return template
    return None

def get_by_category(category: str) -> Tuple[SQLTemplate, ...]:
    return tuple(t for t in SQL_TEMPLATES if t.category == category)
