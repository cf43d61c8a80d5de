import logging
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from .nlp.config import get_llm_config, get_nlp_config
from .obs.tracing import init_tracing
from .schemas import ChatRequest, ExportRequest, QueryRequest
from .services.assistant import Assistant
from .services.sessions import ConversationTurn
from .sql.runner import QueryResult, get_sql_config
from .sql.templates import CATEGORIES

load_dotenv()
logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)

app = FastAPI(title="Portfolio BI Chat")
init_tracing()

@lru_cache
def get_assistant() -> Assistant:
    return Assistant()

@lru_cache
def get_slack_handler():
    # built on first use so the API runs without Slack credentials
    from slack_bolt.adapter.fastapi import SlackRequestHandler
    from .handlers import build_app
    return SlackRequestHandler(build_app(get_assistant()))

def _error(status: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message, **extra})

@app.get("/health")
async def health():
    return {"ok": True}

@app.get("/config")
async def config():
    """Show current LLM, NLP and SQL configuration"""
    return {
        "llm": get_llm_config(),
        "nlp": get_nlp_config(),
        "sql": get_sql_config(),
    }

@app.get("/api/query")
def list_query_options(assistant: Assistant = Depends(get_assistant)):
    try:
        return {
            "templates": assistant.list_templates(),
            "stats": assistant.get_stats(),
            "message": "Query templates and stats retrieved successfully",
        }
    except Exception:
        logger.exception("[api] failed to fetch templates")
        return _error(500, "Failed to fetch templates")

@app.post("/api/query")
def run_query(body: QueryRequest, assistant: Assistant = Depends(get_assistant)):
    opts = body.options
    if not body.template_id and not body.custom_sql:
        return _error(400, "Either templateId or customSql must be provided")
    try:
        if body.template_id:
            result = assistant.run_template(body.template_id, limit=opts.limit, timeout_ms=opts.timeout_ms)
        else:
            result = assistant.run_sql(body.custom_sql, limit=opts.limit, timeout_ms=opts.timeout_ms)
    except Exception:
        logger.exception("[api] failed to execute query")
        return _error(500, "Failed to execute query")

    if not result.success:
        status = 404 if result.error_kind == "not_found" else 400
        return _error(status, result.error, errorKind=result.error_kind, sql=result.sql,
                      executionTime=result.execution_time)
    return result.to_dict()

@app.get("/api/templates")
def list_templates(category: Optional[str] = None, assistant: Assistant = Depends(get_assistant)):
    if category and category not in CATEGORIES:
        return _error(400, f"Unknown category '{category}'", categories=list(CATEGORIES))
    return {"templates": assistant.list_templates(category)}

@app.get("/api/stats")
def stats(assistant: Assistant = Depends(get_assistant)):
    return assistant.get_stats()

@app.get("/api/queries")
def recent_queries(limit: int = Query(default=50, ge=1, le=500), assistant: Assistant = Depends(get_assistant)):
    try:
        return {"queries": assistant.recent_queries(limit)}
    except Exception:
        logger.exception("[api] failed to read query log")
        return _error(500, "Failed to read query log")

@app.post("/api/chat")
def chat(body: ChatRequest, assistant: Assistant = Depends(get_assistant)):
    try:
        history = [ConversationTurn(role=t.role, content=t.content, timestamp=t.timestamp or "")
                   for t in body.conversation_history]
        last_result = QueryResult.from_dict(body.last_query_result) if body.last_query_result else None
        reply = assistant.chat(body.message, history, last_query_result=last_result,
                               last_sql_query=body.last_sql_query)
        return reply.to_dict()
    except Exception:
        logger.exception("[api] error in chat")
        return _error(500, "Failed to process chat message")

@app.post("/api/export")
def export(body: ExportRequest, assistant: Assistant = Depends(get_assistant)):
    return PlainTextResponse(assistant.export_csv(body.rows), media_type="text/csv",
                             headers={"Content-Disposition": "attachment; filename=export.csv"})

@app.post("/slack/events")
async def slack_events(request: Request):
    return await get_slack_handler().handle(request)
