import os, logging

logger = logging.getLogger(__name__)

_initialized = False

def init_tracing() -> bool:
    # Optional LangSmith tracing of the model calls
    global _initialized
    enabled = bool(os.getenv("LANGCHAIN_API_KEY"))
    if enabled:
        os.environ["LANGCHAIN_TRACING_V2"] = os.getenv("LANGCHAIN_TRACING_V2","true")
        os.environ.setdefault("LANGCHAIN_PROJECT", "Portfolio-BI-Chat")
    if not _initialized:
        logger.info("[obs] LangSmith tracing %s", "enabled" if enabled else "disabled (no LANGCHAIN_API_KEY)")
        _initialized = True
    return enabled
