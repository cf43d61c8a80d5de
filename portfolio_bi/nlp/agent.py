import re, json, logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .schema_doc import SCHEMA_TEXT
from .prompts import SYSTEM_PROMPT, FEW_SHOTS, HELP_TEXT
from . import config

logger = logging.getLogger(__name__)

SMALL_TALK_PATTERNS = [
    re.compile(r"^\s*(hi|hello|hey|yo|sup|hiya|good (morning|afternoon|evening))\s*!?$", re.I),
    re.compile(r"^\s*(thanks|thank you|thx)\s*!?$", re.I),
]
HELP_PATTERN = re.compile(r"^\s*(help|examples)\s*\??$", re.I)

TOOL_SPECS = [
    {
        "type": "function",
        "function": {
            "name": "execute_sql_query",
            "description": "Run a single SELECT statement against app_metrics and return the rows.",
            "parameters": {
                "type": "object",
                "properties": {
                    "sql_query": {"type": "string", "description": "The SELECT statement to run"},
                    "query_description": {"type": "string", "description": "What the query answers"},
                },
                "required": ["sql_query", "query_description"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_query_templates",
            "description": "List curated, pre-vetted SQL reports, optionally filtered by category.",
            "parameters": {
                "type": "object",
                "properties": {
                    "category": {
                        "type": "string",
                        "enum": ["revenue", "downloads", "performance", "comparison", "trends"],
                    },
                },
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_database_stats",
            "description": "Totals for apps, revenue, installs and UA cost.",
            "parameters": {"type": "object", "properties": {}},
        },
    },
    {
        "type": "function",
        "function": {
            "name": "show_sql_query",
            "description": "Show the SQL of the most recent query to the user.",
            "parameters": {"type": "object", "properties": {}},
        },
    },
]

class GenerationUnavailable(RuntimeError):
    pass

@dataclass
class LLMResponse:
    answer: str
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)

def small_talk_reply(user_text: str) -> Optional[str]:
    if HELP_PATTERN.search(user_text or ""):
        return HELP_TEXT
    for pat in SMALL_TALK_PATTERNS:
        if pat.search(user_text or ""):
            return (
                "Hi! I'm focused on the app portfolio analytics. "
                "Ask me about apps, installs, revenue, UA, countries, or platforms."
            )
    return None

def _content_text(content: Any) -> str:
    # langchain messages carry either a string or a list of content blocks
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, dict):
                parts.append(block.get("text", ""))
            else:
                parts.append(str(block))
        return "".join(parts)
    return str(content or "")

def parse_llm_output(content: Any, typed_tool_calls: Optional[Sequence[Dict[str, Any]]] = None) -> LLMResponse:
    """Split a model reply into answer text and raw tool calls.

    Tool calls come either as the message's typed ``tool_calls`` field or as a
    JSON object embedded in the text (optionally fenced).
    """
    raw = _content_text(content).strip()
    calls: List[Dict[str, Any]] = [dict(c) for c in (typed_tool_calls or [])]
    answer = raw

    if "{" in raw and "}" in raw:
        start, end = raw.find("{"), raw.rfind("}") + 1
        try:
            data = json.loads(raw[start:end])
        except ValueError:
            data = None
        if isinstance(data, dict):
            embedded = data.get("tool_calls") or data.get("toolCalls") or data.get("tools")
            if isinstance(embedded, list):
                calls.extend(c for c in embedded if isinstance(c, dict))
            elif data.get("tool") or data.get("name"):
                calls.append(data)
            text = data.get("answer") or data.get("response")
            if isinstance(text, str):
                answer = text
            else:
                # drop the JSON (and any fence around it) from the visible text
                answer = (raw[:start] + raw[end:]).replace("```json", "").replace("```", "").strip()

    return LLMResponse(answer=answer, tool_calls=calls)

def _build_messages(question: str, history: Sequence[Any], context_hint: str):
    shot_strs = [f"User: {s['user']}\nJSON: {json.dumps(s['json'])}" for s in FEW_SHOTS]
    system = (
        SYSTEM_PROMPT
        + "\n\nSCHEMA:\n" + SCHEMA_TEXT
        + "\n\nEXAMPLES:\n" + "\n\n".join(shot_strs)
        + f"\n\nCONTEXT: {context_hint}"
    )
    messages = [("system", system)]
    for turn in history:
        if isinstance(turn, dict):
            role, content = turn.get("role"), turn.get("content", "")
        else:
            role, content = turn.role, turn.content
        messages.append(("ai" if role == "assistant" else "human", content))
    messages.append(("human", question))
    return messages

def generate_response(question: str, history: Sequence[Any], context_hint: str = config.CONTEXT_HINT) -> LLMResponse:
    if not config.USE_OPENAI:
        raise GenerationUnavailable("OPENAI_API_KEY is not configured")

    # Import inside so the module loads even if langchain_openai isn't present at import time
    from langchain_openai import ChatOpenAI

    llm = ChatOpenAI(model=config.LLM_MODEL, temperature=config.LLM_TEMPERATURE).bind_tools(TOOL_SPECS)
    if config.LOG_LLM_USAGE:
        logger.info("[nlp] calling model=%s history=%d", config.LLM_MODEL, len(history))

    resp = llm.invoke(_build_messages(question, history, context_hint))
    return parse_llm_output(getattr(resp, "content", str(resp)), getattr(resp, "tool_calls", None))
