from slack_bolt import App, Ack
from typing import Optional
import os, logging, re

from .nlp import config
from .nlp.prompts import HELP_TEXT
from .services.assistant import Assistant
from .services.csv_export import upload_csv
from .services.formatting import rows_to_markdown_table
from .services.sessions import SessionStore, Session
from .obs.tracing import init_tracing

logger = logging.getLogger(__name__)

EXPORT_PATTERNS = [
    r"\b(export|download|save|dump)\b.*\bcsv\b",
    r"^export\s+csv$",
    r"^export\s+this\s+as\s+csv$",
    r"^download\s+csv$",
]

BUTTONS = {"type":"actions","elements":[
    {"type":"button","text":{"type":"plain_text","text":"Export CSV"},"action_id":"export_csv"},
    {"type":"button","text":{"type":"plain_text","text":"Show SQL"},"action_id":"show_sql"}
]}

def build_app(assistant: Optional[Assistant] = None, sessions: Optional[SessionStore] = None) -> App:
    init_tracing()
    assistant = assistant or Assistant()
    sessions = sessions or SessionStore(max_turns=config.SESSION_MAX_TURNS, ttl_seconds=config.SESSION_TTL_SECONDS)
    app = App(token=os.getenv("SLACK_BOT_TOKEN"), signing_secret=os.getenv("SLACK_SIGNING_SECRET"))

    @app.event("message")
    def handle_message_events(body, event, say, client, context):
        # ignore edits/bot messages
        if event.get("subtype") or event.get("bot_id"):
            return

        channel = event.get("channel")
        text = event.get("text", "")
        thread_ts = event.get("thread_ts") or event.get("ts")

        # DM? (channels starting with 'D' are IMs)
        if channel and channel.startswith("D"):
            handle_query(app, assistant, sessions, say, channel, thread_ts, text)
            return

        # Channel message: respond only if the bot is actually mentioned
        bot_user_id = context.get("bot_user_id")
        if not bot_user_id:
            try:
                bot_user_id = client.auth_test()["user_id"]
            except Exception:
                logger.warning("[slack] auth_test failed; ignoring channel message", exc_info=True)
                bot_user_id = None

        if bot_user_id and f"<@{bot_user_id}>" in text:
            cleaned = text.replace(f"<@{bot_user_id}>", "").strip()
            handle_query(app, assistant, sessions, say, channel, thread_ts, cleaned)

    @app.event("app_mention")
    def handle_mention(body, say, event):
        channel = event.get("channel")
        thread_ts = event.get("thread_ts") or event.get("ts")
        text = event.get("text","")
        # strip bot mention
        text = " ".join([t for t in text.split() if not t.startswith("<@")])
        handle_query(app, assistant, sessions, say, channel, thread_ts, text)

    @app.command("/bi")
    def slash_bi(ack, body, say):
        ack()
        channel = body["channel_id"]
        thread_ts = body.get("container",{}).get("thread_ts") or body.get("container",{}).get("message_ts")
        text = (body.get("text") or "").strip()
        if text.lower() in ("help", "", "examples"):
            say(thread_ts=thread_ts, text=HELP_TEXT)
            return
        handle_query(app, assistant, sessions, say, channel, thread_ts, text)

    @app.command("/export")
    def slash_export(ack: Ack, body, say):
        ack()
        channel = body.get("channel_id")
        thread_ts = body.get("container",{}).get("thread_ts") or body.get("container",{}).get("message_ts")
        export_last(app, sessions, say, channel, thread_ts)

    @app.action("export_csv")
    def btn_export(ack: Ack, body, say):
        ack()
        channel = body["channel"]["id"]
        thread_ts = body.get("message",{}).get("thread_ts") or body.get("message",{}).get("ts")
        export_last(app, sessions, say, channel, thread_ts)

    @app.action("show_sql")
    def btn_sql(ack: Ack, body, say):
        ack()
        channel = body["channel"]["id"]
        thread_ts = body.get("message",{}).get("thread_ts") or body.get("message",{}).get("ts")
        last = get_last_session(sessions, channel, thread_ts)
        if not last or not last.last_sql:
            say(text="No SQL cached in this thread.", thread_ts=thread_ts)
            return
        say(text=f"```\n{last.last_sql}\n```", thread_ts=thread_ts)

    return app

def get_last_session(sessions: SessionStore, channel: str, thread_ts: Optional[str]) -> Optional[Session]:
    last = sessions.get(SessionStore.key(channel, thread_ts)) if thread_ts else None
    if not last or last.last_result is None:
        last = sessions.get(SessionStore.key(channel, "__last__"))  # channel-level fallback
    return last

def export_last(app: App, sessions: SessionStore, say, channel: str, thread_ts: Optional[str]):
    last = get_last_session(sessions, channel, thread_ts)
    if not last or last.last_result is None or not last.last_result.data:
        say(text="No recent result to export in this thread.", thread_ts=thread_ts)
        return
    upload_csv(app, channel, last.last_result.data, thread_ts=thread_ts)

def handle_query(app: App, assistant: Assistant, sessions: SessionStore, say, channel: str,
                 thread_ts: Optional[str], text: str):
    text_lower = (text or "").strip().lower()

    # --- Text-to-action: Export CSV ---
    if any(re.search(p, text_lower) for p in EXPORT_PATTERNS):
        export_last(app, sessions, say, channel, thread_ts)
        return

    session_id = SessionStore.key(channel, thread_ts)
    last = get_last_session(sessions, channel, thread_ts)
    reply = assistant.chat(
        text,
        sessions.history(session_id),
        last_query_result=last.last_result if last else None,
        last_sql_query=last.last_sql if last else None,
    )
    sessions.append_turn(session_id, "user", text)
    sessions.append_turn(session_id, "assistant", reply.response)

    result = reply.query_result
    if result is None:
        say(text=reply.response, thread_ts=thread_ts)
        return

    if not result.success:
        # SQL errors are diagnostic, so they are shown as-is
        text = reply.response
        if result.error and result.error not in text:
            text = f"{text}\n\nSorry, I couldn't run that query: {result.error}"
        say(text=text, thread_ts=thread_ts)
        return

    sessions.set_last_query(session_id, result, reply.sql_query)
    sessions.set_last_query(SessionStore.key(channel, "__last__"), result, reply.sql_query)

    blocks = [{"type":"section","text":{"type":"mrkdwn","text":reply.response}}]
    if reply.should_show_table:
        blocks.append({"type":"section","text":{"type":"mrkdwn","text":rows_to_markdown_table(result.data)}})
    blocks.append(BUTTONS)
    say(text=reply.response, thread_ts=thread_ts, blocks=blocks)
