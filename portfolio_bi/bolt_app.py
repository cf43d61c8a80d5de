import os, logging
from dotenv import load_dotenv
from slack_bolt.adapter.socket_mode import SocketModeHandler
from .handlers import build_app

logging.basicConfig(level=logging.INFO)
load_dotenv(override=True)

logger = logging.getLogger(__name__)

def mask(t): return (t[:6] + "..." + t[-4:]) if t else "MISSING"

def main():
    logger.info("OPENAI = %s", "set" if os.getenv("OPENAI_API_KEY") else "MISSING")
    logger.info("LLM_MODEL = %s", os.getenv("LLM_MODEL", "gpt-4o-mini"))
    app = build_app()
    app_token = os.getenv("SLACK_APP_TOKEN")
    if not app_token or not app_token.startswith("xapp-1-"):
        raise RuntimeError("Bad/missing SLACK_APP_TOKEN (xapp-1-...)")
    logger.info("BOT = %s APP = %s", mask(os.getenv("SLACK_BOT_TOKEN")), mask(app_token))
    logger.info("Running Slack bot in Socket Mode...")
    SocketModeHandler(app, app_token).start()

if __name__ == "__main__":
    main()
