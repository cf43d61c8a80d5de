"""
Configuration for NLP, LLM and presentation settings
"""
import os
from dotenv import load_dotenv

load_dotenv()

# LLM Configuration
USE_OPENAI = bool(os.getenv("OPENAI_API_KEY"))
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.0"))
CONTEXT_HINT = os.getenv("CONTEXT_HINT", "User is asking about app portfolio analytics data")

# Summary formatting: abbreviation is off unless asked for
SUMMARY_ABBREVIATE = os.getenv("SUMMARY_ABBREVIATE", "false").lower() == "true"
SUMMARY_MILLIONS_AT = float(os.getenv("SUMMARY_MILLIONS_AT", "1000000"))
SUMMARY_THOUSANDS_AT = float(os.getenv("SUMMARY_THOUSANDS_AT", "10000"))

# Session memory for the Slack bridge
SESSION_MAX_TURNS = int(os.getenv("SESSION_MAX_TURNS", "20"))
SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "3600"))

# Logging Configuration
LOG_LLM_USAGE = os.getenv("LOG_LLM_USAGE", "true").lower() == "true"

def get_llm_config():
    """Get current LLM configuration as a dict"""
    return {
        "use_openai": USE_OPENAI,
        "model": LLM_MODEL,
        "temperature": LLM_TEMPERATURE,
        "api_key_configured": bool(os.getenv("OPENAI_API_KEY"))
    }

def get_nlp_config():
    """Get current NLP configuration as a dict"""
    return {
        "summary_abbreviate": SUMMARY_ABBREVIATE,
        "summary_millions_at": SUMMARY_MILLIONS_AT,
        "summary_thousands_at": SUMMARY_THOUSANDS_AT,
        "session_max_turns": SESSION_MAX_TURNS,
        "session_ttl_seconds": SESSION_TTL_SECONDS,
        "log_llm": LOG_LLM_USAGE,
    }
