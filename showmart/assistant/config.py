"""
Shopping assistant settings, read from the environment
"""
import os

from dotenv import load_dotenv

load_dotenv()

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY") or ""
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
LLM_TEMPERATURE = float(os.getenv("ASSISTANT_TEMPERATURE", "0.7"))
MAX_REPLY_TOKENS = int(os.getenv("ASSISTANT_MAX_TOKENS", "300"))

# Per-user requests per rolling minute
MAX_REQUESTS_PER_MINUTE = int(os.getenv("ASSISTANT_MAX_RPM", "30"))

# Only the most recent turns are forwarded to the model
MAX_HISTORY_MESSAGES = int(os.getenv("ASSISTANT_MAX_HISTORY", "20"))
MAX_PRODUCT_SUGGESTIONS = int(os.getenv("ASSISTANT_MAX_PRODUCTS", "6"))

# Without a key the assistant answers from a template
ASSISTANT_ENABLED = bool(OPENAI_API_KEY.strip())
