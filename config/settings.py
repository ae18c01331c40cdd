
# config/settings.py
import os
import pathlib
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()

_DEFAULT_KB_PATH = pathlib.Path(__file__).resolve().parent.parent / "core" / "knowledge" / "knowledge.json"

def _to_bool(val, default=True):
    if val is None:
        return default
    return str(val).strip().lower() in ("true", "1", "yes", "y")

def _to_float(val, default=0.0):
    try:
        return float(val)
    except (TypeError, ValueError):
        return default

def _to_int(val, default=0):
    try:
        return int(val)
    except (TypeError, ValueError):
        return default

def _to_list(val, default="*"):
    raw = val if val else default
    return [item.strip() for item in raw.split(",") if item.strip()]

class Settings:
    # LLM provider & model
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_TIMEOUT = _to_float(os.getenv("OPENAI_TIMEOUT"), 60.0)

    # Embeddings (either OpenAI model name OR HF model id)
    EMBED_MODEL = os.getenv("EMBED_MODEL", "text-embedding-3-small")

    # Knowledge base (static JSON list of entries)
    KB_PATH = os.getenv("KB_PATH", str(_DEFAULT_KB_PATH))

    # Persona
    OWNER_NAME = os.getenv("OWNER_NAME", "Diana")
    ASSISTANT_NAME = os.getenv("ASSISTANT_NAME", "Lumen")

    # Retrieval / citation knobs (defensive parsing)
    BRAND_ENTRY_ID = os.getenv("BRAND_ENTRY_ID", "brand")  # never shown as a pill
    CONTEXT_TOP_K = _to_int(os.getenv("CONTEXT_TOP_K"), 5)
    MAX_SOURCES = _to_int(os.getenv("MAX_SOURCES"), 2)
    WARM_KB_ON_STARTUP = _to_bool(os.getenv("WARM_KB_ON_STARTUP"), False)

    # HTTP
    CORS_ORIGINS = _to_list(os.getenv("CORS_ORIGINS"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

settings = Settings()
