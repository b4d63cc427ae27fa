# app/config.py
from __future__ import annotations
import os
from dataclasses import dataclass

def _as_bool(v: str | None, default: bool = False) -> bool:
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")

def _as_int(v: str | None) -> int | None:
    if v is None or not v.strip():
        return None
    return int(v)

DEFAULT_VALUE_PROP = (
    "At ZEE, we've helped global brands enter and scale in India by building consideration "
    "beyond price-using data-driven targeting, high-impact storytelling, premium contexts, and "
    "performance-led funnels. Our portfolio includes 50+ linear channels, ZEE5 (OTT), multiple "
    "digital genre platforms, and a news network spanning global, national, and regional audiences."
)

@dataclass
class Settings:
    # Gemini
    api_key: str | None = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or None
    model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    search_grounding: bool = _as_bool(os.getenv("SEARCH_GROUNDING"), True)
    temperature: float = float(os.getenv("LLM_TEMPERATURE", "0.2"))
    # Unset means the model default; 0 disables thinking on models that allow it
    thinking_budget: int | None = _as_int(os.getenv("LLM_THINKING_BUDGET"))

    # Local session (browser local-storage counterpart)
    session_file: str = os.getenv("SESSION_FILE", ".inbound_session.json")

    # Result handling
    dedupe_leads: bool = _as_bool(os.getenv("DEDUPE_LEADS"), True)
    # clamp | reject | keep
    score_policy: str = os.getenv("SCORE_POLICY", "clamp").strip().lower()
    discovery_count: int = int(os.getenv("DISCOVERY_COUNT", "10"))
    lookalike_count: int = int(os.getenv("LOOKALIKE_COUNT", "5"))

    # Seller context woven into pain-point solutions and outreach
    seller_name: str = os.getenv("SELLER_NAME", "ZEE")
    seller_value_prop: str = os.getenv("SELLER_VALUE_PROP", DEFAULT_VALUE_PROP)

_settings: Settings | None = None

def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings

# ---- form options ----

SEARCH_PLATFORMS = {
    "generalWeb": "Web Search",
    "linkedIn": "LinkedIn",
    "facebook": "Facebook",
    "instagram": "Instagram",
    "x_twitter": "X (Twitter)",
    "pinterest": "Pinterest",
    "reddit": "Reddit",
}
DEFAULT_PLATFORMS = ["generalWeb", "linkedIn", "reddit"]

REGIONS = ["Global", "APAC", "UK/Europe", "USA", "Canada", "MENA", "Africa"]

DEPARTMENTS = [
    "Marketing",
    "Marketing & Communications",
    "Global Communications",
    "International Marketing",
    "Global Marketing",
    "PR & Marketing",
    "Global PR",
    "Global PR & Marketing",
    "CEO",
    "Business Head",
    "COO",
]
DEFAULT_DEPARTMENTS = ["Marketing", "Marketing & Communications", "Global Communications", "Global PR & Marketing"]

CATEGORIES = ["Airlines", "Food", "Beverages", "Retail", "AI & Technology", "Travel & Tourism",
              "Gaming & Betting", "Education", "Others"]
DEFAULT_CATEGORY = "AI & Technology"

OUTREACH_TONES = ["Default (Professional)", "Formal", "Casual & Friendly", "Direct & Concise"]

LOADING_MESSAGES = [
    "Scraping current expansion signals...",
    "Cross-referencing LinkedIn recency...",
    "Identifying decision makers in Communications...",
    "Targeting Global Marketing heads...",
    "Building discovery list...",
]

# Score bands for table colouring: > HIGH is high, > MEDIUM is medium
SCORE_HIGH = 75
SCORE_MEDIUM = 50
SCORE_MIN = 1
SCORE_MAX = 100
