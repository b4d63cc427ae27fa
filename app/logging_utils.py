# file: app/logging_utils.py
import logging
from datetime import datetime, timezone

def log_event(agent: str, message: str, type: str = "agent_log", payload: dict = None) -> dict:
    """Create a progress event for the UI"""
    return {
        "ts": datetime.now(timezone.utc).isoformat(),
        "type": type,
        "agent": agent,
        "message": message,
        "payload": payload or {}
    }

logger = logging.getLogger("orchestrator")
