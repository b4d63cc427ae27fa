# app/tools/llm.py
from __future__ import annotations
import time, logging
from typing import Optional

from google import genai
from google.genai import types

from app.config import Settings, get_settings
from app.errors import ConfigError, UpstreamError

log = logging.getLogger("llm")

# finish reasons that mean the answer is complete
_COMPLETE = {"STOP", "FINISH_REASON_UNSPECIFIED"}

class LLMNotReady(UpstreamError): ...

def _finish_reason(response) -> Optional[str]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    reason = getattr(candidates[0], "finish_reason", None)
    if reason is None:
        return None
    return getattr(reason, "name", None) or str(reason)

class GeminiClient:
    """
    One prompt in, raw text out.
    Grounded calls attach the Google Search tool; nothing here parses JSON.
    """

    def __init__(self, settings: Settings | None = None, client: genai.Client | None = None):
        self.settings = settings or get_settings()
        if client is None:
            if not self.settings.api_key:
                raise ConfigError("GEMINI_API_KEY environment variable is not set")
            client = genai.Client(api_key=self.settings.api_key)
        self.client = client
        self.search_tool = types.Tool(google_search=types.GoogleSearch())

    def _config(self, system: str | None, grounded: bool,
                temperature: float | None, thinking_budget: int | None) -> types.GenerateContentConfig:
        s = self.settings
        kwargs = {"temperature": s.temperature if temperature is None else temperature}
        if system:
            kwargs["system_instruction"] = system
        if grounded and s.search_grounding:
            kwargs["tools"] = [self.search_tool]
        budget = s.thinking_budget if thinking_budget is None else thinking_budget
        if budget is not None:
            kwargs["thinking_config"] = types.ThinkingConfig(thinking_budget=budget)
        return types.GenerateContentConfig(**kwargs)

    async def generate(self, prompt: str, *, system: str | None = None, grounded: bool = True,
                       temperature: float | None = None, thinking_budget: int | None = None) -> str:
        config = self._config(system, grounded, temperature, thinking_budget)
        t0 = time.time()
        try:
            response = await self.client.aio.models.generate_content(
                model=self.settings.model,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            log.exception("generate_content failed: %s", e)
            raise LLMNotReady(f"Gemini request failed: {e}") from e

        text = (getattr(response, "text", None) or "").strip()
        finish = _finish_reason(response)
        if finish and finish not in _COMPLETE:
            # usually MAX_TOKENS; the extractor copes with the cut-off JSON
            log.warning("LLM finish_reason=%s, response may be truncated", finish)
        if not text:
            raise LLMNotReady("Empty response from LLM.")
        log.info("LLM generate model=%s grounded=%s chars=%d latency=%.2fs",
                 self.settings.model, bool(config.tools), len(text), time.time() - t0)
        return text

    async def check_ready(self) -> bool:
        try:
            t0 = time.time()
            resp = await self.generate("ping", grounded=False, temperature=0.0)
            log.info("LLM ready=%s latency=%.2fs", bool(resp), time.time() - t0)
            return bool(resp)
        except Exception as e:
            log.warning("LLM not ready: %s", e)
            return False
