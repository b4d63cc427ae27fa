# file: app/mapper.py
"""Turn raw model text into validated records."""
from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from typing import Any, List

from pydantic import ValidationError

from app.config import SCORE_MAX, SCORE_MIN, Settings, get_settings
from app.errors import ResponseParseError, ShapeError
from app.schema import CompetitorAnalysis, Lead, LeadEnrichment, ScoreExplanation
from app.tools.extract import extract_json

log = logging.getLogger("mapper")

SCORE_POLICIES = ("clamp", "reject", "keep")


@dataclass
class LeadBatch:
    leads: List[Lead] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)


def _kind(value: Any) -> str:
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def parse_json(text: str, expect_array: bool) -> Any:
    """Extract, strictly parse and shape-check. Raises ResponseParseError / ShapeError."""
    payload = extract_json(text, expect_array)
    try:
        value = json.loads(payload)
    except ValueError as e:
        log.error("unparseable response (%s); raw text follows\n%s", e, text)
        raise ResponseParseError(f"Response is not valid JSON: {e}", raw=text) from e

    expected = "array" if expect_array else "object"
    if _kind(value) != expected:
        log.error("shape violation: expected %s, got %s; raw text follows\n%s", expected, _kind(value), text)
        raise ShapeError(f"Expected a JSON {expected}, got {_kind(value)}", expected=expected, got=_kind(value))
    return value


def _apply_score_policy(lead: Lead, policy: str) -> Lead | None:
    score = lead.lead_score
    if score is None or SCORE_MIN <= score <= SCORE_MAX or policy == "keep":
        return lead
    if policy == "reject":
        return None
    clamped = max(SCORE_MIN, min(SCORE_MAX, score))
    log.warning("lead score %s for %s clamped to %s", score, lead.company_name, clamped)
    return lead.model_copy(update={"lead_score": clamped})


def map_leads(text: str, settings: Settings | None = None) -> LeadBatch:
    """
    Validate each array item on its own so one bad record does not sink
    the batch. Items without a company name are rejected and reported.
    """
    s = settings or get_settings()
    batch = LeadBatch()
    for i, item in enumerate(parse_json(text, expect_array=True)):
        if not isinstance(item, dict):
            batch.rejected.append(f"item {i}: not an object")
            continue
        try:
            lead = Lead.model_validate(item)
        except ValidationError as e:
            name = item.get("companyName") or f"item {i}"
            reason = "; ".join(err["msg"] for err in e.errors())
            batch.rejected.append(f"{name}: {reason}")
            continue
        lead = _apply_score_policy(lead, s.score_policy)
        if lead is None:
            batch.rejected.append(f"{item.get('companyName')}: lead score {item.get('leadScore')} out of range")
            continue
        batch.leads.append(lead)

    if batch.rejected:
        log.warning("rejected %d lead record(s): %s", len(batch.rejected), batch.rejected)
    log.info("mapped %d lead(s)", len(batch.leads))
    return batch


def _validate(model, text: str):
    value = parse_json(text, expect_array=False)
    try:
        return model.model_validate(value)
    except ValidationError as e:
        log.error("%s failed validation: %s", model.__name__, e)
        raise ShapeError(f"{model.__name__} is missing required fields", expected=model.__name__, got="object") from e


def map_enrichment(text: str, settings: Settings | None = None) -> LeadEnrichment:
    s = settings or get_settings()
    enrichment = _validate(LeadEnrichment, text)
    score = enrichment.lead_score
    if score is not None and not SCORE_MIN <= score <= SCORE_MAX and s.score_policy != "keep":
        # no identity to reject here, so an out-of-range score is simply dropped or clamped
        if s.score_policy == "reject":
            enrichment = enrichment.model_copy(update={"lead_score": None})
        else:
            enrichment = enrichment.model_copy(update={"lead_score": max(SCORE_MIN, min(SCORE_MAX, score))})
    return enrichment


def map_competitor_analysis(text: str) -> CompetitorAnalysis:
    return _validate(CompetitorAnalysis, text)


def map_score_explanation(text: str) -> ScoreExplanation:
    return _validate(ScoreExplanation, text)
