# file: app/state.py
"""
Single state container for the UI.

Every change goes through `Store.dispatch(Action)`, which runs the pure
`reduce` function and persists the lead list after lead mutations. The
orchestrator dispatches between awaits, so updates never interleave.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.schema import Lead, LeadEnrichment, SearchQuery, company_key

log = logging.getLogger("orchestrator")


@dataclass(frozen=True)
class Action:
    type: str
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Panel:
    """Competitor / score-explanation side panel."""
    subject: str = ""
    open: bool = False
    loading: bool = False
    result: Any = None
    error: Optional[str] = None


@dataclass(frozen=True)
class AppState:
    leads: Tuple[Lead, ...] = ()
    query: SearchQuery = field(default_factory=SearchQuery)
    loading: bool = False
    enriching: Optional[str] = None
    batch_running: bool = False
    batch_total: int = 0
    batch_completed: int = 0
    batch_failed: int = 0
    lookalike_index: Optional[int] = None
    error: Optional[str] = None
    success: Optional[str] = None
    rejected: Tuple[str, ...] = ()
    competitor: Panel = Panel()
    score: Panel = Panel()

    @property
    def batch_progress(self) -> int:
        if not self.batch_total:
            return 0
        return round(self.batch_completed / self.batch_total * 100)

    @property
    def busy(self) -> bool:
        return self.loading or self.batch_running or self.enriching is not None or self.lookalike_index is not None

    def find(self, name: str) -> Optional[Lead]:
        key = company_key(name)
        return next((l for l in self.leads if l.key == key), None)


def _merge(leads: Tuple[Lead, ...], key: str, enrichment: LeadEnrichment) -> Tuple[Lead, ...]:
    # every row with that company name gets the update
    return tuple(l.merged(enrichment) if l.key == key else l for l in leads)


def _dedupe(existing: Tuple[Lead, ...], incoming: List[Lead]) -> Tuple[List[Lead], int]:
    seen = {l.key for l in existing}
    kept = []
    for lead in incoming:
        if lead.key in seen:
            continue
        seen.add(lead.key)
        kept.append(lead)
    return kept, len(incoming) - len(kept)


def reduce(state: AppState, action: Action) -> AppState:
    t, p = action.type, action.payload

    if t == "session/restored":
        return replace(state, leads=tuple(p["leads"]), query=p["query"])
    if t == "session/cleared":
        return replace(AppState(), query=state.query)
    if t == "message/dismissed":
        return replace(state, error=None, success=None)

    # discovery: replaces the result set on success only
    if t == "discovery/started":
        return replace(state, loading=True, error=None, success=None, rejected=())
    if t == "discovery/succeeded":
        leads = list(p["leads"])
        if p.get("dedupe"):
            leads, _ = _dedupe((), leads)
        return replace(state, loading=False, leads=tuple(leads), query=p["query"],
                       rejected=tuple(p.get("rejected", ())))
    if t == "discovery/failed":
        return replace(state, loading=False, error=p["error"])

    # single-lead enrichment
    if t == "enrich/started":
        return replace(state, enriching=p["key"], error=None, success=None)
    if t == "enrich/succeeded":
        return replace(state, enriching=None, leads=_merge(state.leads, p["key"], p["enrichment"]),
                       success=p.get("message"))
    if t == "enrich/failed":
        return replace(state, enriching=None, error=p["error"])

    # batch enrichment / outreach generation
    if t == "batch/started":
        return replace(state, batch_running=True, batch_total=p["total"], batch_completed=0, batch_failed=0,
                       error=None, success=None)
    if t == "batch/item_started":
        return replace(state, enriching=p["key"])
    if t == "batch/item_succeeded":
        return replace(state, leads=_merge(state.leads, p["key"], p["enrichment"]),
                       batch_completed=state.batch_completed + 1)
    if t == "batch/item_failed":
        return replace(state, batch_completed=state.batch_completed + 1, batch_failed=state.batch_failed + 1)
    if t == "batch/finished":
        return replace(state, batch_running=False, enriching=None, error=p.get("error"), success=p.get("success"))

    # lookalikes: appended to the result set
    if t == "lookalike/started":
        return replace(state, lookalike_index=p["index"], error=None, success=None)
    if t == "lookalike/succeeded":
        incoming = list(p["leads"])
        if p.get("dedupe"):
            incoming, skipped = _dedupe(state.leads, incoming)
            if skipped:
                log.info("lookalikes: skipped %d already listed compan(ies)", skipped)
        return replace(state, lookalike_index=None, leads=state.leads + tuple(incoming),
                       rejected=tuple(p.get("rejected", ())), success=p.get("message"))
    if t == "lookalike/failed":
        return replace(state, lookalike_index=None, error=p["error"])

    # side panels
    for panel in ("competitor", "score"):
        if t == f"{panel}/started":
            return replace(state, **{panel: Panel(subject=p["subject"], open=True, loading=True)})
        if t == f"{panel}/succeeded":
            return replace(state, **{panel: replace(getattr(state, panel), loading=False, result=p["result"])})
        if t == f"{panel}/failed":
            return replace(state, **{panel: replace(getattr(state, panel), loading=False, error=p["error"])})
        if t == f"{panel}/closed":
            return replace(state, **{panel: Panel()})

    raise ValueError(f"unknown action {t!r}")


# actions after which the lead list is written to the session file
PERSISTED = {
    "discovery/succeeded",
    "enrich/succeeded",
    "batch/item_succeeded",
    "lookalike/succeeded",
}


class Store:
    def __init__(self, session_store=None, state: AppState | None = None):
        self.session_store = session_store
        self._state = state or AppState()
        self._listeners: List[Callable[[AppState], None]] = []

    @property
    def state(self) -> AppState:
        return self._state

    def subscribe(self, listener: Callable[[AppState], None]) -> None:
        self._listeners.append(listener)

    def dispatch(self, action: Action) -> AppState:
        self._state = reduce(self._state, action)
        if action.type in PERSISTED and self.session_store is not None:
            self.session_store.save(self._state.leads, self._state.query)
        for listener in self._listeners:
            listener(self._state)
        return self._state
