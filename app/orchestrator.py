# file: app/orchestrator.py
from typing import AsyncGenerator, List, Optional

from agents import Analyst, Enricher, Hunter, Scorer, Sequencer
from app.config import get_settings
from app.errors import FormError, ResponseParseError, ShapeError
from app.logging_utils import log_event, logger
from app.schema import Lead, SearchQuery, company_key
from app.state import Action, AppState, Store


def _message(e: Exception, fallback: str) -> str:
    # parse/shape errors have their own wording; everything else gets the action's message
    if isinstance(e, (ResponseParseError, ShapeError)):
        return e.user_message
    return fallback


class Orchestrator:
    """Runs each user action against the model and records the outcome in the store"""

    def __init__(self, llm, store: Optional[Store] = None, settings=None):
        self.settings = settings or get_settings()
        self.llm = llm
        self.store = store or Store()
        self.hunter = Hunter(llm, self.settings)
        self.enricher = Enricher(llm, self.settings)
        self.sequencer = Sequencer(llm, self.settings)
        self.analyst = Analyst(llm)
        self.scorer = Scorer(llm)

    @property
    def state(self) -> AppState:
        return self.store.state

    def dispatch(self, type: str, **payload) -> AppState:
        return self.store.dispatch(Action(type, payload))

    # ---- session ----

    def restore(self) -> bool:
        session = self.store.session_store.load() if self.store.session_store else None
        if session is None:
            return False
        self.dispatch("session/restored", leads=session.leads, query=session.query)
        return True

    def clear(self) -> None:
        if self.store.session_store:
            self.store.session_store.clear()
        self.dispatch("session/cleared")

    # ---- discovery ----

    @staticmethod
    def validate_query(query: SearchQuery) -> None:
        if not query.departments:
            raise FormError("Please select at least one Target Department.")
        if not query.search_platforms:
            raise FormError("Please select at least one Search Platform.")
        if not query.category.strip() and not query.client_name.strip():
            raise FormError("Please choose a category or enter a client name.")
        if not query.region.strip():
            raise FormError("Please choose a target region.")

    async def discover(self, query: SearchQuery) -> AppState:
        try:
            self.validate_query(query)
        except FormError as e:
            return self.dispatch("discovery/failed", error=e.user_message)

        self.dispatch("discovery/started", query=query)
        logger.info("discovery category=%r region=%r client=%r", query.category, query.region, query.client_name)
        try:
            batch = await self.hunter.run(query)
        except Exception as e:
            logger.error("Discovery failed: %s", e)
            return self.dispatch("discovery/failed", error=_message(e, "Lead discovery failed."))

        if not batch.leads:
            return self.dispatch("discovery/failed",
                                 error="No leads matched. Try a broader category or region.")
        return self.dispatch("discovery/succeeded", leads=batch.leads, query=query, rejected=batch.rejected,
                             dedupe=self.settings.dedupe_leads)

    # ---- enrichment ----

    async def enrich_lead(self, company_name: str) -> AppState:
        lead = self.state.find(company_name)
        if lead is None:
            return self.dispatch("enrich/failed", error=f"{company_name} is not in the result set.")
        self.dispatch("enrich/started", key=lead.key)
        try:
            enrichment = await self.enricher.run(lead, self.state.query)
        except Exception as e:
            logger.error("Enrichment failed for %s: %s", lead.company_name, e)
            return self.dispatch("enrich/failed", error=_message(e, f"Research failed for {lead.company_name}."))
        return self.dispatch("enrich/succeeded", key=lead.key, enrichment=enrichment,
                             message=f"Intel verified for {lead.company_name}!")

    async def _run_batch(self, agent, targets: List[Lead], label: str) -> AsyncGenerator[dict, None]:
        """Sequential: one call at a time, failures counted and skipped"""
        self.dispatch("batch/started", total=len(targets))
        yield log_event(label, f"Starting {len(targets)} lead(s)", "agent_start", {"total": len(targets)})

        for lead in targets:
            self.dispatch("batch/item_started", key=lead.key)
            try:
                enrichment = await agent.run(lead, self.state.query)
            except Exception as e:
                logger.error("Failed to research %s: %s", lead.company_name, e)
                state = self.dispatch("batch/item_failed", key=lead.key)
                yield log_event(label, f"Failed: {lead.company_name}", "item_failed",
                                {"company": lead.company_name,
                                 "error": _message(e, f"Research failed for {lead.company_name}."),
                                 "progress": state.batch_progress})
                continue
            state = self.dispatch("batch/item_succeeded", key=lead.key, enrichment=enrichment)
            yield log_event(label, f"Done: {lead.company_name}", "item_done",
                            {"company": lead.company_name, "progress": state.batch_progress})

        state = self.state
        ok = state.batch_total - state.batch_failed
        if ok > 0:
            noun = "leads verified" if label == "enricher" else "cadences written"
            state = self.dispatch("batch/finished", success=f"Research sequence complete! {ok} {noun}.")
        else:
            state = self.dispatch("batch/finished", error="Intel research sequence failed.")
        yield log_event(label, state.success or state.error, "agent_end",
                        {"completed": state.batch_completed, "failed": state.batch_failed,
                         "progress": state.batch_progress})

    async def batch_enrich(self, company_names: Optional[List[str]] = None) -> AsyncGenerator[dict, None]:
        """Named leads, or by default every lead without a SWOT yet"""
        if company_names is not None:
            wanted = {company_key(n) for n in company_names}
            targets = [l for l in self.state.leads if l.key in wanted]
        else:
            targets = [l for l in self.state.leads if l.swot_analysis is None]
        # one call per company even if it is listed twice
        targets = list({l.key: l for l in targets}.values())
        if not targets:
            return
        async for event in self._run_batch(self.enricher, targets, "enricher"):
            yield event

    async def generate_outreach(self) -> AsyncGenerator[dict, None]:
        targets = [l for l in self.state.leads if not l.outreach_cadence]
        targets = list({l.key: l for l in targets}.values())
        if not targets:
            return
        async for event in self._run_batch(self.sequencer, targets, "sequencer"):
            yield event

    # ---- lookalikes ----

    async def find_lookalikes(self, index: int) -> AppState:
        if not 0 <= index < len(self.state.leads):
            return self.dispatch("lookalike/failed", error="Lookalike discovery failed.")
        seed = self.state.leads[index]
        self.dispatch("lookalike/started", index=index)
        try:
            batch = await self.hunter.lookalikes(seed, self.state.query)
        except Exception as e:
            logger.error("Lookalike discovery failed for %s: %s", seed.company_name, e)
            return self.dispatch("lookalike/failed", error=_message(e, "Lookalike discovery failed."))
        before = len(self.state.leads)
        state = self.dispatch("lookalike/succeeded", leads=batch.leads, rejected=batch.rejected,
                              dedupe=self.settings.dedupe_leads)
        added = len(state.leads) - before
        logger.info("lookalikes for %s: %d new", seed.company_name, added)
        return state

    # ---- side panels ----

    async def analyze_competitor(self, competitor: str, context: Lead) -> AppState:
        self.dispatch("competitor/started", subject=competitor)
        try:
            analysis = await self.analyst.run(competitor, context, self.state.query.region)
        except Exception as e:
            logger.error("Competitor analysis failed for %s: %s", competitor, e)
            return self.dispatch("competitor/failed", error=_message(e, "Market analysis failed."))
        return self.dispatch("competitor/succeeded", result=analysis)

    async def explain_score(self, lead: Lead) -> AppState:
        self.dispatch("score/started", subject=lead.company_name)
        try:
            explanation = await self.scorer.run(lead)
        except Exception as e:
            logger.error("Score explanation failed for %s: %s", lead.company_name, e)
            return self.dispatch("score/failed", error=_message(e, "Logic breakdown failed."))
        return self.dispatch("score/succeeded", result=explanation)
