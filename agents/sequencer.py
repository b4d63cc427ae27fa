# file: agents/sequencer.py
from app.config import get_settings
from app.errors import ShapeError
from app.mapper import map_enrichment
from app.prompts import SYSTEM_INSTRUCTION, build_outreach_prompt
from app.schema import Lead, LeadEnrichment, SearchQuery

class Sequencer:
    """Writes the outreach email cadence for a lead"""
    
    def __init__(self, llm, settings=None):
        self.llm = llm
        self.settings = settings or get_settings()
    
    async def run(self, lead: Lead, query: SearchQuery) -> LeadEnrichment:
        prompt = build_outreach_prompt(lead, query, self.settings)
        # copywriting, no search needed
        text = await self.llm.generate(prompt, system=SYSTEM_INSTRUCTION, grounded=False, temperature=0.7)
        enrichment = map_enrichment(text, self.settings)
        if not enrichment.outreach_cadence:
            raise ShapeError(f"No outreach cadence returned for {lead.company_name}",
                             expected="outreachCadence", got="nothing")
        # only the cadence is asked for; ignore anything else the model volunteers
        return LeadEnrichment(outreach_cadence=enrichment.outreach_cadence)
