# file: agents/enricher.py
from app.config import get_settings
from app.mapper import map_enrichment
from app.prompts import SYSTEM_INSTRUCTION, build_enrichment_prompt
from app.schema import Lead, LeadEnrichment, SearchQuery

class Enricher:
    """Deep research on a lead that is already on screen"""
    
    def __init__(self, llm, settings=None):
        self.llm = llm
        self.settings = settings or get_settings()
    
    async def run(self, lead: Lead, query: SearchQuery) -> LeadEnrichment:
        """Returns only the fields the model found; the caller merges them"""
        prompt = build_enrichment_prompt(lead, query, self.settings)
        text = await self.llm.generate(prompt, system=SYSTEM_INSTRUCTION)
        return map_enrichment(text, self.settings)
