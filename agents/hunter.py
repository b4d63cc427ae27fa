# file: agents/hunter.py
from app.config import get_settings
from app.mapper import LeadBatch, map_leads
from app.prompts import SYSTEM_INSTRUCTION, build_discovery_prompt, build_lookalike_prompt
from app.schema import Lead, SearchQuery

class Hunter:
    """Discovers leads from scratch, or lookalikes of a seed lead"""
    
    def __init__(self, llm, settings=None):
        self.llm = llm
        self.settings = settings or get_settings()
    
    async def run(self, query: SearchQuery) -> LeadBatch:
        """Discovery: one grounded call, an array of leads back"""
        prompt = build_discovery_prompt(query, self.settings)
        text = await self.llm.generate(prompt, system=SYSTEM_INSTRUCTION)
        return map_leads(text, self.settings)
    
    async def lookalikes(self, seed: Lead, query: SearchQuery) -> LeadBatch:
        prompt = build_lookalike_prompt(seed, query, self.settings)
        text = await self.llm.generate(prompt, system=SYSTEM_INSTRUCTION)
        batch = map_leads(text, self.settings)
        # the model sometimes lists the seed itself
        batch.leads = [l for l in batch.leads if l.key != seed.key]
        return batch
