# file: agents/analyst.py
from app.mapper import map_competitor_analysis
from app.prompts import build_competitor_prompt
from app.schema import CompetitorAnalysis, Lead

class Analyst:
    """Competitor analysis scoped to one competitor of a lead"""
    
    def __init__(self, llm):
        self.llm = llm
    
    async def run(self, competitor: str, context: Lead, region: str) -> CompetitorAnalysis:
        text = await self.llm.generate(build_competitor_prompt(competitor, context, region))
        return map_competitor_analysis(text)
