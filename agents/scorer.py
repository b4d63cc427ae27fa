# file: agents/scorer.py
from app.mapper import map_score_explanation
from app.prompts import SYSTEM_INSTRUCTION, build_score_explanation_prompt
from app.schema import Lead, ScoreExplanation

class Scorer:
    """Explains a lead's score from the data already on the lead"""
    
    def __init__(self, llm):
        self.llm = llm
    
    async def run(self, lead: Lead) -> ScoreExplanation:
        """No search grounding: the explanation may not introduce new research"""
        text = await self.llm.generate(
            build_score_explanation_prompt(lead),
            system=SYSTEM_INSTRUCTION,
            grounded=False,
        )
        return map_score_explanation(text)
