from .hunter import Hunter
from .enricher import Enricher
from .sequencer import Sequencer
from .analyst import Analyst
from .scorer import Scorer

__all__ = [
    "Hunter", "Enricher", "Sequencer", "Analyst", "Scorer"
]
