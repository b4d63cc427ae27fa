import os
import sys
from unittest.mock import AsyncMock, Mock

import pytest

# Ensure the repository root is on sys.path so imports like `import app` and `import agents` work
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from app.config import Settings
from app.schema import Lead, SearchQuery


@pytest.fixture
def settings(tmp_path):
    return Settings(api_key="test-key", session_file=str(tmp_path / "session.json"),
                    dedupe_leads=True, score_policy="clamp")


@pytest.fixture
def query():
    return SearchQuery(category="Beverages", region="USA", departments=["Marketing"],
                       search_platforms=["generalWeb", "linkedIn"])


@pytest.fixture
def fake_llm():
    """Stands in for GeminiClient; set generate.return_value / side_effect per test"""
    llm = Mock()
    llm.generate = AsyncMock()
    return llm


def make_lead(name: str, score: int = 60, **fields) -> Lead:
    data = {"companyName": name, "category": "Beverages", "leadScore": score,
            "justification": f"{name} is hiring in India"}
    data.update(fields)
    return Lead.model_validate(data)


@pytest.fixture
def leads():
    return [
        make_lead("Acme Drinks", 82, contacts=[
            {"contactName": "Jane Roe", "designation": "CMO",
             "contactLinkedIn": "https://linkedin.com/in/janeroe", "email": "jane@acme.com"},
            {"contactName": "John Poe", "designation": "Head of PR", "contactLinkedIn": "Not found"},
        ]),
        make_lead("Bolt Cola", 55),
        make_lead("Cask & Co", 30, companyLinkedIn="https://linkedin.com/company/cask"),
    ]


@pytest.fixture(name="make_lead")
def make_lead_fixture():
    return make_lead
