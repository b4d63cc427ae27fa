# file: tests/test_mapper.py
import json

import pytest

from app.config import Settings
from app.errors import ResponseParseError, ShapeError
from app.mapper import map_competitor_analysis, map_enrichment, map_leads, map_score_explanation, parse_json


def test_object_where_array_expected_is_shape_error():
    with pytest.raises(ShapeError) as exc:
        parse_json('{"a":1}', expect_array=True)
    assert exc.value.expected == "array"
    assert exc.value.got == "object"


def test_array_where_object_expected_is_shape_error():
    with pytest.raises(ShapeError):
        parse_json('[{"analysis": "x"}]', expect_array=False)


def test_invalid_json_is_parse_error():
    with pytest.raises(ResponseParseError) as exc:
        parse_json("[not json]", expect_array=True)
    assert "understand" in exc.value.user_message
    assert exc.value.raw == "[not json]"


def test_no_json_at_all_gives_empty_batch(settings):
    batch = map_leads("Sorry, I could not find anything.", settings)
    assert batch.leads == []
    assert batch.rejected == []


def test_leads_without_company_name_are_rejected(settings):
    text = json.dumps([
        {"companyName": "Acme", "leadScore": 80},
        {"companyName": "N/A", "leadScore": 70},
        {"category": "Food"},
        "just a string",
    ])
    batch = map_leads(text, settings)
    assert [l.company_name for l in batch.leads] == ["Acme"]
    assert len(batch.rejected) == 3


def test_sentinels_become_none(settings):
    text = json.dumps([{
        "companyName": "Acme",
        "companyLinkedIn": "N/A",
        "email": "Not found",
        "phone": "n/a",
        "leadScore": "85",
        "marketEntrySignals": "Hiring in Mumbai, New India site",
        "contacts": [
            {"contactName": "Jane Roe", "contactLinkedIn": "Not found", "email": "jane(at)acme"},
            {"contactName": "Not found"},
        ],
    }])
    lead = map_leads(text, settings).leads[0]
    assert lead.company_linkedin is None
    assert lead.email is None
    assert lead.phone is None
    assert lead.lead_score == 85
    assert lead.market_entry_signals == ["Hiring in Mumbai", "New India site"]
    assert len(lead.contacts) == 1
    assert lead.contacts[0].linkedin is None
    assert lead.contacts[0].email is None


@pytest.mark.parametrize("policy,expected", [("clamp", 100), ("keep", 140), ("reject", None)])
def test_score_policy(policy, expected):
    s = Settings(api_key="k", score_policy=policy)
    batch = map_leads('[{"companyName": "Acme", "leadScore": 140}]', s)
    if expected is None:
        assert batch.leads == []
        assert "out of range" in batch.rejected[0]
    else:
        assert batch.leads[0].lead_score == expected


def test_enrichment_keeps_only_supplied_fields(settings):
    text = '```json\n{"employeeCount": "1,200", "techStack": ["Shopify", "Klaviyo"], "latestFunding": "N/A"}\n```'
    enrichment = map_enrichment(text, settings)
    assert enrichment.updates() == {"employee_count": "1,200", "tech_stack": ["Shopify", "Klaviyo"]}


def test_enrichment_cadence_ordered(settings):
    text = json.dumps({"outreachCadence": [
        {"step": 2, "subject": "Follow up", "body": "b2"},
        {"step": 1, "subject": "Hello", "body": "b1"},
    ]})
    steps = map_enrichment(text, settings).outreach_cadence
    assert [s.subject for s in steps] == ["Hello", "Follow up"]


def test_competitor_analysis_requires_analysis():
    assert map_competitor_analysis('{"analysis": "Strong rival", "marketShare": "12%"}').market_share == "12%"
    with pytest.raises(ShapeError):
        map_competitor_analysis('{"marketShare": "12%"}')


def test_score_explanation():
    result = map_score_explanation('{"explanation": "Good fit.", "bulletPoints": ["Funding", "Hiring"]}')
    assert result.bullet_points == ["Funding", "Hiring"]
