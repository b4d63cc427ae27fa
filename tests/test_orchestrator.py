# file: tests/test_orchestrator.py
import json

import pytest

from app.orchestrator import Orchestrator
from app.services.session_store import SessionStore
from app.state import AppState, Store

ENRICHMENT = json.dumps({
    "employeeCount": "500",
    "swotAnalysis": {"strengths": ["Brand"], "weaknesses": [], "opportunities": ["India"], "threats": []},
})


def _orchestrator(fake_llm, settings, leads=(), query=None, session_store=None):
    state = AppState(leads=tuple(leads), query=query) if query else AppState(leads=tuple(leads))
    return Orchestrator(fake_llm, Store(session_store, state), settings)


@pytest.mark.asyncio
async def test_batch_enrich_counts_failures_and_keeps_failed_leads(fake_llm, settings, query, make_lead):
    """Items 2 and 5 fail; the others are merged"""
    leads = [make_lead(f"Lead {i}", 50) for i in range(1, 7)]
    failing = {"Lead 2", "Lead 5"}

    def respond(prompt, **kwargs):
        for name in failing:
            if f"Target company: {name}" in prompt:
                raise RuntimeError("upstream timeout")
        return ENRICHMENT

    fake_llm.generate.side_effect = respond
    orch = _orchestrator(fake_llm, settings, leads, query)

    events = [e async for e in orch.batch_enrich()]

    assert events[0]["type"] == "agent_start"
    assert [e["type"] for e in events].count("item_failed") == 2
    last = events[-1]
    assert last["type"] == "agent_end"
    assert last["payload"] == {"completed": 6, "failed": 2, "progress": 100}

    state = orch.state
    assert state.batch_completed == 6
    assert state.batch_failed == 2
    assert state.batch_progress == 100
    assert not state.batch_running
    assert state.success == "Research sequence complete! 4 leads verified."
    for before, after in zip(leads, state.leads):
        if before.company_name in failing:
            assert after == before
        else:
            assert after.employee_count == "500"
            assert after.swot_analysis.opportunities == ["India"]
            assert after.justification == before.justification


@pytest.mark.asyncio
async def test_batch_enrich_all_failed(fake_llm, settings, query, leads):
    fake_llm.generate.side_effect = RuntimeError("down")
    orch = _orchestrator(fake_llm, settings, leads, query)
    events = [e async for e in orch.batch_enrich()]
    assert events[-1]["payload"]["failed"] == len(leads)
    assert orch.state.error == "Intel research sequence failed."
    assert orch.state.leads == tuple(leads)


@pytest.mark.asyncio
async def test_batch_enrich_skips_researched_leads(fake_llm, settings, query, make_lead):
    done = make_lead("Done Co", swotAnalysis={"strengths": ["x"]})
    todo = make_lead("Todo Co")
    fake_llm.generate.return_value = ENRICHMENT
    orch = _orchestrator(fake_llm, settings, [done, todo], query)
    [e async for e in orch.batch_enrich()]
    assert fake_llm.generate.await_count == 1


@pytest.mark.asyncio
async def test_generate_outreach_merges_cadence(fake_llm, settings, query, leads):
    fake_llm.generate.return_value = json.dumps({"outreachCadence": [
        {"step": 1, "subject": "Hello", "body": "Line one\nLine two"},
        {"step": 2, "subject": "Following up", "body": "..."},
    ], "leadScore": 5})
    orch = _orchestrator(fake_llm, settings, leads, query)
    events = [e async for e in orch.generate_outreach()]

    assert events[-1]["payload"]["failed"] == 0
    assert orch.state.success == f"Research sequence complete! {len(leads)} cadences written."
    for before, after in zip(leads, orch.state.leads):
        assert [s.subject for s in after.outreach_cadence] == ["Hello", "Following up"]
        # only the cadence is taken from an outreach call
        assert after.lead_score == before.lead_score
    assert fake_llm.generate.call_args.kwargs["grounded"] is False


@pytest.mark.asyncio
async def test_discover_replaces_leads(fake_llm, settings, query, leads):
    fake_llm.generate.return_value = (
        "Here you go:\n```json\n"
        '[{"companyName": "Fizz", "leadScore": 90}, {"companyName": "fizz "}, {"category": "Food"}]'
        "\n```"
    )
    orch = _orchestrator(fake_llm, settings, leads)
    state = await orch.discover(query)

    assert [l.company_name for l in state.leads] == ["Fizz"]
    assert state.query == query
    assert len(state.rejected) == 1
    assert not state.loading
    assert state.error is None


@pytest.mark.asyncio
async def test_discover_failure_keeps_previous_leads(fake_llm, settings, query, leads):
    fake_llm.generate.side_effect = RuntimeError("quota")
    orch = _orchestrator(fake_llm, settings, leads)
    state = await orch.discover(query)
    assert state.leads == tuple(leads)
    assert state.error == "Lead discovery failed."
    assert not state.loading


@pytest.mark.asyncio
async def test_discover_unparseable_response(fake_llm, settings, query):
    fake_llm.generate.return_value = "[oops, not json]"
    orch = _orchestrator(fake_llm, settings)
    state = await orch.discover(query)
    assert state.error == "Could not understand the AI response. Please try again."


@pytest.mark.asyncio
async def test_discover_empty_result(fake_llm, settings, query):
    fake_llm.generate.return_value = "I could not find any companies."
    orch = _orchestrator(fake_llm, settings)
    state = await orch.discover(query)
    assert state.error.startswith("No leads matched")


@pytest.mark.asyncio
async def test_discover_validates_form_before_calling(fake_llm, settings, query):
    orch = _orchestrator(fake_llm, settings)
    state = await orch.discover(query.model_copy(update={"departments": []}))
    assert state.error == "Please select at least one Target Department."
    fake_llm.generate.assert_not_awaited()


@pytest.mark.asyncio
async def test_enrich_lead_merges_and_reports(fake_llm, settings, query, leads):
    fake_llm.generate.return_value = ENRICHMENT
    orch = _orchestrator(fake_llm, settings, leads, query)
    state = await orch.enrich_lead("acme  drinks")
    assert state.success == "Intel verified for Acme Drinks!"
    assert state.enriching is None
    assert state.leads[0].employee_count == "500"
    assert state.leads[0].contacts == leads[0].contacts


@pytest.mark.asyncio
async def test_enrich_lead_failure(fake_llm, settings, query, leads):
    fake_llm.generate.side_effect = RuntimeError("boom")
    orch = _orchestrator(fake_llm, settings, leads, query)
    state = await orch.enrich_lead("Bolt Cola")
    assert state.error == "Research failed for Bolt Cola."
    assert state.leads == tuple(leads)


@pytest.mark.asyncio
async def test_lookalikes_are_appended_without_duplicates(fake_llm, settings, query, leads):
    fake_llm.generate.return_value = json.dumps([
        {"companyName": "Acme Drinks"},
        {"companyName": "BOLT cola"},
        {"companyName": "Zing Water", "leadScore": 61},
    ])
    orch = _orchestrator(fake_llm, settings, leads, query)
    state = await orch.find_lookalikes(0)
    assert [l.company_name for l in state.leads] == ["Acme Drinks", "Bolt Cola", "Cask & Co", "Zing Water"]
    assert state.lookalike_index is None


@pytest.mark.asyncio
async def test_lookalikes_without_dedupe_keep_duplicates(fake_llm, settings, query, leads):
    settings.dedupe_leads = False
    fake_llm.generate.return_value = json.dumps([{"companyName": "Bolt Cola"}])
    orch = _orchestrator(fake_llm, settings, leads, query)
    state = await orch.find_lookalikes(0)
    assert len(state.leads) == len(leads) + 1


@pytest.mark.asyncio
async def test_lookalikes_failure(fake_llm, settings, query, leads):
    fake_llm.generate.side_effect = RuntimeError("boom")
    orch = _orchestrator(fake_llm, settings, leads, query)
    state = await orch.find_lookalikes(1)
    assert state.error == "Lookalike discovery failed."
    assert state.leads == tuple(leads)


@pytest.mark.asyncio
async def test_competitor_panel(fake_llm, settings, query, leads):
    fake_llm.generate.return_value = '{"analysis": "Cheaper rival.", "marketShare": "8%", ' \
                                     '"recentNews": {"title": "Rival expands", "url": "N/A"}}'
    orch = _orchestrator(fake_llm, settings, leads, query)
    state = await orch.analyze_competitor("Rival Inc", leads[0])
    panel = state.competitor
    assert panel.open and not panel.loading
    assert panel.subject == "Rival Inc"
    assert panel.result.market_share == "8%"
    assert panel.result.recent_news.url is None

    state = orch.dispatch("competitor/closed")
    assert not state.competitor.open


@pytest.mark.asyncio
async def test_score_panel_shape_error(fake_llm, settings, query, leads):
    fake_llm.generate.return_value = '{"reason": "missing explanation"}'
    orch = _orchestrator(fake_llm, settings, leads, query)
    state = await orch.explain_score(leads[0])
    assert state.score.error == "The AI response had an unexpected shape. Please try again."
    assert fake_llm.generate.call_args.kwargs["grounded"] is False


@pytest.mark.asyncio
async def test_score_panel_upstream_failure(fake_llm, settings, query, leads):
    fake_llm.generate.side_effect = RuntimeError("boom")
    orch = _orchestrator(fake_llm, settings, leads, query)
    state = await orch.explain_score(leads[0])
    assert state.score.error == "Logic breakdown failed."


@pytest.mark.asyncio
async def test_session_is_saved_and_restored(fake_llm, settings, query, tmp_path):
    path = tmp_path / "session.json"
    fake_llm.generate.return_value = '[{"companyName": "Fizz", "leadScore": 90, "companyLinkedIn": "N/A"}]'
    orch = _orchestrator(fake_llm, settings, session_store=SessionStore(path))
    await orch.discover(query)
    assert path.exists()
    # absent values go out without sentinels
    assert "companyLinkedIn" not in json.loads(path.read_text())["leads"][0]

    fresh = _orchestrator(fake_llm, settings, session_store=SessionStore(path))
    assert fresh.restore()
    assert [l.company_name for l in fresh.state.leads] == ["Fizz"]
    assert fresh.state.query.region == query.region

    fresh.clear()
    assert not path.exists()
    assert fresh.state.leads == ()


PARSE_MESSAGE = "Could not understand the AI response. Please try again."


@pytest.mark.asyncio
async def test_enrich_lead_unparseable_response(fake_llm, settings, query, leads):
    fake_llm.generate.return_value = "{not json at all}"
    orch = _orchestrator(fake_llm, settings, leads, query)
    state = await orch.enrich_lead("Bolt Cola")
    assert state.error == PARSE_MESSAGE
    assert state.leads == tuple(leads)


@pytest.mark.asyncio
async def test_enrich_lead_truncated_response_leaves_lead_untouched(fake_llm, settings, query, make_lead):
    lead = make_lead("Acme", email="sales@acme.com")
    fake_llm.generate.return_value = (
        '{"employeeCount": "5", "contacts": [{"contactName": "Jane", "email": "jane@acme.com", '
        '"phone": "+1 555 0100"}], "latestNews": {"title": "cu'
    )
    orch = _orchestrator(fake_llm, settings, [lead], query)
    state = await orch.enrich_lead("Acme")
    assert state.success is None
    assert state.error == PARSE_MESSAGE
    assert state.leads[0].email == "sales@acme.com"
    assert state.leads[0].phone is None


@pytest.mark.asyncio
async def test_lookalikes_unparseable_response(fake_llm, settings, query, leads):
    fake_llm.generate.return_value = "[oops, not json]"
    orch = _orchestrator(fake_llm, settings, leads, query)
    state = await orch.find_lookalikes(0)
    assert state.error == PARSE_MESSAGE
    assert state.leads == tuple(leads)


@pytest.mark.asyncio
async def test_batch_item_failure_carries_parse_message(fake_llm, settings, query, make_lead):
    fake_llm.generate.return_value = "{not json at all}"
    orch = _orchestrator(fake_llm, settings, [make_lead("Acme")], query)
    events = [e async for e in orch.batch_enrich()]
    failed = [e for e in events if e["type"] == "item_failed"]
    assert failed[0]["payload"]["error"] == PARSE_MESSAGE
