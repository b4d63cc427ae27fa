# file: ui/streamlit_app.py
import logging
import random
from datetime import datetime

import pandas as pd
import streamlit as st

from app.config import (
    CATEGORIES, DEFAULT_CATEGORY, DEPARTMENTS, LOADING_MESSAGES, OUTREACH_TONES, REGIONS,
    SEARCH_PLATFORMS, get_settings,
)
from app.errors import ConfigError
from app.logging_config import setup_logging
from app.orchestrator import Orchestrator
from app.presentation import (
    BAND_COLORS, USER_GUIDE, article_markdown, is_linkable, score_band, sort_leads, table_records,
)
from app.runner import LoopRunner
from app.schema import SearchQuery
from app.services.export import to_csv, to_xlsx
from app.services.session_store import SessionStore
from app.state import Store
from app.tools.llm import GeminiClient

st.set_page_config(
    page_title="Inbound Lead Intelligence",
    page_icon="🎯",
    layout="wide"
)

st.title("🎯 Inbound Lead Intelligence")
st.caption("Search-grounded lead discovery, research and outreach with Gemini")

log = logging.getLogger("ui")


@st.cache_resource
def _logging():
    setup_logging()
    return True


def _build_orchestrator():
    settings = get_settings()
    try:
        llm = GeminiClient(settings)
    except ConfigError as e:
        st.error(f"❌ {e}")
        st.stop()
    orch = Orchestrator(llm, Store(SessionStore(settings.session_file)), settings)
    if orch.restore():
        log.info("restored %d lead(s) from %s", len(orch.state.leads), settings.session_file)
    return orch


_logging()

# Initialize session state
if "runner" not in st.session_state:
    st.session_state.runner = LoopRunner()
if "orchestrator" not in st.session_state:
    st.session_state.orchestrator = _build_orchestrator()
if "event_log" not in st.session_state:
    st.session_state.event_log = []

orch: Orchestrator = st.session_state.orchestrator


def run(coro):
    return st.session_state.runner.run(coro)


def run_batch(gen, label: str):
    """Drain a batch generator, feeding the progress bar and the event log"""
    progress_bar = st.progress(0, text=f"{label}...")
    status_text = st.empty()

    async def drain():
        async for event in gen:
            payload = event.get("payload") or {}
            if "progress" in payload:
                progress_bar.progress(payload["progress"] / 100, text=f"{label}: {payload['progress']}%")
            if event["type"] == "item_failed":
                status_text.warning(f"⚠️ {event['message']}")
            else:
                status_text.info(f"🔄 {event['message']}")
            st.session_state.event_log.append({
                "⏰ Time": datetime.now().strftime("%H:%M:%S"),
                "🤖 Agent": event["agent"].title(),
                "📌 Type": event["type"],
                "💬 Details": event["message"],
            })

    run(drain())
    st.rerun()


# Sidebar
with st.sidebar:
    st.header("System Status")
    settings = get_settings()
    st.success(f"✅ Model: {settings.model}")
    st.caption(f"Search grounding: {'on' if settings.search_grounding else 'off'}")

    if st.button("🔍 Check", help="Send a test prompt to the model"):
        with st.spinner("Checking..."):
            if run(orch.llm.check_ready()):
                st.success("✅ Model reachable")
            else:
                st.error("❌ Model not reachable")

    st.divider()
    st.header("Session")
    st.write(f"Leads in session: **{len(orch.state.leads)}**")
    if st.button("🗑️ Clear session", help="Forget the current result set"):
        orch.clear()
        st.session_state.event_log = []
        st.rerun()

    with st.expander("📖 How to use"):
        st.markdown(USER_GUIDE)
        st.download_button("⬇️ Guide (.md)", data=USER_GUIDE, file_name="inbound-guide.md", mime="text/markdown")

    if st.session_state.event_log:
        with st.expander("Agent log"):
            st.dataframe(pd.DataFrame(st.session_state.event_log), use_container_width=True, hide_index=True)


# ---- search form ----

q = orch.state.query
with st.form("search"):
    st.subheader("Target Profile")
    col1, col2 = st.columns(2)
    with col1:
        client_name = st.text_input("Client name (optional deep dive)", value=q.client_name)
        category_choice = st.selectbox(
            "Category", CATEGORIES,
            index=CATEGORIES.index(q.category) if q.category in CATEGORIES else CATEGORIES.index("Others"),
        )
        other_category = st.text_input(
            "Custom category (when 'Others')",
            value="" if q.category in CATEGORIES else q.category,
        )
        region = st.selectbox("Target region", REGIONS,
                              index=REGIONS.index(q.region) if q.region in REGIONS else 0)
    with col2:
        departments = st.multiselect("Target departments", DEPARTMENTS,
                                     default=[d for d in q.departments if d in DEPARTMENTS])
        platforms = st.multiselect("Search platforms", list(SEARCH_PLATFORMS),
                                   default=[p for p in q.search_platforms if p in SEARCH_PLATFORMS],
                                   format_func=SEARCH_PLATFORMS.get)
        tone = st.selectbox("Outreach tone", OUTREACH_TONES,
                            index=OUTREACH_TONES.index(q.outreach_tone) if q.outreach_tone in OUTREACH_TONES else 0)
        exclusions = st.text_input("Exclude companies (comma separated)", value=q.exclusion_list)

    c1, c2, c3 = st.columns(3)
    similar = c1.checkbox("Include similar companies", value=q.include_similar_companies)
    cadence = c2.checkbox("Generate outreach cadence", value=q.generate_outreach_cadence)
    ai_saas = c3.checkbox("AI / SaaS companies only", value=q.is_ai_saas)

    submitted = st.form_submit_button("🚀 Find Leads", type="primary", use_container_width=True,
                                      disabled=orch.state.busy)

if submitted:
    category = other_category.strip() if category_choice == "Others" else category_choice
    query = SearchQuery(
        client_name=client_name.strip(),
        category=category or ("" if client_name.strip() else DEFAULT_CATEGORY),
        departments=departments,
        region=region,
        search_platforms=platforms,
        include_similar_companies=similar,
        generate_outreach_cadence=cadence,
        exclusion_list=exclusions,
        outreach_tone=tone,
        is_ai_saas=ai_saas,
    )
    with st.spinner(random.choice(LOADING_MESSAGES)):
        run(orch.discover(query))
    st.rerun()


# ---- messages ----

state = orch.state
if state.error:
    st.error(state.error)
if state.success:
    st.success(state.success)
if state.rejected:
    with st.expander(f"⚠️ {len(state.rejected)} result(s) could not be used"):
        for reason in state.rejected:
            st.write(f"- {reason}")

if not state.leads:
    st.info("Run a search to discover leads.")
    st.stop()


# ---- results ----

leads = sort_leads(state.leads)
st.subheader(f"📊 Leads ({len(leads)})")

bulk1, bulk2, bulk3, bulk4 = st.columns(4)
with bulk1:
    if st.button("🔬 Research all", disabled=state.busy, use_container_width=True,
                 help="Deep research for every lead without a SWOT yet"):
        run_batch(orch.batch_enrich(), "Researching leads")
with bulk2:
    if st.button("✉️ Generate Outreach Emails", disabled=state.busy, use_container_width=True):
        run_batch(orch.generate_outreach(), "Writing cadences")
with bulk3:
    st.download_button("⬇️ CSV", data=to_csv(leads, state.query.region),
                       file_name="leads.csv", mime="text/csv", use_container_width=True)
with bulk4:
    st.download_button("⬇️ Excel", data=to_xlsx(leads, state.query.region), file_name="leads.xlsx",
                       mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                       use_container_width=True)


def _score_style(value):
    if value is None or pd.isna(value):
        return f"color: {BAND_COLORS['none']}"
    return f"color: {BAND_COLORS[score_band(int(value))]}; font-weight: bold"


df = pd.DataFrame(table_records(leads))
st.dataframe(
    df.style.map(_score_style, subset=["Score"]),
    use_container_width=True,
    hide_index=True,
    column_config={"LinkedIn": st.column_config.LinkColumn("LinkedIn", display_text="Profile")},
)


# ---- side panels ----

def _panel(name: str, title: str):
    panel = getattr(orch.state, name)
    if not panel.open:
        return
    with st.container(border=True):
        head, close = st.columns([6, 1])
        head.markdown(f"#### {title}: {panel.subject}")
        if close.button("✖", key=f"close_{name}"):
            orch.dispatch(f"{name}/closed")
            st.rerun()
        if panel.error:
            st.error(panel.error)
        elif panel.result is not None and name == "competitor":
            st.write(panel.result.analysis)
            if panel.result.market_share:
                st.metric("Market share", panel.result.market_share)
            if panel.result.recent_news:
                st.markdown(f"📰 {article_markdown(panel.result.recent_news)}")
        elif panel.result is not None:
            st.write(panel.result.explanation)
            for point in panel.result.bullet_points:
                st.markdown(f"- {point}")


_panel("competitor", "🏁 Competitor")
_panel("score", "🧮 Score logic")


# ---- per-lead details ----

def _link(label: str, url):
    return f"[{label}]({url})" if is_linkable(url) else "N/A"


positions = {id(l): i for i, l in enumerate(state.leads)}
for lead in leads:
    index = positions[id(lead)]
    badge = f"{lead.lead_score}" if lead.lead_score is not None else "–"
    with st.expander(f"🏢 {lead.company_name}  ·  score {badge}  ·  {lead.category or ''}"):
        a, b, c = st.columns(3)
        enriching = state.enriching == lead.key
        if a.button("🔬 Verify intel", key=f"enrich_{index}", disabled=state.busy):
            with st.spinner(f"Researching {lead.company_name}..."):
                run(orch.enrich_lead(lead.company_name))
            st.rerun()
        if b.button("👥 Find lookalikes", key=f"look_{index}", disabled=state.busy):
            with st.spinner(f"Finding companies like {lead.company_name}..."):
                run(orch.find_lookalikes(index))
            st.rerun()
        if c.button("🧮 Explain score", key=f"score_{index}", disabled=lead.lead_score is None):
            with st.spinner("Breaking down the score..."):
                run(orch.explain_score(lead))
            st.rerun()
        if enriching:
            st.info("Research in progress...")

        st.markdown(f"**Intel:** {lead.justification or 'N/A'}")
        if lead.market_entry_signals:
            st.markdown("**Market entry signals**")
            for signal in lead.market_entry_signals:
                st.markdown(f"- {signal}")
        if lead.outreach_suggestion:
            st.markdown(f"**Icebreaker:** {lead.outreach_suggestion}")

        st.markdown("##### Firmographics")
        f1, f2, f3 = st.columns(3)
        f1.write(f"Employees: {lead.employee_count or 'N/A'}")
        f2.write(f"Funding: {lead.latest_funding or 'N/A'}")
        f3.markdown(f"LinkedIn: {_link('Company page', lead.company_linkedin)}")
        if lead.tech_stack:
            st.write("Tech stack: " + ", ".join(lead.tech_stack))

        if lead.competitors:
            st.markdown("##### Competitors")
            cols = st.columns(min(len(lead.competitors), 4))
            for i, competitor in enumerate(lead.competitors):
                if cols[i % len(cols)].button(f"Analyze {competitor}", key=f"comp_{index}_{i}"):
                    with st.spinner(f"Analyzing {competitor}..."):
                        run(orch.analyze_competitor(competitor, lead))
                    st.rerun()

        if lead.swot_analysis:
            st.markdown("##### SWOT")
            s1, s2, s3, s4 = st.columns(4)
            for col, title, items in (
                (s1, "Strengths", lead.swot_analysis.strengths),
                (s2, "Weaknesses", lead.swot_analysis.weaknesses),
                (s3, "Opportunities", lead.swot_analysis.opportunities),
                (s4, "Threats", lead.swot_analysis.threats),
            ):
                col.markdown(f"**{title}**")
                for item in items:
                    col.markdown(f"- {item}")

        if lead.pain_point_analysis:
            st.markdown("##### Pain points")
            st.dataframe(pd.DataFrame([{"Pain Point": p.pain_point, "Suggested Solution": p.suggested_solution}
                                       for p in lead.pain_point_analysis]),
                         use_container_width=True, hide_index=True)

        if lead.outreach_cadence:
            st.markdown("##### Outreach cadence")
            for step in lead.outreach_cadence:
                st.markdown(f"**Step {step.step}: {step.subject}**")
                st.text(step.body)

        if lead.latest_news or lead.latest_india_news:
            st.markdown("##### News")
            for label, article in (("Latest", lead.latest_news), ("India", lead.latest_india_news)):
                if article:
                    st.markdown(f"{label}: {article_markdown(article)}")

        if lead.instagram_profile_url or lead.latest_instagram_posts:
            st.markdown("##### Social")
            st.markdown(f"Instagram: {_link('Profile', lead.instagram_profile_url)}")
            for post in lead.latest_instagram_posts:
                st.markdown(f"- {post.caption or ''} {_link('post', post.url)}")

        st.markdown("##### Contacts")
        if not lead.contacts:
            st.write("No contacts found.")
        for contact in lead.contacts:
            line = f"**{contact.name}**, {contact.designation or 'N/A'}"
            if contact.verified:
                line += " ✅"
            st.markdown(line + f"  ·  {_link('LinkedIn', contact.linkedin)}")
            details = [v for v in (contact.email or lead.email, contact.phone or lead.phone) if v]
            if details:
                st.caption(" · ".join(details))
            if contact.icebreaker:
                st.caption(f"💬 {contact.icebreaker}")
