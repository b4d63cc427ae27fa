# file: app/prompts.py
"""
Prompt text for every model call.

Pure functions of the search form and the leads already on screen. Each
prompt ends with an output contract; the model does not always honour it,
which is why responses go through app.tools.extract.
"""
from __future__ import annotations
import json
from typing import List

from app.config import SEARCH_PLATFORMS, Settings, get_settings
from app.schema import Lead, SearchQuery

SYSTEM_INSTRUCTION = """
You are an Elite Revenue Intelligence Agent specializing in high-accuracy data extraction.
Your goal is to identify international companies with high-intent expansion signals for the Indian market.
When researching, cross-reference multiple sources (LinkedIn, News, Crunchbase) to ensure ground-truth accuracy.
Never invent people, URLs, emails or numbers. Always return strictly valid JSON.
""".strip()

CATEGORY_RULES = {
    "Food": (
        "You must ONLY return companies selling solid food products, snacks, meals, or ingredients. "
        "Do NOT include drinks or beverages."
    ),
    "Beverages": (
        "You must ONLY return companies selling drinks, soda, alcohol, water, coffee, tea, or liquid "
        "refreshments. Do NOT include solid food products."
    ),
}

PLATFORM_HINTS = {
    "generalWeb": "general web search and news sites",
    "linkedIn": "LinkedIn company pages, job posts and executive profiles",
    "facebook": "Facebook pages and ads library",
    "instagram": "Instagram profiles and recent posts",
    "x_twitter": "X (Twitter) announcements",
    "pinterest": "Pinterest boards",
    "reddit": "Reddit community discussions",
}

CONTACT_CHECKLIST = """
CONTACT VERIFICATION (apply to every contact before returning it):
1. Current employer: the person's CURRENT role is at this company (not a past role).
2. Region: the person works in or covers the target region "{region}".
3. Role: the person's title belongs to one of these departments: {departments}.
If a contact fails ANY check, discard it and search for a replacement who passes.
Never fabricate a contact to fill a slot. If no LinkedIn profile can be confirmed, use "Not found" for contactLinkedIn.
""".strip()


def _output_contract(shape: str) -> str:
    return (
        f"OUTPUT FORMAT: respond with exactly one JSON {shape} and nothing else. "
        "No markdown fences, no explanation before or after it."
    )


def _category_rule(category: str) -> str:
    return CATEGORY_RULES.get(category, "Adhere strictly to the industry definition of the category.")


def _platforms(platforms: List[str]) -> str:
    return "; ".join(PLATFORM_HINTS.get(p, SEARCH_PLATFORMS.get(p, p)) for p in platforms)


def _cadence_keys(query: SearchQuery) -> str:
    return (
        f'- outreachCadence: array of 3 steps [{{"step": 1, "subject": "...", "body": "..."}}] '
        f'written in a "{query.outreach_tone}" tone; step 1 is the first email, later steps are follow-ups'
    )


def _exclusions(query: SearchQuery) -> str:
    names = query.excluded_names()
    return ", ".join(names) if names else "(none)"


def build_discovery_prompt(query: SearchQuery, settings: Settings | None = None) -> str:
    s = settings or get_settings()
    if query.client_name.strip():
        target = f'Research the company "{query.client_name.strip()}" in depth.'
        if query.include_similar_companies:
            target += f" Also find up to {s.discovery_count - 1} similar companies in the same space."
    else:
        target = f'Find {s.discovery_count} high-growth international companies in the "{query.category}" industry.'

    lines = [
        "STEP 1: DISCOVERY",
        target,
        f"Target region: {query.region}. Exclude these companies: {_exclusions(query)}.",
        "",
        f"CATEGORY FILTERING: {_category_rule(query.category)}",
        "",
        "Focus on companies that have recently raised funds, launched APAC operations, or hired for India roles.",
    ]
    if query.is_ai_saas:
        lines.append(
            "Treat community adoption of the product in India (Reddit threads, creator tutorials, "
            "India pricing pages) as a strong expansion signal."
        )
    lines += [
        f"Use these sources: {_platforms(query.search_platforms)}.",
        "",
        CONTACT_CHECKLIST.format(region=query.region, departments=", ".join(query.departments)),
        "",
        "Return a JSON array where each item has these keys:",
        "- companyName, category, justification, companyLinkedIn, email, phone",
        "- leadScore: integer 1-100, higher means stronger India market-entry intent",
        "- marketEntrySignals: array of short strings",
        "- outreachSuggestion: a one-sentence icebreaker",
        "- contacts: [{contactName, designation, contactLinkedIn, email, phone, verified}]",
    ]
    if query.generate_outreach_cadence:
        lines.append(_cadence_keys(query))
    lines += ["Use \"N/A\" for any company field you cannot confirm.", "", _output_contract("array")]
    return "\n".join(lines)


def build_enrichment_prompt(lead: Lead, query: SearchQuery, settings: Settings | None = None) -> str:
    s = settings or get_settings()
    lines = [
        "STEP 2: DEEP INTEL EXTRACTION",
        f"Target company: {lead.company_name}" + (f" ({lead.category})" if lead.category else ""),
        "",
        "1. Scan LinkedIn for recent executive hires related to India or APAC.",
        "2. Extract verified firmographics (employee count, latest funding amount).",
        "3. Identify technology pain points based on their public tech stack.",
        "4. Perform a SWOT analysis focused on their India expansion readiness.",
        "5. Draft a personalized icebreaker referencing a specific recent news event or LinkedIn post.",
        "6. Find the most recent verified news headline and URL, and the most recent India-related one.",
        "",
        f"SELLER CONTEXT ({s.seller_name}): {s.seller_value_prop}",
        "",
        CONTACT_CHECKLIST.format(region=query.region, departments=", ".join(query.departments)),
        "",
        "Return a JSON object with these keys:",
        "- employeeCount, latestFunding, techStack (array), competitors (array)",
        "- swotAnalysis {strengths[], weaknesses[], opportunities[], threats[]}",
        f"- painPointAnalysis [{{painPoint, suggestedSolution}}] (each solution must mention {s.seller_name} capabilities)",
        f'- outreachSuggestion (the icebreaker, "{query.outreach_tone}" tone)',
        "- latestNews {title, url}, latestIndiaNews {title, url}",
        "- contacts [{contactName, designation, contactLinkedIn, email, phone, verified, "
        "recentPost {caption, url}, icebreaker}] (only contacts that pass verification)",
    ]
    if "instagram" in query.search_platforms:
        lines.append("- instagramProfileUrl, latestInstagramPosts [{caption, url}] (up to 3)")
    if query.generate_outreach_cadence:
        lines.append(_cadence_keys(query))
    lines += ['Use "N/A" for a value you cannot find, never a guess.', "", _output_contract("object")]
    return "\n".join(lines)


def build_outreach_prompt(lead: Lead, query: SearchQuery, settings: Settings | None = None) -> str:
    s = settings or get_settings()
    known = {
        "companyName": lead.company_name,
        "justification": lead.justification,
        "marketEntrySignals": lead.market_entry_signals,
        "latestNews": lead.latest_news.to_wire() if lead.latest_news else None,
    }
    return "\n".join([
        f"Write an outreach email cadence for {lead.company_name}.",
        f"Seller: {s.seller_name}. {s.seller_value_prop}",
        f"What we know: {json.dumps(known, ensure_ascii=False)}",
        "",
        "Return a JSON object with one key:",
        _cadence_keys(query),
        "",
        _output_contract("object"),
    ])


def build_lookalike_prompt(seed: Lead, query: SearchQuery, settings: Settings | None = None) -> str:
    s = settings or get_settings()
    return "\n".join([
        f"Identify {s.lookalike_count} direct competitors or lookalikes of {seed.company_name}"
        + (f" ({seed.category})" if seed.category else "")
        + f" within the {query.region} region.",
        f"Do not include {seed.company_name} itself or any of: {_exclusions(query)}.",
        f"CATEGORY FILTERING: {_category_rule(seed.category or query.category)}",
        "",
        CONTACT_CHECKLIST.format(region=query.region, departments=", ".join(query.departments)),
        "",
        "Return a JSON array using the same keys as discovery: companyName, category, justification, "
        "companyLinkedIn, email, phone, leadScore (1-100), marketEntrySignals (array), outreachSuggestion, "
        "contacts [{contactName, designation, contactLinkedIn}].",
        "",
        _output_contract("array"),
    ])


def build_competitor_prompt(competitor: str, context: Lead, region: str) -> str:
    return "\n".join([
        f"Compare {competitor} against {context.company_name} for the Indian market"
        + (f", from the point of view of a {region} based company." if region else "."),
        "",
        "Return a JSON object with keys:",
        "- analysis: 3-4 sentences on positioning, strengths and threats relative to "
        f"{context.company_name}",
        "- marketShare: estimated market share as a short string",
        '- recentNews {title, url}: most recent verified headline about the competitor, or "N/A" for url',
        "",
        _output_contract("object"),
    ])


def build_score_explanation_prompt(lead: Lead) -> str:
    data = lead.to_wire()
    # the cadence and posts carry no scoring signal
    for key in ("outreachCadence", "latestInstagramPosts"):
        data.pop(key, None)
    return "\n".join([
        f"Explain why {lead.company_name} received a lead score of {lead.lead_score}/100 "
        "for Indian market expansion.",
        "Use ONLY the data below. Do not research or add new facts.",
        f"LEAD DATA: {json.dumps(data, ensure_ascii=False)}",
        "",
        "Return a JSON object with keys:",
        "- explanation: a two-sentence summary",
        "- bulletPoints: array of 3-5 key scoring factors taken from the data",
        "",
        _output_contract("object"),
    ])
