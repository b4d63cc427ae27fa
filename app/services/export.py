# file: app/services/export.py
"""
CSV and multi-sheet XLSX export of the current result set.

Absent values go back out as the sentinels users expect in a spreadsheet:
"Not found" for a contact LinkedIn, "N/A" for other links and contacts.
"""
from __future__ import annotations
import csv
import logging
from io import BytesIO
from typing import List, Sequence

import pandas as pd

from app.presentation import Row, article_label, flatten, is_linkable
from app.schema import Lead

log = logging.getLogger("export")

NOT_FOUND = "Not found"
NA = "N/A"

CONTACT_COLUMNS = {"Contact Person", "Designation", "Email", "Phone", "Contact LinkedIn"}
CADENCE_COLUMNS = ["AI Cadence Step 1 Subject", "AI Cadence Step 1 Body",
                   "AI Cadence Step 2 Subject", "AI Cadence Step 2 Body"]
LINK_COLUMNS = {"Company LinkedIn", "Contact LinkedIn", "Instagram Profile"}


def _has_cadence(leads: Sequence[Lead]) -> bool:
    return any(l.outreach_cadence for l in leads)


def lead_headers(leads: Sequence[Lead]) -> List[str]:
    headers = ["Lead Score", "Company Name", "Region", "Category", "Contact Person", "Designation",
               "Email", "Phone", "Intel Summary", "Market Entry Signals", "Icebreaker"]
    if _has_cadence(leads):
        headers += CADENCE_COLUMNS
    headers += ["Employee Count", "Latest Funding", "Tech Stack", "Company LinkedIn", "Contact LinkedIn",
                "Instagram Profile"]
    return headers


def _row_values(row: Row, region: str, with_cadence: bool, signal_sep: str) -> dict:
    lead, contact = row.lead, row.contact
    values = {
        "Lead Score": lead.lead_score if lead.lead_score is not None else "",
        "Company Name": lead.company_name,
        "Region": region,
        "Category": lead.category or "",
        "Contact Person": contact.name if contact else NA,
        "Designation": (contact.designation if contact else None) or NA,
        "Email": row.email or "",
        "Phone": row.phone or "",
        "Intel Summary": lead.justification or "",
        "Market Entry Signals": signal_sep.join(lead.market_entry_signals),
        "Icebreaker": (contact.icebreaker if contact and contact.icebreaker else lead.outreach_suggestion) or "",
        "Employee Count": lead.employee_count or "",
        "Latest Funding": lead.latest_funding or "",
        "Tech Stack": ", ".join(lead.tech_stack),
        "Company LinkedIn": lead.company_linkedin or NA,
        "Contact LinkedIn": (contact.linkedin if contact else None) or NOT_FOUND,
        "Instagram Profile": lead.instagram_profile_url or NA,
    }
    if with_cadence:
        steps = lead.outreach_cadence
        for n in (1, 2):
            step = steps[n - 1] if len(steps) >= n else None
            values[f"AI Cadence Step {n} Subject"] = step.subject if step else ""
            values[f"AI Cadence Step {n} Body"] = step.body.replace("\n", " ") if step else ""
    return values


def to_csv(leads: Sequence[Lead], region: str) -> str:
    headers = lead_headers(leads)
    with_cadence = _has_cadence(leads)
    records = [_row_values(r, region, with_cadence, "; ") for r in flatten(leads)]
    df = pd.DataFrame(records, columns=headers)
    # every field quoted, embedded quotes doubled
    text = df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    log.info("csv export rows=%d", len(df))
    return text


def _sheet(writer, name: str, records: List[dict], columns: List[str], widths: List[int]):
    pd.DataFrame(records, columns=columns).to_excel(writer, sheet_name=name, index=False)
    ws = writer.sheets[name]
    for i, w in enumerate(widths):
        ws.set_column(i, i, w)
    return ws


def _write_leads_sheet(writer, leads: Sequence[Lead], region: str) -> None:
    headers = lead_headers(leads)
    with_cadence = _has_cadence(leads)
    pd.DataFrame(columns=headers).to_excel(writer, sheet_name="Leads", index=False)
    ws = writer.sheets["Leads"]
    cell = writer.book.add_format({"valign": "top", "text_wrap": True})
    link = writer.book.add_format({"valign": "top", "font_color": "blue", "underline": 1})

    r = 1
    for row in flatten(leads):
        values = _row_values(row, region, with_cadence, "\n")
        for c, header in enumerate(headers):
            value = values[header]
            company_level = header not in CONTACT_COLUMNS
            if company_level and not row.first:
                continue
            last = r + row.span - 1 if company_level else r
            url = value if header in LINK_COLUMNS and is_linkable(value) else None
            if last > r:
                ws.merge_range(r, c, last, c, "" if url else value, link if url else cell)
            if url:
                ws.write_url(r, c, url, link, string="Link", tip=url)
            elif last == r:
                ws.write(r, c, value, cell)
        r += 1
    ws.set_column(0, 0, 10)
    ws.set_column(1, len(headers) - 1, 24)
    ws.freeze_panes(1, 2)


def to_xlsx(leads: Sequence[Lead], region: str) -> bytes:
    """Workbook: Leads, SWOT Analysis, Pain Point Analysis, Outreach Cadence, Latest News, Social Posts."""
    buf = BytesIO()
    with pd.ExcelWriter(buf, engine="xlsxwriter") as writer:
        _write_leads_sheet(writer, leads, region)

        _sheet(writer, "SWOT Analysis", [
            {
                "Company Name": l.company_name,
                "Strengths": "\n".join(l.swot_analysis.strengths) if l.swot_analysis else "",
                "Weaknesses": "\n".join(l.swot_analysis.weaknesses) if l.swot_analysis else "",
                "Opportunities": "\n".join(l.swot_analysis.opportunities) if l.swot_analysis else "",
                "Threats": "\n".join(l.swot_analysis.threats) if l.swot_analysis else "",
            }
            for l in leads
        ], ["Company Name", "Strengths", "Weaknesses", "Opportunities", "Threats"], [30, 50, 50, 50, 50])

        if any(l.pain_point_analysis for l in leads):
            _sheet(writer, "Pain Point Analysis", [
                {"Company Name": l.company_name, "Pain Point": p.pain_point,
                 "Suggested Solution": p.suggested_solution}
                for l in leads for p in l.pain_point_analysis
            ], ["Company Name", "Pain Point", "Suggested Solution"], [30, 60, 60])

        if _has_cadence(leads):
            _sheet(writer, "Outreach Cadence", [
                {"Company Name": l.company_name, "Step": s.step, "Subject": s.subject, "Body": s.body}
                for l in leads for s in l.outreach_cadence
            ], ["Company Name", "Step", "Subject", "Body"], [30, 5, 40, 80])

        news = _sheet(writer, "Latest News", [
            {"Company Name": l.company_name, "Latest News": article_label(l.latest_news),
             "India-Related News": article_label(l.latest_india_news)} for l in leads
        ], ["Company Name", "Latest News", "India-Related News"], [30, 60, 60])
        for i, l in enumerate(leads, start=1):
            for c, article in ((1, l.latest_news), (2, l.latest_india_news)):
                if article and is_linkable(article.url):
                    news.write_url(i, c, article.url, string=article_label(article),
                                   tip="Click to open article")

        posts = []
        for l in leads:
            if l.latest_instagram_posts:
                posts += [{"Company Name": l.company_name, "Post Caption": p.caption or "",
                           "Post URL": p.url or NA} for p in l.latest_instagram_posts]
            else:
                posts.append({"Company Name": l.company_name, "Post Caption": NA, "Post URL": NA})
        ws = _sheet(writer, "Social Posts", posts, ["Company Name", "Post Caption", "Post URL"], [30, 60, 60])
        for i, post in enumerate(posts, start=1):
            if is_linkable(post["Post URL"]):
                ws.write_url(i, 2, post["Post URL"], string=post["Post URL"], tip="Click to open post")

    data = buf.getvalue()
    log.info("xlsx export leads=%d bytes=%d", len(leads), len(data))
    return data
