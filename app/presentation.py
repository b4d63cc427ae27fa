# file: app/presentation.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional

from app.config import SCORE_HIGH, SCORE_MEDIUM
from app.schema import Contact, Lead, NewsArticle

BAND_COLORS = {"high": "#16a34a", "medium": "#ca8a04", "low": "#dc2626", "none": "#64748b"}


def score_band(score: Optional[int]) -> str:
    if score is None:
        return "none"
    if score > SCORE_HIGH:
        return "high"
    if score > SCORE_MEDIUM:
        return "medium"
    return "low"


def is_linkable(url: Optional[str]) -> bool:
    return bool(url) and url.lower().startswith(("http://", "https://"))


def article_label(article: Optional[NewsArticle]) -> str:
    """Title, else the URL, else "N/A". A missing link never hides the title."""
    if article is None:
        return "N/A"
    return article.title or (article.url if is_linkable(article.url) else None) or "N/A"


def article_markdown(article: Optional[NewsArticle]) -> str:
    label = article_label(article)
    if article is not None and is_linkable(article.url):
        return f"[{label}]({article.url})"
    return label


def sort_leads(leads: Iterable[Lead]) -> List[Lead]:
    """Highest score first; unscored leads last, otherwise input order."""
    return sorted(leads, key=lambda l: (l.lead_score is None, -(l.lead_score or 0)))


@dataclass
class Row:
    lead: Lead
    contact: Optional[Contact]
    first: bool
    span: int

    @property
    def email(self) -> Optional[str]:
        return (self.contact.email if self.contact else None) or self.lead.email

    @property
    def phone(self) -> Optional[str]:
        return (self.contact.phone if self.contact else None) or self.lead.phone


def flatten(leads: Iterable[Lead]) -> List[Row]:
    """One row per contact; a lead without contacts still gets one row."""
    rows = []
    for lead in leads:
        contacts = lead.contacts or [None]
        for i, contact in enumerate(contacts):
            rows.append(Row(lead=lead, contact=contact, first=i == 0, span=len(contacts)))
    return rows


def table_records(leads: Iterable[Lead]) -> List[dict]:
    """Rows for the on-screen results table."""
    out = []
    for row in flatten(leads):
        lead, contact = row.lead, row.contact
        out.append({
            "Score": lead.lead_score,
            "Company": lead.company_name,
            "Category": lead.category or "",
            "Intel": lead.justification or "",
            "Contact": contact.name if contact else "N/A",
            "Designation": (contact.designation if contact else None) or "N/A",
            "LinkedIn": contact.linkedin if contact else None,
            "Email": row.email or "",
            "Phone": row.phone or "",
        })
    return out


USER_GUIDE = """
### What it does
Finds international companies showing intent to enter the Indian market, researches
them with Gemini and Google Search, scores each lead 1-100 and drafts outreach.

### Using it
1. **Client name** (optional): deep dive on one company. Tick *Include similar
   companies* to also get lookalikes of it.
2. **Category**: without a client name, pick an industry. *Others* takes a free-text category.
3. **Target departments**: contacts are only kept if their current role is in one of these
   departments and covers the target region.
4. **Search platforms**: sources the model is told to consult. Instagram adds profile and post fields.
5. **Find Leads**: results are ranked by score (green > 75, amber > 50, red otherwise).

### Per lead
- **Verify intel**: firmographics, SWOT, pain points, competitors, news and verified contacts.
- **Find lookalikes**: appends similar companies; companies already listed are skipped.
- **Explain score**: a breakdown using only the data already on the lead.
- **Analyze** a competitor for a short positioning note and market share.

### Bulk actions and export
*Research all* and *Generate Outreach Emails* work through leads one at a time with a
progress bar. CSV and Excel downloads hold everything on screen; the Excel file has
separate sheets for SWOT, pain points, cadences, news and social posts.

Results and the last search are saved locally and reloaded on the next visit.
*Clear session* forgets them.
""".strip()
