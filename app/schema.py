# file: app/schema.py
"""
Records exchanged between the mapper, the state store and the UI.

Attributes are snake_case; the model output and the session file use the
camelCase keys (aliases). Sentinel strings such as "N/A" or
"Not found" only exist on the wire and are read as None here.
"""
from __future__ import annotations
import re
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic.networks import validate_email

from app.config import DEFAULT_CATEGORY, DEFAULT_DEPARTMENTS, DEFAULT_PLATFORMS, OUTREACH_TONES

SENTINELS = {"", "n/a", "na", "not found", "none", "null", "unknown", "-"}
_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def is_sentinel(v: Any) -> bool:
    return isinstance(v, str) and v.strip().lower() in SENTINELS


def company_key(name: str) -> str:
    """Identity key for a lead: case and whitespace insensitive company name."""
    return " ".join((name or "").split()).casefold()


# ---- wire cleanup applied before validation ----

def _text(v: Any) -> Any:
    if v is None or is_sentinel(v):
        return None
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    if isinstance(v, str):
        return v.strip()
    return v

def _url(v: Any) -> Optional[str]:
    v = _text(v)
    if isinstance(v, str) and v.lower().startswith(("http://", "https://")) and " " not in v:
        return v
    return None

def _email(v: Any) -> Optional[str]:
    v = _text(v)
    if not isinstance(v, str):
        return None
    try:
        return validate_email(v)[1]
    except ValueError:
        return None

def _str_list(v: Any) -> Any:
    if v is None or is_sentinel(v):
        return []
    if isinstance(v, str):
        parts = v.split(",") if "," in v else [v]
        return [p.strip() for p in parts if not is_sentinel(p)]
    if isinstance(v, (list, tuple)):
        return [str(x).strip() for x in v if x is not None and not is_sentinel(str(x))]
    return v

def _records(v: Any) -> Any:
    if v is None or is_sentinel(v):
        return []
    if isinstance(v, (dict, BaseModel)):
        return [v]
    if isinstance(v, (list, tuple)):
        return [x for x in v if isinstance(x, (dict, BaseModel))]
    return v

def _obj(v: Any) -> Any:
    return v if isinstance(v, (dict, BaseModel)) else None

def _blank(v: Any) -> str:
    return _text(v) or ""


Text = Annotated[Optional[str], BeforeValidator(_text)]
Url = Annotated[Optional[str], BeforeValidator(_url)]
Email = Annotated[Optional[str], BeforeValidator(_email)]
StrList = Annotated[List[str], BeforeValidator(_str_list)]
Blank = Annotated[str, BeforeValidator(_blank)]


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NewsArticle(WireModel):
    title: Text = None
    url: Url = None


class SocialPost(WireModel):
    caption: Text = None
    url: Url = None


class Contact(WireModel):
    name: str = Field(alias="contactName")
    designation: Text = None
    linkedin: Url = Field(default=None, alias="contactLinkedIn")
    email: Email = None
    phone: Text = None
    verified: Optional[bool] = None
    recent_post: Annotated[Optional[SocialPost], BeforeValidator(_obj)] = None
    icebreaker: Text = None

    @field_validator("name", mode="before")
    @classmethod
    def name_required(cls, v):
        v = _text(v)
        if not v:
            raise ValueError("contact name is required")
        return v


class SWOT(WireModel):
    strengths: StrList = Field(default_factory=list)
    weaknesses: StrList = Field(default_factory=list)
    opportunities: StrList = Field(default_factory=list)
    threats: StrList = Field(default_factory=list)


class PainPoint(WireModel):
    pain_point: Blank = ""
    suggested_solution: Blank = ""


class OutreachStep(WireModel):
    step: int = 0
    subject: Blank = ""
    body: Blank = ""


def _named_contacts(v: Any) -> Any:
    # a contact without a name is dropped rather than failing the whole lead
    keep = []
    for c in _records(v):
        if isinstance(c, BaseModel):
            keep.append(c)
            continue
        name = c.get("contactName", c.get("name"))
        if name and not is_sentinel(name):
            keep.append(c)
    return keep

def _score(v: Any) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return round(v)
    m = _NUMBER.search(str(v))
    return round(float(m.group(0))) if m else None


class LeadFields(WireModel):
    """Everything about a lead except its identity."""

    category: Text = None
    company_linkedin: Url = Field(default=None, alias="companyLinkedIn")
    justification: Text = None
    market_entry_signals: StrList = Field(default_factory=list)
    lead_score: Annotated[Optional[int], BeforeValidator(_score)] = None
    email: Email = None
    phone: Text = None
    contacts: Annotated[List[Contact], BeforeValidator(_named_contacts)] = Field(default_factory=list)
    outreach_suggestion: Text = None
    employee_count: Text = None
    latest_funding: Text = None
    tech_stack: StrList = Field(default_factory=list)
    competitors: StrList = Field(default_factory=list)
    swot_analysis: Annotated[Optional[SWOT], BeforeValidator(_obj)] = None
    pain_point_analysis: Annotated[List[PainPoint], BeforeValidator(_records)] = Field(default_factory=list)
    instagram_profile_url: Url = None
    latest_news: Annotated[Optional[NewsArticle], BeforeValidator(_obj)] = None
    latest_india_news: Annotated[Optional[NewsArticle], BeforeValidator(_obj)] = None
    outreach_cadence: Annotated[List[OutreachStep], BeforeValidator(_records)] = Field(default_factory=list)
    latest_instagram_posts: Annotated[List[SocialPost], BeforeValidator(_records)] = Field(default_factory=list)

    @field_validator("pain_point_analysis")
    @classmethod
    def drop_empty_pains(cls, v):
        return [p for p in v if p.pain_point]

    @field_validator("outreach_cadence")
    @classmethod
    def cadence_in_order(cls, v):
        ordered = sorted(v, key=lambda s: s.step or len(v) + 1)
        return [s if s.step else s.model_copy(update={"step": i}) for i, s in enumerate(ordered, 1)]

    @field_validator("latest_instagram_posts")
    @classmethod
    def drop_empty_posts(cls, v):
        return [p for p in v if p.caption or p.url]


class Lead(LeadFields):
    company_name: str

    @field_validator("company_name", mode="before")
    @classmethod
    def identity_required(cls, v):
        v = _text(v)
        if not isinstance(v, str) or not v:
            raise ValueError("companyName is required")
        return v

    @property
    def key(self) -> str:
        return company_key(self.company_name)

    def merged(self, enrichment: "LeadEnrichment") -> "Lead":
        return self.model_copy(update=enrichment.updates())


class LeadEnrichment(LeadFields):
    """Partial lead from an enrichment call; only supplied, non-empty fields merge."""

    def updates(self) -> dict:
        out = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None or value == [] or value == "":
                continue
            out[name] = value
        return out


class CompetitorAnalysis(WireModel):
    analysis: str
    market_share: Text = None
    recent_news: Annotated[Optional[NewsArticle], BeforeValidator(_obj)] = None

    @field_validator("analysis", mode="before")
    @classmethod
    def analysis_required(cls, v):
        v = _text(v)
        if not v:
            raise ValueError("analysis is required")
        return v


class ScoreExplanation(WireModel):
    explanation: str
    bullet_points: StrList = Field(default_factory=list)

    @field_validator("explanation", mode="before")
    @classmethod
    def explanation_required(cls, v):
        v = _text(v)
        if not v:
            raise ValueError("explanation is required")
        return v


class SearchQuery(WireModel):
    client_name: str = ""
    category: str = DEFAULT_CATEGORY
    departments: List[str] = Field(default_factory=lambda: list(DEFAULT_DEPARTMENTS), alias="department")
    region: str = "Global"
    search_platforms: List[str] = Field(default_factory=lambda: list(DEFAULT_PLATFORMS))
    include_similar_companies: bool = False
    generate_outreach_cadence: bool = False
    exclusion_list: str = ""
    outreach_tone: str = OUTREACH_TONES[0]
    is_ai_saas: bool = False

    def excluded_names(self) -> List[str]:
        return [n.strip() for n in self.exclusion_list.split(",") if n.strip()]


class StoredSession(WireModel):
    leads: List[Lead] = Field(default_factory=list)
    query: SearchQuery = Field(default_factory=SearchQuery)
