# app/schema.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Literal, Optional

Tier = Literal["official", "regulator", "peerreview", "news", "company", "other"]
Status = Literal["Supported", "Contested", "Rejected"]

TIERS = ("official", "regulator", "peerreview", "news", "company", "other")


class ReviewRequest(BaseModel):
    x_url: Optional[str] = None

    @field_validator('x_url', mode='before')
    @classmethod
    def strip_url(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v


class Evidence(BaseModel):
    quote: str = ""
    url: str = ""
    tier: Tier = "other"

    @field_validator('quote', 'url', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        if v is None:
            return ""
        return v

    @field_validator('tier', mode='before')
    @classmethod
    def unknown_tier_to_other(cls, v):
        # exact match only; "Official" is not a high tier
        if v in TIERS:
            return v
        return "other"


class Finding(BaseModel):
    """A claim as reported by one provider. Status is kept as the provider wrote it."""
    claim: str = ""
    status: str = "Contested"
    evidence: List[Evidence] = []
    notes: str = ""

    @field_validator('claim', 'notes', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        if v is None:
            return ""
        return v

    @field_validator('status', mode='before')
    @classmethod
    def missing_status(cls, v):
        if not v:
            return "Contested"
        return v

    @field_validator('evidence', mode='before')
    @classmethod
    def none_to_list(cls, v):
        if v is None:
            return []
        return v


class MergedFinding(BaseModel):
    claim: str
    status: Status
    evidence: List[Evidence] = []


class ProviderResult(BaseModel):
    """Structured claim evaluation returned by one model provider."""
    model_config = ConfigDict(extra="allow")

    case_id: Optional[str] = None
    claim_extract: List[str] = []
    findings: List[Finding] = []
    scores: Dict[str, Any] = {}
    verdict: Optional[str] = None
    confidence: Optional[Any] = None
    top_sources: List[str] = []
    known_unknowns: List[str] = []
    audit: Dict[str, Any] = {}

    @field_validator('case_id', mode='before')
    @classmethod
    def case_id_to_str(cls, v):
        if v is None or v == "":
            return None
        return str(v).strip()

    @field_validator('claim_extract', 'findings', 'top_sources', 'known_unknowns', mode='before')
    @classmethod
    def none_to_list(cls, v):
        if v is None:
            return []
        return v

    @field_validator('scores', 'audit', mode='before')
    @classmethod
    def none_to_dict(cls, v):
        if v is None:
            return {}
        return v


class PageSnapshot(BaseModel):
    url: str
    title: str = ""
    snippet1: str = ""
    snippet2: str = ""


class EvidenceBundle(BaseModel):
    tweet_text: str = ""
    tweet_url: str
    extracted_links: List[str] = []
    page_snapshots: List[PageSnapshot] = []


class Report(BaseModel):
    case_id: str
    verdict: str
    confidence: float = Field(ge=0.0, le=0.95)
    findings: List[MergedFinding]
    scores: Dict[str, Any] = {}
    top_sources: List[str]
    known_unknowns: List[str]
    tweet_text: str
    report_url: str
    hash: str


class ErrorResponse(BaseModel):
    error: str
    verdict: Optional[str] = None
    known_unknowns: Optional[List[str]] = None
