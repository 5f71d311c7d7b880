"""Pydantic models for the property dossier pipeline."""

from enum import Enum

from pydantic import BaseModel, Field


class BudgetTier(str, Enum):
    """Budget tier derived from the last known sale price."""

    ECONOMY = "Economy"
    STANDARD = "Standard"
    PREMIUM = "Premium"
    LUXURY = "Luxury"


class IntelCategory(str, Enum):
    FINANCIAL = "Financial"
    TECHNICAL = "Technical"
    NEIGHBORHOOD = "Neighborhood"
    PERMITS = "Permits"


class IntelIcon(str, Enum):
    """Icon names the front end knows how to render."""

    DOLLAR_SIGN = "DollarSign"
    ALERT_TRIANGLE = "AlertTriangle"
    MAP_PIN = "MapPin"
    FILE_CHECK = "FileCheck"
    CLOCK = "Clock"


class SearchResult(BaseModel):
    """A single hit returned by the search API."""

    title: str = Field(
        default="",
        description="Title of the indexed page",
        examples=["10 Downing Street - Sold house prices"],
    )
    url: str = Field(
        default="",
        description="Location of the indexed page",
        examples=["https://www.rightmove.co.uk/house-prices/sw1a-2aa.html"],
    )
    content: str = Field(
        default="",
        description="Free-text excerpt, no guaranteed length",
    )


class RawSource(BaseModel):
    """Source reference exposed to the caller (numeric id dropped)."""

    title: str = Field(description="Source title", examples=["Westminster planning register"])
    url: str = Field(description="Source URL", examples=["https://idoxpa.westminster.gov.uk/"])


class SourceEntry(BaseModel):
    """Numbered source matching the ``[n]`` citation markers in the prompt context."""

    id: int = Field(ge=1, description="1-based position across all fanned-out queries")
    title: str
    url: str

    def to_raw_source(self) -> RawSource:
        return RawSource(title=self.title, url=self.url)


class DossierSummary(BaseModel):
    headline: str = Field(
        description="Short, impactful title",
        examples=["Grade I listed townhouse with heavy heritage constraints"],
    )
    risk_score: float = Field(
        ge=0,
        le=100,
        description="0 (no concerns) to 100 (high risk) from age, permits, neighborhood and structural signals",
        examples=[72],
    )
    budget_tier: BudgetTier = Field(description="Tier derived from the last sale price", examples=["Luxury"])
    reasoning: str = Field(description="Why this risk score was assigned")


class IntelPoint(BaseModel):
    category: IntelCategory = Field(examples=["Permits"])
    icon: IntelIcon = Field(examples=["FileCheck"])
    fact: str = Field(description="Data point taken from the search results")
    strategy: str = Field(description="Tactical advice for the contractor")
    source_url: str | None = Field(default=None, description="Supporting source, when known")


class Dossier(BaseModel):
    """Structured intelligence report returned to the caller."""

    address: str = Field(examples=["10 Downing Street, London"])
    summary: DossierSummary
    intel: list[IntelPoint] = Field(default_factory=list)
    talk_track: str = Field(description="One-sentence opener for the contractor")
    raw_sources: list[RawSource] = Field(
        default_factory=list,
        max_length=5,
        description="First five collected sources in citation order",
    )


class AssembledContext(BaseModel):
    """Output of the context assembly stage."""

    raw_context: str = Field(default="", description="Numbered snippets joined by the snippet separator")
    sources: list[SourceEntry] = Field(default_factory=list)


class GeocodeCandidate(BaseModel):
    """Address candidate returned by the geocoding service."""

    place_id: int = Field(examples=[123456789])
    display_name: str = Field(examples=["10, Downing Street, Westminster, London, SW1A 2AA, United Kingdom"])
    lat: float = Field(examples=[51.5033635])
    lon: float = Field(examples=[-0.1276248])
