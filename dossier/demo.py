"""Demo mode fixture for front-end work without burning API keys."""

from functools import lru_cache
from typing import Any

from dossier.models import (
    BudgetTier,
    Dossier,
    DossierSummary,
    IntelCategory,
    IntelIcon,
    IntelPoint,
    RawSource,
)

DEMO_ADDRESS = "10 Downing Street, London"


@lru_cache(maxsize=1)
def get_demo_dossier() -> Dossier:
    """Hardcoded dossier, cached to avoid repeated model construction.

    Use ``model_copy(update={"address": ...})`` to echo the caller's address.
    """
    return Dossier(
        address=DEMO_ADDRESS,
        summary=DossierSummary(
            headline="Grade I listed Georgian terrace under tight heritage control",
            risk_score=68,
            budget_tier=BudgetTier.LUXURY,
            reasoning=(
                "Early 18th-century fabric, listed building consent required for most works, "
                "and a conservation area with strict materials guidance."
            ),
        ),
        intel=[
            IntelPoint(
                category=IntelCategory.FINANCIAL,
                icon=IntelIcon.DOLLAR_SIGN,
                fact="Comparable SW1A townhouses have sold well above $700k.",
                strategy="Quote premium materials first; budget is unlikely to be the constraint.",
                source_url="https://www.rightmove.co.uk/house-prices/sw1a-2aa.html",
            ),
            IntelPoint(
                category=IntelCategory.TECHNICAL,
                icon=IntelIcon.ALERT_TRIANGLE,
                fact="Brick facade over timber-framed interiors with documented subsidence history.",
                strategy="Allow for a structural survey before committing to a fixed price.",
            ),
            IntelPoint(
                category=IntelCategory.PERMITS,
                icon=IntelIcon.FILE_CHECK,
                fact="Listed building consent decisions in Westminster typically take 8-13 weeks.",
                strategy="Build the consent window into the programme and say so up front.",
                source_url="https://idoxpa.westminster.gov.uk/online-applications/",
            ),
            IntelPoint(
                category=IntelCategory.NEIGHBORHOOD,
                icon=IntelIcon.MAP_PIN,
                fact="Neighbouring properties favour like-for-like sash window restoration.",
                strategy="Lead with heritage joinery experience.",
            ),
        ],
        talk_track="I've worked on listed terraces like yours and know how to get consent moving quickly.",
        raw_sources=[
            RawSource(title="Sold house prices in SW1A", url="https://www.rightmove.co.uk/house-prices/sw1a-2aa.html"),
            RawSource(
                title="Westminster planning applications",
                url="https://idoxpa.westminster.gov.uk/online-applications/",
            ),
        ],
    )


def get_demo_response(address: str) -> dict[str, Any]:
    return get_demo_dossier().model_copy(update={"address": address}).model_dump(mode="json", exclude_none=True)
