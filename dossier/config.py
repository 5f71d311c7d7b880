"""Service configuration.

The pipeline never reads the environment itself: a ``DossierConfig`` is built
once (usually via ``DossierConfig.from_env``) and handed to the aggregator.
"""

import os
from dataclasses import dataclass

from dossier.exceptions import ConfigurationError

DEFAULT_SEARCH_URL = "https://api.valyu.ai/search"
DEFAULT_COMPLETION_BASE_URL = "https://ai.gateway.lovable.dev/v1"
DEFAULT_MODEL = "google/gemini-2.5-flash"
DEFAULT_GEOCODER_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_GEOCODER_USER_AGENT = "property-dossier-service/0.1"

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class DossierConfig:
    """Credentials and upstream endpoints for one aggregator instance."""

    search_api_key: str = ""
    completion_api_key: str = ""
    search_url: str = DEFAULT_SEARCH_URL
    completion_base_url: str = DEFAULT_COMPLETION_BASE_URL
    model: str = DEFAULT_MODEL
    strict_schema: bool = False
    geocoder_url: str = DEFAULT_GEOCODER_URL
    geocoder_user_agent: str = DEFAULT_GEOCODER_USER_AGENT

    @classmethod
    def from_env(cls) -> "DossierConfig":
        return cls(
            search_api_key=os.getenv("VALYU_API_KEY", ""),
            completion_api_key=os.getenv("LOVABLE_API_KEY", ""),
            search_url=os.getenv("SEARCH_API_URL", DEFAULT_SEARCH_URL),
            completion_base_url=os.getenv("COMPLETION_BASE_URL", DEFAULT_COMPLETION_BASE_URL),
            model=os.getenv("DOSSIER_MODEL", DEFAULT_MODEL),
            strict_schema=os.getenv("DOSSIER_STRICT_SCHEMA", "").lower() in _TRUTHY,
            geocoder_url=os.getenv("GEOCODER_URL", DEFAULT_GEOCODER_URL),
            geocoder_user_agent=os.getenv("GEOCODER_USER_AGENT", DEFAULT_GEOCODER_USER_AGENT),
        )

    def require_credentials(self) -> None:
        """Raise ConfigurationError naming the first missing credential."""
        if not self.search_api_key:
            raise ConfigurationError("VALYU_API_KEY")
        if not self.completion_api_key:
            raise ConfigurationError("LOVABLE_API_KEY")


def is_demo_mode_allowed() -> bool:
    """Demo mode is only served in development and staging."""
    environment = os.getenv("ENVIRONMENT", "development")
    return environment in ("development", "staging")
