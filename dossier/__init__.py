"""Property Dossier Service - AI contractor dossiers for UK property addresses"""

__version__ = "0.1.0"

from dossier.agents import clear_agent_cache, create_dossier_agent, get_dossier_agent
from dossier.config import DossierConfig
from dossier.context import assemble_context
from dossier.exceptions import (
    AddressValidationError,
    CompletionError,
    ConfigurationError,
    DossierParseError,
    DossierPipelineError,
    DossierSchemaError,
    UpstreamFatalError,
)
from dossier.finalizer import finalize_dossier
from dossier.geocoding import GeocodingClient
from dossier.models import (
    AssembledContext,
    Dossier,
    DossierSummary,
    GeocodeCandidate,
    IntelPoint,
    RawSource,
    SearchResult,
    SourceEntry,
)
from dossier.search import SearchClient, build_search_queries
from dossier.workflow import DossierAggregator

__all__ = [
    # Models
    "SearchResult",
    "SourceEntry",
    "RawSource",
    "AssembledContext",
    "DossierSummary",
    "IntelPoint",
    "Dossier",
    "GeocodeCandidate",
    # Configuration
    "DossierConfig",
    # Pipeline stages
    "build_search_queries",
    "SearchClient",
    "assemble_context",
    "create_dossier_agent",
    "get_dossier_agent",
    "clear_agent_cache",
    "finalize_dossier",
    "DossierAggregator",
    # Geocoding
    "GeocodingClient",
    # Exceptions
    "DossierPipelineError",
    "AddressValidationError",
    "ConfigurationError",
    "UpstreamFatalError",
    "CompletionError",
    "DossierParseError",
    "DossierSchemaError",
]
