"""Request-scoped dossier pipeline: fanout, assemble, prompt, finalize."""

from typing import Any
from uuid import uuid4

import httpx
from pydantic_ai import Agent

from dossier.agents import get_dossier_agent, request_dossier
from dossier.config import DossierConfig
from dossier.context import assemble_context
from dossier.exceptions import AddressValidationError
from dossier.finalizer import finalize_dossier
from dossier.logging import PhaseTimer, bind_context_vars, get_logger, log_phase
from dossier.models import SearchResult
from dossier.search import SearchClient, build_search_queries

log = get_logger("dossier.workflow")


class DossierAggregator:
    """Builds one dossier per address from search results and an LLM completion.

    Args:
        config: Credentials and upstream endpoints.
        http_client: Client used for the search API (for testing). A fresh
            client is opened per request when omitted.
        dossier_agent: Override the completion agent (for testing).
    """

    def __init__(
        self,
        config: DossierConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        dossier_agent: Agent[None, str] | None = None,
    ) -> None:
        self.config = config
        self._http_client = http_client
        self._dossier_agent = dossier_agent

    async def run(self, address: str | None) -> dict[str, Any]:
        """Execute the four-stage pipeline for one address.

        Returns:
            The parsed dossier with ``raw_sources`` replaced by up to five real sources.

        Raises:
            AddressValidationError: Address missing or blank; no network call is made.
            ConfigurationError: A required credential is missing.
            CompletionError: The completion endpoint returned a non-success status.
            DossierParseError: The completion text is not a JSON object.
            DossierSchemaError: Strict mode only, the object does not match the schema.
        """
        if not address or not address.strip():
            raise AddressValidationError()
        self.config.require_credentials()

        bind_context_vars(correlation_id=str(uuid4())[:8], address=address)
        workflow_timer = PhaseTimer()
        log.info("workflow.started")

        with log_phase(log, "fanout") as summary:
            queries = build_search_queries(address)
            if self._http_client is not None:
                result_sets = await self._fan_out(self._http_client, queries)
            else:
                async with httpx.AsyncClient() as client:
                    result_sets = await self._fan_out(client, queries)
            summary["result_counts"] = [len(results) for results in result_sets]

        with log_phase(log, "assembly") as summary:
            context = assemble_context(result_sets)
            summary["source_count"] = len(context.sources)
            summary["context_chars"] = len(context.raw_context)

        with log_phase(log, "completion") as summary:
            agent = self._dossier_agent or get_dossier_agent(self.config)
            completion_text = await request_dossier(agent, address, context.raw_context)
            summary["output_chars"] = len(completion_text)

        with log_phase(log, "finalize") as summary:
            dossier = finalize_dossier(completion_text, context.sources, strict_schema=self.config.strict_schema)
            summary["raw_source_count"] = len(dossier["raw_sources"])

        log.info("workflow.completed", total_ms=workflow_timer.stop())
        return dossier

    async def _fan_out(self, client: httpx.AsyncClient, queries: list[str]) -> list[list[SearchResult]]:
        search = SearchClient(client, api_key=self.config.search_api_key, url=self.config.search_url)
        return await search.fan_out(queries)
