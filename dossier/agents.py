"""PydanticAI agent that turns search context into a JSON dossier."""

from functools import lru_cache
from typing import Any

from openai import AsyncOpenAI
from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from dossier.config import DossierConfig
from dossier.exceptions import CompletionError
from dossier.logging import get_logger

log = get_logger("dossier.agents")

# Constrains the gateway to syntactically valid JSON output.
JSON_MODE_SETTINGS = ModelSettings(extra_body={"response_format": {"type": "json_object"}})

SYSTEM_PROMPT = """You are a construction intelligence parser analyzing property data for contractors.

Your task: Convert raw search results into a structured JSON dossier.

Rules:
1. Analyze 'Last Sale Price' to determine 'budget_tier' (Economy: <$200k, Standard: $200k-$400k, Premium: $400k-$700k, Luxury: >$700k)
2. Calculate 'risk_score' (0-100) based on: age, permit history, neighborhood issues, structural concerns
3. Extract 3-4 distinct intel points covering:
   - Financial (sale history, property value, owner budget indicators)
   - Technical (building age, known issues, structural concerns)
   - Neighborhood (renovation trends, permit approval times, local regulations)
   - Permits (average permit approval time, common inspection issues)
4. Create a compelling 'talk_track' - a one-sentence opener for the contractor
5. Return ONLY valid JSON matching this exact schema:

{
  "address": "string",
  "summary": {
    "headline": "string (short, impactful title)",
    "risk_score": number (0-100),
    "budget_tier": "Economy" | "Standard" | "Premium" | "Luxury",
    "reasoning": "string (why this risk score)"
  },
  "intel": [
    {
      "category": "Financial" | "Technical" | "Neighborhood" | "Permits",
      "icon": "DollarSign" | "AlertTriangle" | "MapPin" | "FileCheck" | "Clock",
      "fact": "string (actual data point)",
      "strategy": "string (tactical advice for contractor)",
      "source_url": "string (optional)"
    }
  ],
  "talk_track": "string (compelling opening line)",
  "raw_sources": []
}

Focus on actionable intelligence that helps contractors:
- Price their quote accurately
- Anticipate potential problems
- Build rapport with homeowner
- Navigate local regulations"""


def build_user_prompt(address: str, raw_context: str) -> str:
    return f"Analyze this property: {address}\n\nSearch Data:\n{raw_context}\n\nReturn ONLY the JSON dossier."


def create_completion_model(config: DossierConfig) -> OpenAIChatModel:
    """Chat-completions model on the configured gateway, with client retries disabled."""
    client = AsyncOpenAI(
        base_url=config.completion_base_url,
        api_key=config.completion_api_key,
        max_retries=0,
    )
    return OpenAIChatModel(config.model, provider=OpenAIProvider(openai_client=client))


def create_dossier_agent(model: Any) -> Agent[None, str]:
    """Uncached factory - use with TestModel or FunctionModel for tests."""
    return Agent(
        model,
        instructions=SYSTEM_PROMPT,
        output_type=str,
        model_settings=JSON_MODE_SETTINGS,
        instrument=True,
        name="dossier_agent",
    )


@lru_cache(maxsize=4)
def get_dossier_agent(config: DossierConfig) -> Agent[None, str]:
    """Cached getter for production."""
    return create_dossier_agent(create_completion_model(config))


def clear_agent_cache() -> None:
    get_dossier_agent.cache_clear()


async def request_dossier(agent: Agent[None, str], address: str, raw_context: str) -> str:
    """Send the prompt and return the raw message text of the first completion.

    Raises:
        CompletionError: When the completion endpoint answers with a non-success status.
    """
    try:
        result = await agent.run(build_user_prompt(address, raw_context))
    except ModelHTTPError as e:
        body = e.body if isinstance(e.body, str) else str(e.body or "")
        log.error("completion.http_error", status_code=e.status_code, body=body[:500])
        raise CompletionError(status_code=e.status_code, body=body) from e
    return result.output
