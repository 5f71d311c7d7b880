"""Turn the model's JSON text into the dossier returned to the caller."""

import json
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from dossier.exceptions import DossierParseError, DossierSchemaError
from dossier.models import Dossier, SourceEntry

MAX_RAW_SOURCES = 5


def finalize_dossier(
    completion_text: str,
    sources: Sequence[SourceEntry],
    *,
    strict_schema: bool = False,
) -> dict[str, Any]:
    """Parse the completion and attach the first five collected sources.

    Whatever ``raw_sources`` the model produced is replaced. Without
    ``strict_schema`` the rest of the object is forwarded untouched.

    Raises:
        DossierParseError: When the text is not JSON or not a JSON object.
        DossierSchemaError: In strict mode, when the object does not match ``Dossier``.
    """
    try:
        payload = json.loads(completion_text)
    except json.JSONDecodeError as e:
        raise DossierParseError(reason=str(e)) from e
    if not isinstance(payload, dict):
        raise DossierParseError(reason=f"expected a JSON object, got {type(payload).__name__}")

    payload["raw_sources"] = [source.to_raw_source().model_dump() for source in sources[:MAX_RAW_SOURCES]]

    if strict_schema:
        try:
            return Dossier.model_validate(payload).model_dump(mode="json", exclude_none=True)
        except ValidationError as e:
            raise DossierSchemaError(reason=f"{e.error_count()} validation error(s)") from e
    return payload
