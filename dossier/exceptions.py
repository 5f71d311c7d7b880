"""Domain-specific exceptions for the dossier pipeline."""


class DossierPipelineError(Exception):
    """Base exception for dossier pipeline errors."""


class AddressValidationError(DossierPipelineError):
    """Raised when the request carries no usable address."""

    def __init__(self, reason: str = "Address is required") -> None:
        self.reason = reason
        super().__init__(reason)


class ConfigurationError(DossierPipelineError):
    """Raised when a required upstream credential is not configured."""

    def __init__(self, setting: str) -> None:
        self.setting = setting
        super().__init__(f"{setting} not configured")


class UpstreamFatalError(DossierPipelineError):
    """Base for upstream failures that abort the whole request."""


class CompletionError(UpstreamFatalError):
    """Raised when the completion endpoint answers with a non-success status."""

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"AI Gateway error: {status_code}")


class DossierParseError(UpstreamFatalError):
    """Raised when the model output cannot be turned into a dossier object."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to parse dossier JSON: {reason}")


class DossierSchemaError(UpstreamFatalError):
    """Raised in strict mode when the model output does not match the dossier schema."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Dossier does not match schema: {reason}")
