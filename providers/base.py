from typing import Protocol

from providers.types import LoadFailed, LoadResult


class ProviderError(RuntimeError):
    """Upstream lookup failure reported by a provider."""

    def __init__(self, severity, message, cause=""):
        self.severity = severity
        self.message = message
        self.cause = cause
        super().__init__(f"Error loading track ({severity}): {message}\ncaused by: {cause}")

    @classmethod
    def from_result(cls, result: LoadFailed) -> "ProviderError":
        return cls(result.severity, result.message, result.cause)


class UnexpectedResultShape(RuntimeError):
    """A call site received a load outcome it has no handling for."""

    def __init__(self, expected, result):
        self.expected = expected
        self.result = result
        super().__init__(f"expected {expected}, got {type(result).__name__}")


class Provider(Protocol):
    async def resolve(self, query: str) -> LoadResult:
        raise NotImplementedError
