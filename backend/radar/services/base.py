"""
Base Service Interface

All services inherit from this base class.
"""

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class BaseService(ABC, Generic[InputT, OutputT]):
    """
    Base class for all services.

    Each service:
    - Has a defined input type
    - Has a defined output type
    - Can check its health
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Service name for logging."""
        pass

    @abstractmethod
    async def execute(self, input_data: InputT) -> OutputT:
        """
        Execute the service's main function.

        Args:
            input_data: Validated input conforming to InputT schema

        Returns:
            Output conforming to OutputT schema

        Raises:
            ServiceError: If execution fails
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if service is healthy and can process requests."""
        pass


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, service_name: str, message: str, details: Optional[dict] = None):
        self.service_name = service_name
        self.message = message
        self.details = details or {}
        super().__init__(f"[{service_name}] {message}")


class InsufficientDataError(ServiceError):
    """Fewer data points than a calculation strictly requires."""

    def __init__(self, message: str, required: int = 0, available: int = 0):
        super().__init__(
            "IndicatorEngine",
            message,
            {"required": required, "available": available},
        )
        self.required = required
        self.available = available


class UnknownInstrumentError(ServiceError):
    """Instrument is not in the registry."""

    def __init__(self, instrument: str):
        super().__init__("InstrumentRegistry", f"Unknown instrument: {instrument}")
        self.instrument = instrument


class ExternalAPIError(ServiceError):
    """External API call failed."""
    pass


class UpstreamFetchError(ExternalAPIError):
    """Network, timeout, HTTP or payload failure from one upstream provider."""
    pass


class RateLimitError(UpstreamFetchError):
    """Rate limit exceeded."""
    pass


class AllSourcesFailedError(UpstreamFetchError):
    """Every provider in the priority list failed."""

    def __init__(self, what: str, errors: dict[str, str]):
        summary = "; ".join(f"{source}: {reason}" for source, reason in errors.items())
        super().__init__(
            "MultiSource",
            f"All data sources failed for {what} ({summary or 'no sources configured'})",
            {"errors": errors},
        )
        self.errors = errors


class PartialTimeframeError(ServiceError):
    """One or more timeframes of an aggregate could not be resolved."""

    def __init__(self, instrument: str, failed: dict[str, str]):
        super().__init__(
            "SignalService",
            f"Could not resolve timeframes {sorted(failed)} for {instrument}",
            {"failed": failed},
        )
        self.instrument = instrument
        self.failed = failed
