"""Client configuration, resolved once from explicit overrides and environment."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import validate_required


DEFAULT_BASE_URL = "https://financialdatafeed.platform.intuit.com/rest-war/v1"
DEFAULT_TIMEOUT = 30.0


class AggcatSettings(BaseSettings):
    """Process-wide defaults, read from `AGGCAT_*` environment variables."""

    model_config = SettingsConfigDict(env_prefix="AGGCAT_")

    customer_id: str | None = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class AggcatConfig:
    """Immutable per-client configuration."""

    customer_id: str
    """Customer every request is scoped to."""
    base_url: str = DEFAULT_BASE_URL
    """Root of the aggregation REST API, without trailing slash."""
    timeout: float = DEFAULT_TIMEOUT
    """Transport timeout in seconds."""

    @classmethod
    def resolve(
        cls,
        customer_id: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        settings: AggcatSettings | None = None,
    ) -> AggcatConfig:
        """Build a config, falling back to process-wide defaults per option.

        Args:
            customer_id: overrides `AGGCAT_CUSTOMER_ID`.
            base_url: overrides `AGGCAT_BASE_URL`.
            timeout: overrides `AGGCAT_TIMEOUT`.
            settings: defaults to use instead of reading the environment.

        Returns:
            The resolved configuration.

        Raises:
            InvalidArgumentError: if no customer id is available.

        """
        defaults = settings if settings is not None else AggcatSettings()
        resolved_customer = customer_id if customer_id is not None else defaults.customer_id
        validate_required(customer_id=resolved_customer)
        return cls(
            customer_id=str(resolved_customer),
            base_url=(base_url if base_url is not None else defaults.base_url).rstrip("/"),
            timeout=timeout if timeout is not None else defaults.timeout,
        )
