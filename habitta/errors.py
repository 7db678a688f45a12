"""Exception hierarchy for Habitta."""

from __future__ import annotations


class HabittaError(Exception):
    """Base class for all Habitta errors."""


class ConfigurationError(HabittaError):
    """Raised when reference data or configuration files are malformed."""


class PropertyNotFoundError(HabittaError):
    """Raised when a prediction run targets an unknown address."""

    def __init__(self, address_id: str):
        super().__init__(f"Property not found: {address_id}")
        self.address_id = address_id


class HomeNotFoundError(HabittaError):
    """Raised when a plan is requested for a home that does not exist (or is not the caller's)."""

    def __init__(self, home_id: str):
        super().__init__(f"Home not found: {home_id}")
        self.home_id = home_id


class PredictionError(HabittaError):
    """Raised by a rule that cannot produce a value for its field."""
