from typing import Any, Optional


class WidgetError(Exception):
    """Base class for errors raised by the widget backend."""


class LocationUnresolved(WidgetError):
    """No override, no cached region and the live lookup failed."""

    def __init__(self, message: str = "Please specify a 5-digit FIPS code for this widget to load county-level data."):
        super().__init__(message)


class UpstreamUnusable(WidgetError):
    """Upstream document failed validation and no cache entry is young enough to stand in."""

    def __init__(self, region: str, updated_at: Optional[int] = None):
        self.region = region
        self.updated_at = updated_at
        if updated_at is None:
            detail = f"no cached data for {region}"
        else:
            detail = f"cached data for {region} is too old: {updated_at}"
        super().__init__(f"Upstream data unusable ({detail})")


class LocationUnavailable(WidgetError):
    pass


class GeocodingError(WidgetError):
    pass


class CacheCorrupted(WidgetError):
    def __init__(self, name: str, reason: Any):
        self.name = name
        super().__init__(f"Cache entry {name} is unreadable: {reason}")


class UnclassifiedRiskLevel(ValueError):
    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Cannot classify risk level {value!r}")
