"""Static per-class request quotas."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from app.core.config import GUEST_CLASS, QuotaSettings
from app.core.errors import ConfigurationAppError


class QuotaPolicy:
    """Immutable mapping of identity class -> max requests per window.

    Built once at startup. Every class the system can hand out must have a
    limit; gaps are reported by ``require`` before the app serves traffic.
    """

    def __init__(self, limits: Mapping[str, int]) -> None:
        invalid = {cls: limit for cls, limit in limits.items() if limit < 1}
        if invalid:
            raise ConfigurationAppError(
                code="quota_limit_invalid",
                message="Quota limits must be positive integers",
                details={"context": {"invalid": invalid}},
            )
        self._limits = MappingProxyType(dict(limits))
        self.require([GUEST_CLASS])

    @classmethod
    def from_settings(cls, quota_settings: QuotaSettings) -> "QuotaPolicy":
        return cls(quota_settings.limits)

    @property
    def classes(self) -> frozenset[str]:
        return frozenset(self._limits)

    def require(self, identity_classes: Iterable[str]) -> None:
        """Fail if any of ``identity_classes`` has no configured limit.

        Raises:
            ConfigurationAppError: Listing the classes without a limit.
        """
        missing = sorted(set(identity_classes) - set(self._limits))
        if missing:
            raise ConfigurationAppError(
                code="quota_class_unknown",
                message=f"No quota configured for identity class(es): {', '.join(missing)}",
                details={"hint": "Add the class to QUOTA_LIMITS"},
            )

    def limit_for(self, identity_class: str) -> int:
        try:
            return self._limits[identity_class]
        except KeyError:
            raise ConfigurationAppError(
                code="quota_class_unknown",
                message=f"No quota configured for identity class: {identity_class}",
            ) from None


def describe_window(window_seconds: int) -> str:
    """Human-readable window length used in client-facing messages.

    >>> describe_window(3600)
    'hour'
    >>> describe_window(90)
    '90 seconds'
    """
    units = (("day", 86400), ("hour", 3600), ("minute", 60))
    for name, size in units:
        if window_seconds == size:
            return name
        if window_seconds % size == 0:
            return f"{window_seconds // size} {name}s"
    return f"{window_seconds} seconds"
