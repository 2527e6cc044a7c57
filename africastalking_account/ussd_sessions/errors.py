"""Error taxonomy for the USSD session export."""
from __future__ import annotations

from typing import Any, Iterable, Optional


class UssdExportError(RuntimeError):
    pass


class ConfigError(UssdExportError):
    """Required configuration is missing from the environment."""

    def __init__(self, missing: Iterable[str]):
        self.missing = tuple(missing)
        super().__init__(f"missing required configuration: {', '.join(self.missing)}")


class TransportError(UssdExportError):
    """Network or HTTP failure talking to the provider. Never retried here."""

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class LoginError(UssdExportError):
    pass


class SchemaMismatchError(UssdExportError):
    """The provider's header row does not carry the expected columns."""

    def __init__(
        self,
        only_in_expected: Iterable[str],
        only_in_actual: Iterable[str],
        common: Iterable[str],
        message: str = "Unexpected input.",
    ):
        self.only_in_expected = frozenset(only_in_expected)
        self.only_in_actual = frozenset(only_in_actual)
        self.common = frozenset(common)
        super().__init__(
            f"{message} only_in_expected={sorted(self.only_in_expected)} "
            f"only_in_actual={sorted(self.only_in_actual)}"
        )


class FormatError(UssdExportError, ValueError):
    """A field's text does not match its expected encoding."""

    def __init__(self, field: str, value: Any, reason: str = "unexpected format"):
        self.field = field
        self.value = value
        super().__init__(f"{field}: {reason}: {value!r}")
