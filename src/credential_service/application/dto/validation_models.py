"""Validation outcome value handed to credential use-cases."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of request field validation performed before the core runs."""

    field_errors: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def has_errors(self) -> bool:
        return bool(self.field_errors)

    @classmethod
    def valid(cls) -> ValidationOutcome:
        return cls()

    @classmethod
    def invalid(cls, field_errors: Mapping[str, str]) -> ValidationOutcome:
        return cls(field_errors=MappingProxyType(dict(field_errors)))
