from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..core.enums import Severity, ViolationCode
from ..exceptions import DescriptorRejectedError
from .models import TopologyDescriptor, TopologySpec


class Violation(BaseModel):
    """One reason a descriptor is invalid or degraded."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    code: ViolationCode = Field(description="Machine-readable violation code")
    severity: Severity = Field(default=Severity.ERROR, description="Errors block normalization, warnings do not")
    path: str = Field(min_length=1, description="Dotted wire path, e.g. 'spec.redis.replicas'")
    message: str = Field(description="Human-readable explanation")

    @property
    def fatal(self) -> bool:
        return self.severity is Severity.ERROR

    def __str__(self) -> str:
        return f"[{self.severity}] {self.code} at {self.path}: {self.message}"


class DefaultApplied(BaseModel):
    """Audit record of an implicit default substituted during normalization."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = Field(min_length=1)
    value: Any = Field(description="The substituted value, JSON-compatible")


class ValidationResult(BaseModel):
    """Outcome of validating one descriptor revision.

    Exactly one of two shapes:

    - accepted: ``spec`` is set, ``violations`` holds warnings only
    - rejected: ``spec`` is ``None``, ``violations`` holds at least one error
      and ``defaults_applied`` is empty
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    spec: TopologySpec | None = None
    descriptor: TopologyDescriptor | None = None
    violations: tuple[Violation, ...] = ()
    defaults_applied: tuple[DefaultApplied, ...] = ()

    @property
    def ok(self) -> bool:
        return self.spec is not None

    @property
    def errors(self) -> tuple[Violation, ...]:
        return tuple(v for v in self.violations if v.fatal)

    @property
    def warnings(self) -> tuple[Violation, ...]:
        return tuple(v for v in self.violations if not v.fatal)

    @property
    def codes(self) -> tuple[ViolationCode, ...]:
        return tuple(v.code for v in self.violations)

    def unwrap(self) -> TopologySpec:
        """Return the normalized spec.

        Raises
        ------
        DescriptorRejectedError
            If validation produced any error-severity violation.
        """
        if self.spec is None:
            raise DescriptorRejectedError(self.errors)
        return self.spec
