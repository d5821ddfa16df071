from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .topology.violations import Violation


class RedisFailoverError(Exception): ...


class DescriptorRejectedError(RedisFailoverError):
    """Raised when a caller insists on a normalized spec that could not be produced."""

    def __init__(self, violations: Sequence[Violation]) -> None:
        self.violations = tuple(violations)
        lines = "\n".join(f"  - {v}" for v in self.violations)
        super().__init__(f"descriptor rejected with {len(self.violations)} violation(s):\n{lines}")


class CRDGenerationError(RedisFailoverError): ...
