"""ValidationReport — blocking violations and non-blocking warnings from one pass."""

from __future__ import annotations

from dataclasses import dataclass
from typing import final

from annuity_submission.core.errors import FieldViolation, ValidationError, ValidationWarning
from annuity_submission.core.result import Err, Ok
from annuity_submission.core.types import UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class ValidationReport:
    errors: tuple[FieldViolation, ...] = ()
    warnings: tuple[ValidationWarning, ...] = ()

    @property
    def blocking(self) -> bool:
        return bool(self.errors)

    def merge(self, other: ValidationReport) -> ValidationReport:
        return ValidationReport(
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
        )

    def prefixed(self, prefix: str) -> ValidationReport:
        """Re-root every path under prefix (e.g. "joint_owner")."""
        return ValidationReport(
            errors=tuple(
                FieldViolation(
                    path=f"{prefix}.{e.path}", constraint=e.constraint,
                    actual_value=e.actual_value,
                )
                for e in self.errors
            ),
            warnings=tuple(
                ValidationWarning(path=f"{prefix}.{w.path}", message=w.message, code=w.code)
                for w in self.warnings
            ),
        )

    def to_result(
        self, source: str,
    ) -> Ok[tuple[ValidationWarning, ...]] | Err[ValidationError]:
        """Ok(warnings) when nothing blocks, else Err carrying both lists."""
        if not self.errors:
            return Ok(self.warnings)
        return Err(ValidationError(
            message=f"{len(self.errors)} blocking validation error(s)",
            code="VALIDATION_FAILED",
            timestamp=UtcDatetime.now(),
            source=source,
            fields=self.errors,
            warnings=self.warnings,
        ))


EMPTY_REPORT = ValidationReport()


def violation(path: str, constraint: str, actual: object) -> FieldViolation:
    return FieldViolation(path=path, constraint=constraint, actual_value=repr(actual))


def warning(path: str, message: str, code: str) -> ValidationWarning:
    return ValidationWarning(path=path, message=message, code=code)
