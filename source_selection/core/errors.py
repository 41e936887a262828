"""
Error taxonomy for source selection.

- InvalidConfiguration: raised at call entry when a SelectionConfig (or a
  mapping meant to become one) is out of range. Never clamped.
- InvalidSourceData: a ranked source handed to select_sources() does not
  validate (unknown source type, score outside [0, 100], ...).
- SelectionCancelled: raised when the caller's cancel event is set while the
  deduplication loop is waiting on comparisons.
- ScorerFailure: describes a single failed similarity comparison. It is
  logged and counted by the comparator guard, never raised to callers.

An empty input is not an error: it produces an empty SelectionResult.
"""

from typing import Optional, Tuple

from pydantic import ValidationError


def _describe(err: ValidationError) -> Tuple[str, Optional[str]]:
    problems = []
    first_field = None
    for item in err.errors():
        loc = ".".join(str(p) for p in item.get("loc", ()))
        if first_field is None and loc:
            first_field = loc
        problems.append(f"{loc or 'value'}: {item.get('msg')} (got {repr(item.get('input'))[:80]})")
    return "; ".join(problems), first_field


class SelectionError(Exception):
    """Base class for everything raised out of the selection pipeline."""


class InvalidConfiguration(SelectionError, ValueError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    @classmethod
    def from_validation_error(cls, err: ValidationError) -> "InvalidConfiguration":
        details, field = _describe(err)
        return cls(f"Invalid selection configuration: {details}", field=field)


class InvalidSourceData(SelectionError, ValueError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    @classmethod
    def from_validation_error(cls, err: ValidationError) -> "InvalidSourceData":
        details, field = _describe(err)
        return cls(f"Invalid ranked source data: {details}", field=field)


class SelectionCancelled(SelectionError):
    """The caller cancelled the run between two similarity comparisons."""


class ScorerFailure(SelectionError):
    def __init__(self, cause: BaseException, left: str = "", right: str = ""):
        super().__init__(f"similarity comparison failed: {cause!r}")
        self.cause = cause
        self.left_preview = left[:60]
        self.right_preview = right[:60]
