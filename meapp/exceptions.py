from typing import Dict, Optional


class WorkbookError(Exception):
    """Base class for errors raised by the workbook core."""


class ProfileValidationError(WorkbookError, ValueError):
    """Required profile fields are blank or malformed; nothing was changed."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        details = "; ".join(f"{k}: {v}" for k, v in errors.items())
        super().__init__(f"Invalid profile ({details})")


class ProfileExistsError(WorkbookError):
    """Onboarding was requested while a profile is already set."""


class ProfileMissingError(WorkbookError):
    """An operation needs a profile but onboarding has not happened yet."""


class UnknownKeyError(WorkbookError, KeyError):
    """
    A key outside one of the fixed sets (month, field path, week, view, ...).
    Raised instead of silently creating a new entry.
    """

    def __init__(self, kind: str, key: object, allowed: Optional[list] = None):
        self.kind = kind
        self.key = key
        self.allowed = allowed
        msg = f"Unknown {kind}: {key!r}"
        if allowed:
            msg += f" (expected one of: {', '.join(str(a) for a in allowed)})"
        super().__init__(msg)

    def __str__(self) -> str:
        return self.args[0]
