"""Exceptions raised while decoding JSON documents."""
from typing import Optional


class DecodeError(ValueError):
    """Base class for every decoding failure. ``path`` points at the offending node."""

    def __init__(self, message: str, path: str = "$") -> None:
        self.path = path
        super().__init__(f"{message} (at {path})")


class UnknownVariant(DecodeError):
    def __init__(self, family: str, value: str, path: str = "$") -> None:
        self.family = family
        self.value = value
        super().__init__(f"Unknown {family} variant '{value}'", path)


class ArityMismatch(DecodeError):
    def __init__(self, variant: str, expected: int, actual: int, path: str = "$") -> None:
        self.variant = variant
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Variant '{variant}' expects {expected} value(s), got {actual}",
            path,
        )


class MissingRequiredField(DecodeError):
    def __init__(self, field: str, path: str = "$") -> None:
        self.field = field
        super().__init__(f"Missing required field '{field}'", path)


class UnexpectedField(DecodeError):
    def __init__(self, field: str, path: str = "$") -> None:
        self.field = field
        super().__init__(f"Unexpected field '{field}'", path)


class TypeMismatch(DecodeError):
    def __init__(self, field: Optional[str], expected: str, path: str = "$") -> None:
        self.field = field
        self.expected = expected
        where = f"Field '{field}'" if field else "Value"
        super().__init__(f"{where} is not a valid {expected}", path)
