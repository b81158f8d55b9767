"""Normalizers applied to raw settings values before pydantic validates them."""


def to_uppercase(value: str | None) -> str | None:
    return value.upper() if value is not None else None


def to_lowercase(value: str | None) -> str | None:
    return value.lower() if value is not None else None


def strip_or_none(value: str | None) -> str | None:
    """
    Strip surrounding whitespace; a blank string becomes None so an empty
    `KEY=` line in `.env` behaves like an unset variable.
    """
    if value is None:
        return None
    return value.strip() or None


def to_isolation_level(value: str | None) -> str | None:
    """Accept `read_committed` / `Repeatable Read` spellings of an isolation level."""
    if value is None:
        return None
    return " ".join(value.replace("_", " ").upper().split())
