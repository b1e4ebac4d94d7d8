"""Name normalisation used for every catalog and register lookup."""

from typing import Optional


def normalize_name(name: Optional[str]) -> str:
    """Case-insensitive, whitespace-trimmed lookup key. Stored names keep their original case."""
    if not name:
        return ""
    return " ".join(name.split()).casefold()


def clean_name(name: Optional[str]) -> str:
    """Display form: trimmed with inner whitespace collapsed, case preserved."""
    if not name:
        return ""
    return " ".join(name.split())


def same_name(left: Optional[str], right: Optional[str]) -> bool:
    return normalize_name(left) == normalize_name(right)
