"""Input validation helpers.

Functions:
- validate_email(email) -> bool: Loose syntactic email check
- clean_optional(value) -> str | None: Trim text, blank becomes None
- validate_url(value) -> bool: http(s) URL check for media links
- resolve_category(category, categories) -> str: Case-insensitive category match
"""

import re

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_URL_RE = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)


class UnknownCategoryError(Exception):
    """Raised when a category is not in the configured list."""

    def __init__(self, category: str, categories: list[str]):
        self.category = category
        self.categories = categories
        super().__init__(
            f"Unknown category '{category}'. Valid categories: " + ", ".join(categories)
        )


def validate_email(email: str) -> bool:
    """Check that an email address looks valid.

    Args:
        email: Email address to check

    Returns:
        True if the address has a local part, an @ and a dotted domain
    """
    return bool(_EMAIL_RE.match(email.strip()))


def clean_optional(value: str | None) -> str | None:
    """Trim a text value; empty or whitespace-only becomes None."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def validate_url(value: str) -> bool:
    return bool(_URL_RE.match(value.strip()))


def resolve_category(category: str | None, categories: list[str], default: str) -> str:
    """Resolve a category name against the configured list.

    Args:
        category: Requested category (None or blank means default)
        categories: Valid category names
        default: Category used when none is requested

    Returns:
        The canonical category name

    Raises:
        UnknownCategoryError: If no category matches
    """
    if category is None or not category.strip():
        return default

    wanted = category.strip().lower()
    for candidate in categories:
        if candidate.lower() == wanted:
            return candidate

    raise UnknownCategoryError(category, categories)
