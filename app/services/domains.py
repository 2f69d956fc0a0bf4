"""Domain normalization helpers shared by the audit services."""

import re

_SCHEME_AND_WWW = re.compile(r"^(https?://)?(www\.)?")
_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")


def clean_domain(value: str) -> str:
    """Normalize user input to a bare domain.

    Lowercases, strips the scheme and a leading ``www.``, and drops any
    path, so ``https://www.Example.com/path`` becomes ``example.com``.

    Raises:
        ValueError: If nothing is left after cleaning.
    """
    domain = _SCHEME_AND_WWW.sub("", value.strip().lower())
    domain = domain.split("/")[0]
    if not domain:
        raise ValueError(f"Invalid domain: {value!r}")
    return domain


def slugify_domain(domain: str) -> str:
    """Derive the URL-safe audit slug for a domain."""
    return _NON_ALPHANUMERIC.sub("-", domain).lower()
