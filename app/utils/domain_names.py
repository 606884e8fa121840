"""
Domain name utilities.

Ensures the same logical domain always maps to the same ledger key,
and derives the parts the selector scores on:
  - "  Shop.AU "        →  "shop.au"
  - "example.com.au"    →  label "example", TLD ".com.au"
  - "localhost"         →  label "localhost", no TLD
"""

from typing import Optional


def normalize_domain(domain_name: str) -> str:
    """
    Normalise a domain name to its canonical ledger form.

    Surrounding whitespace is removed and the name is lowercased.
    A single trailing root dot ("example.au.") is dropped.

    Args:
        domain_name: The raw domain name.

    Returns:
        The normalised domain name (may be empty).
    """
    name = (domain_name or "").strip().lower()
    if name.endswith("."):
        name = name[:-1]
    return name


def left_label(domain_name: str) -> str:
    """Return the left-most label, i.e. everything before the first dot."""
    return domain_name.split(".", 1)[0]


def derive_tld(domain_name: str) -> Optional[str]:
    """
    Return everything from the first dot onward.

    "example.com.au" → ".com.au", "example.au" → ".au".
    Names without a dot have no TLD and return None.
    """
    parts = domain_name.split(".", 1)
    if len(parts) < 2:
        return None
    return "." + parts[1]
