"""
Domain selector — turns a drop list into a ranked, capped purchase set.

Pure functions only: no I/O and no access to global settings.
The algorithm runs as two explicit passes:

  1. ``filter_candidates``   — drop anything that fails a business rule
  2. ``rank_and_cap``        — stable sort by score, keep the top N
"""

from typing import Iterable, Sequence

from app.core.config import SelectionConfig
from app.domain.models import CandidateRecord
from app.utils.domain_names import derive_tld, left_label

MAX_LENGTH_BONUS = 100
PRIORITY_KEYWORD_BONUS = 50
BARE_AU_BONUS = 20


def is_eligible(candidate: CandidateRecord, config: SelectionConfig) -> bool:
    """Return True when the candidate passes every selection rule."""
    name = candidate.domain_name
    if not name or not name.strip():
        return False

    label_length = len(left_label(name))
    if not config.min_domain_length <= label_length <= config.max_domain_length:
        return False

    if config.allowed_tlds:
        tld = (derive_tld(name) or "").lower()
        if tld not in {allowed.lower() for allowed in config.allowed_tlds}:
            return False

    if config.exclude_keywords:
        lowered = name.lower()
        if any(keyword.lower() in lowered for keyword in config.exclude_keywords):
            return False

    return True


def score_candidate(candidate: CandidateRecord, config: SelectionConfig) -> int:
    """
    Additive priority score; higher is better.

    Shorter left-most labels score up to 100, each distinct priority
    keyword found in the name adds 50, and a bare ".au" TLD adds 20.
    """
    name = candidate.domain_name.lower()

    score = MAX_LENGTH_BONUS - min(len(left_label(name)), MAX_LENGTH_BONUS)

    keywords = {keyword.lower() for keyword in config.priority_keywords if keyword}
    score += PRIORITY_KEYWORD_BONUS * sum(1 for keyword in keywords if keyword in name)

    if (derive_tld(name) or "").lower() == ".au":
        score += BARE_AU_BONUS

    return score


def filter_candidates(
    candidates: Iterable[CandidateRecord], config: SelectionConfig
) -> list[CandidateRecord]:
    """First pass: keep eligible candidates in input order."""
    return [candidate for candidate in candidates if is_eligible(candidate, config)]


def rank_and_cap(
    candidates: Sequence[CandidateRecord], config: SelectionConfig
) -> list[CandidateRecord]:
    """
    Second pass: order by descending score and truncate.

    ``sorted`` is stable, so candidates with equal scores keep their
    relative input order.
    """
    ranked = sorted(
        candidates,
        key=lambda candidate: score_candidate(candidate, config),
        reverse=True,
    )
    return ranked[: max(config.max_domains_per_day, 0)]


def select_domains_to_buy(
    candidates: Sequence[CandidateRecord], config: SelectionConfig
) -> list[CandidateRecord]:
    """
    Select the domains worth buying from a drop list.

    Args:
        candidates: Drop-list entries, in source order.
        config: Selection rules and the daily cap.

    Returns:
        At most ``config.max_domains_per_day`` candidates, best first.
    """
    return rank_and_cap(filter_candidates(candidates, config), config)
