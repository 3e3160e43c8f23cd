# /relgraph/name_normalizer.py

import re
from typing import List

# Professional/generational suffixes, anchored at the end of the name
_SUFFIX_PATTERN = re.compile(r"\s+(jr|sr|ii|iii|iv|phd|md|esq)\.?$", re.IGNORECASE)
# A single embedded middle initial: "john d. doe" -> "john doe"
_MIDDLE_INITIAL_PATTERN = re.compile(r"\s+[a-z]\.\s+", re.IGNORECASE)
_WHITESPACE_PATTERN = re.compile(r"\s+")

MIN_SHARED_TOKENS = 2


def _normalize_once(name: str) -> str:
    value = name.lower().strip()
    value = _SUFFIX_PATTERN.sub("", value)
    value = _MIDDLE_INITIAL_PATTERN.sub(" ", value, count=1)
    return _WHITESPACE_PATTERN.sub(" ", value).strip()


def normalize(name: str) -> str:
    """
    Canonicalizes a person/company name for comparison.

    Lowercases and trims, strips a trailing suffix (Jr, Sr, II-IV, PhD, MD, Esq),
    collapses an embedded middle initial and squeezes whitespace. The rules are
    re-applied until nothing changes, so stacked suffixes ("Jr. PhD") are removed
    and normalize(normalize(x)) == normalize(x).
    """
    if not name:
        return ""
    current = _normalize_once(name)
    while True:
        next_value = _normalize_once(current)
        if next_value == current:
            return current
        current = next_value


def significant_tokens(normalized_name: str) -> List[str]:
    """Whitespace tokens longer than one character (initials are ignored)."""
    return [part for part in normalized_name.split(" ") if len(part) > 1]


def same_identity(name1: str, name2: str, min_shared_tokens: int = MIN_SHARED_TOKENS) -> bool:
    """
    Check if two person names likely refer to the same person.

    Exact match after normalization, or both names carry at least two significant
    tokens and share at least `min_shared_tokens` of them ("Reid Hoffman" vs
    "Reid G. Hoffman", "Hoffman Reid").
    """
    normalized1 = normalize(name1)
    normalized2 = normalize(name2)

    if normalized1 == normalized2:
        return bool(normalized1)

    parts1 = significant_tokens(normalized1)
    parts2 = significant_tokens(normalized2)

    if len(parts1) >= 2 and len(parts2) >= 2:
        shared = set(parts1) & set(parts2)
        if len(shared) >= min_shared_tokens:
            return True

    return False
