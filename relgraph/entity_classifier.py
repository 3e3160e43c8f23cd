# /relgraph/entity_classifier.py

import json
import re
from typing import Iterable, List, Optional, Set

from pydantic import BaseModel, Field

from relgraph.logger import get_logger

logger = get_logger(__name__)

# --- Keyword Tables ---
# These are maintained data, not logic. Override them with ENTITY_LISTS_PATH.

CAPITAL_INDICATORS = [
    'capital', 'ventures', 'partners', 'investment', 'investments',
    'fund', 'funds', 'private equity', 'vc', 'venture capital',
    'equity', 'holdings', 'group', 'asset management',
    'sovereign wealth', 'pension fund', 'endowment',
    'advisors', 'advisory', 'management',
    # generic corporate suffixes
    'inc', 'llc', 'corp', 'ltd',
]

KNOWN_CAPITAL_ENTITIES = [
    'andreessen horowitz', 'accel', 'kleiner perkins',
    'sequoia capital', 'greylock', 'benchmark', 'insight partners',
    'general catalyst', 'general atlantic', 'silver lake',
    'kkr', 'blackstone', 'carlyle', 'tpg', 'apollo',
    'blackrock', 'vanguard', 'fidelity', 'fidelity investments',
    't rowe price', 'capital group', 'franklin templeton',
    'goldman sachs', 'morgan stanley', 'jp morgan', 'jpmorgan',
    'wells fargo', 'bank of america', 'citigroup',
    'dst global', 'temasek', 'gic', 'softbank', 'vision fund',
    'mubadala', 'qatar investment authority', 'psp investments',
    'cpp investments', 'sovereign wealth fund', 'greycroft',
    'ivp', 'nea', 'asml', 'fujitsu',
]

# Narrower "obviously a company, not a person" filter for investor/founder names
COMPANY_INDICATORS = [
    'inc', 'llc', 'corp', 'ltd', 'ventures', 'capital', 'partners',
    'group', 'holdings', 'technologies', 'systems', 'solutions',
    'company', 'co', 'fund', 'management', 'advisors', 'bank',
    'corporation', 'enterprises', 'industries', 'international',
]

KNOWN_COMPANIES = [
    'microsoft', 'google', 'apple', 'amazon', 'meta', 'facebook',
    'morgan stanley', 'goldman sachs', 'jpmorgan', 'nvidia',
    'intel', 'amd', 'oracle', 'ibm', 'salesforce', 'adobe',
    'cisco', 'tesla', 'netflix', 'disney',
]

# Seeds the company-name set alongside the names harvested from the store
KNOWN_COMPANY_NAMES = [
    'microsoft', 'google', 'apple', 'amazon', 'meta', 'facebook',
    'morgan stanley', 'goldman sachs', 'jpmorgan', 'jpmorgan chase',
    'bank of america', 'wells fargo', 'citigroup', 'barclays',
    'deutsche bank', 'nvidia', 'intel', 'amd', 'qualcomm',
    'broadcom', 'oracle', 'ibm', 'salesforce', 'adobe', 'cisco',
    'tesla', 'ford', 'gm', 'general motors', 'toyota',
    'netflix', 'disney', 'warner', 'universal',
]

# "XX Capital", "XX Ventures", "XX Partners", ...
CAPITAL_NAME_PATTERN = re.compile(
    r"^[a-z\s]+(capital|ventures|partners|investments?|funds?|group|holdings?)$",
    re.IGNORECASE,
)

# Entries this short only count as whole words ("co" must not hit "Marco")
SHORT_TERM_LENGTH = 3
MIN_MATCH_LENGTH = 3


def contains_term(text: str, term: str) -> bool:
    """Substring test on word boundaries, so "john" is not found in "johnson"."""
    if not term:
        return False
    return re.search(r"(?<!\w)" + re.escape(term) + r"(?!\w)", text) is not None


def _mentions(lower: str, term: str) -> bool:
    if len(term) <= SHORT_TERM_LENGTH:
        return contains_term(lower, term)
    return term in lower


class EntityLists(BaseModel):
    """Shape of the JSON file that overrides the classifier tables."""
    capital_indicators: List[str] = Field(default_factory=lambda: list(CAPITAL_INDICATORS))
    known_capital_entities: List[str] = Field(default_factory=lambda: list(KNOWN_CAPITAL_ENTITIES))
    company_indicators: List[str] = Field(default_factory=lambda: list(COMPANY_INDICATORS))
    known_companies: List[str] = Field(default_factory=lambda: list(KNOWN_COMPANIES))
    known_company_names: List[str] = Field(default_factory=lambda: list(KNOWN_COMPANY_NAMES))


class EntityClassifier:
    """
    Lexical heuristics that decide whether a name string denotes an organization.

    This is "good enough to avoid obviously wrong graph nodes", not NER. False
    positives and negatives are expected.
    """
    def __init__(self, lists: Optional[EntityLists] = None, min_match_length: int = MIN_MATCH_LENGTH):
        self.lists = lists or EntityLists()
        self.min_match_length = min_match_length
        self._capital_indicators = [term.lower().strip() for term in self.lists.capital_indicators]
        self._known_capital_entities = [term.lower().strip() for term in self.lists.known_capital_entities]
        self._company_indicators = [term.lower().strip() for term in self.lists.company_indicators]
        self._known_companies = [term.lower().strip() for term in self.lists.known_companies]

    @classmethod
    def from_file(cls, path: str, min_match_length: int = MIN_MATCH_LENGTH) -> "EntityClassifier":
        with open(path, 'r', encoding='utf-8') as f:
            lists = EntityLists(**json.load(f))
        logger.info(f"Loaded entity classifier tables from {path}")
        return cls(lists, min_match_length=min_match_length)

    def is_organization(self, name: str) -> bool:
        """True if the name looks like an investment firm or corporation rather than an individual."""
        lower = (name or '').lower().strip()
        if not lower:
            return False

        if any(_mentions(lower, indicator) for indicator in self._capital_indicators):
            return True

        if any(lower == entity or _mentions(lower, entity) for entity in self._known_capital_entities):
            return True

        return CAPITAL_NAME_PATTERN.match(name.strip()) is not None

    def looks_like_company(self, name: str) -> bool:
        """Narrow filter used before attributing an investor/founder entry to a person."""
        lower = (name or '').lower().strip()
        if not lower:
            return True
        if any(_mentions(lower, indicator) for indicator in self._company_indicators):
            return True
        return any(lower == company or _mentions(lower, company) for company in self._known_companies)

    def is_known_company_name(self, name: str, company_name_set: Set[str]) -> bool:
        """
        True if the name matches a company from the name set: exactly, by one of its
        tokens, or by whole-word containment in either direction. Both strings must be
        at least `min_match_length` long for the containment check.

        Containment is whole-word, not a plain substring test: "John" must not hit
        "Johnson & Johnson" and "Max" must not hit "Maxar".
        """
        normalized = (name or '').lower().strip()
        if not normalized:
            return False

        if normalized in company_name_set:
            return True

        for part in normalized.split():
            if len(part) >= self.min_match_length and part in company_name_set:
                return True

        if len(normalized) < self.min_match_length:
            return False
        for company_name in company_name_set:
            if len(company_name) < self.min_match_length:
                continue
            if contains_term(normalized, company_name) or contains_term(company_name, normalized):
                return True

        return False

    def build_company_name_set(self, company_names: Iterable[str]) -> Set[str]:
        """Lowercase company names plus their tokens, seeded with well-known corporations."""
        company_name_set = {name.lower().strip() for name in self.lists.known_company_names}
        for company_name in company_names:
            normalized = (company_name or '').lower().strip()
            if not normalized:
                continue
            company_name_set.add(normalized)
            company_name_set.update(part for part in normalized.split() if len(part) >= self.min_match_length)
        return company_name_set


_default_classifier: Optional[EntityClassifier] = None


def get_classifier() -> EntityClassifier:
    """Process-wide default classifier; the tables are read-only so sharing is safe."""
    global _default_classifier
    if _default_classifier is None:
        from relgraph.config import get_settings
        settings = get_settings()
        if settings.ENTITY_LISTS_PATH:
            _default_classifier = EntityClassifier.from_file(
                settings.ENTITY_LISTS_PATH, min_match_length=settings.NAME_MIN_MATCH_LENGTH
            )
        else:
            _default_classifier = EntityClassifier(min_match_length=settings.NAME_MIN_MATCH_LENGTH)
    return _default_classifier


def is_organization(name: str) -> bool:
    return get_classifier().is_organization(name)


def is_known_company_name(name: str, company_name_set: Set[str]) -> bool:
    return get_classifier().is_known_company_name(name, company_name_set)
