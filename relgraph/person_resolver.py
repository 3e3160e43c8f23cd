# /relgraph/person_resolver.py

from typing import Dict, List, Optional, Set

from relgraph.entity_classifier import EntityClassifier, get_classifier
from relgraph.logger import get_logger
from relgraph.models import GraphLink, Person
from relgraph.name_normalizer import MIN_SHARED_TOKENS, normalize, same_identity

logger = get_logger(__name__)


class BuildContext:
    """
    Working state for a single graph build.

    Holds the person registry (person id -> Person), the normalized-name index used for
    deduplication, the company-name set and the accumulated links. A fresh context is
    created for every build so concurrent builds never share registries.
    """
    def __init__(
        self,
        company_name_set: Set[str],
        classifier: Optional[EntityClassifier] = None,
        min_shared_tokens: int = MIN_SHARED_TOKENS,
    ):
        self.company_name_set = company_name_set
        self.classifier = classifier or get_classifier()
        self.min_shared_tokens = min_shared_tokens
        self.person_registry: Dict[str, Person] = {}
        self.name_index: Dict[str, str] = {}
        self.links: List[GraphLink] = []

    def register_person(self, person: Person) -> bool:
        """
        Seeds the registry from a record the store already knows is a person.
        Returns False if the record's name is actually a company; such records are
        skipped entirely and must not be used as link endpoints.
        """
        if self.classifier.is_known_company_name(person.name, self.company_name_set):
            logger.debug(f"Skipping person record '{person.name}': name matches a company")
            return False
        if person.id not in self.person_registry:
            self.person_registry[person.id] = person
            self.name_index[normalize(person.name)] = person.id
        return True

    def resolve(self, name: str) -> Optional[str]:
        return resolve_person(
            name,
            self.person_registry,
            self.name_index,
            self.company_name_set,
            classifier=self.classifier,
            min_shared_tokens=self.min_shared_tokens,
        )


def resolve_person(
    name: str,
    person_registry: Dict[str, Person],
    name_index: Dict[str, str],
    company_name_set: Set[str],
    classifier: Optional[EntityClassifier] = None,
    min_shared_tokens: int = MIN_SHARED_TOKENS,
) -> Optional[str]:
    """
    Maps a free-text name to an existing person id, or None.

    Never invents a person: a name that cannot be tied to a registry entry is dropped.
    The fuzzy pass favours precision; a missed match only costs an edge.
    The only mutation is backfilling `name_index` when the registry fallback matches.
    """
    classifier = classifier or get_classifier()

    if not name or not name.strip():
        return None

    # Never create a person from a name that is actually a company
    if classifier.is_known_company_name(name, company_name_set):
        return None

    normalized = normalize(name)

    if normalized in name_index:
        return name_index[normalized]

    for existing_normalized, person_id in name_index.items():
        if same_identity(name, existing_normalized.replace('-', ' '), min_shared_tokens):
            return person_id

    # Registry entries whose index key was never written
    for person_id, person in person_registry.items():
        if same_identity(name, person.name, min_shared_tokens):
            name_index[normalized] = person_id
            return person_id

    logger.debug(f"Unresolved name dropped: '{name}'")
    return None
