# /relgraph/models.py

import json
from typing import Any, Dict, List, Literal, Optional, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from relgraph.logger import get_logger

# Shared pydantic data structures for the relationship graph.

logger = get_logger(__name__)

NodeType = Literal["company", "person", "data-center", "capital"]
LinkType = Literal[
    "investor",
    "parent",
    "subsidiary",
    "board-member",
    "founder",
    "partnership",
    "data-center-owner",
    "data-center-user",
]

# Link endpoints are always plain node ids, never hydrated node objects.
NodeRef = str

NODE_TYPES: Tuple[str, ...] = ("company", "person", "data-center", "capital")
LINK_TYPES: Tuple[str, ...] = (
    "investor",
    "parent",
    "subsidiary",
    "board-member",
    "founder",
    "partnership",
    "data-center-owner",
    "data-center-user",
)


class CamelModel(BaseModel):
    """Base model that serializes to the camelCase keys the rendering layer expects."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _load_json_list(value: Any, field_name: str) -> List[Any]:
    """Text columns holding JSON arrays; anything unparseable means no data."""
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            logger.debug(f"Skipping malformed JSON in '{field_name}': {value[:80]!r}")
            return []
    if not isinstance(value, list):
        return []
    return value


# --- Graph output ---

class GraphNode(CamelModel):
    id: str = Field(description="Stable identifier matching the underlying record's primary key.")
    name: str = Field(description="Display name of the entity.")
    type: NodeType = Field(description="Node category, computed once at assembly time.")
    logo_url: Optional[str] = None
    photo_url: Optional[str] = None
    slug: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Back-references such as companyId or personId.")


class GraphLink(CamelModel):
    source: NodeRef = Field(description="The ID of the source node.")
    target: NodeRef = Field(description="The ID of the target node.")
    type: LinkType = Field(description="The relationship type between source and target.")
    strength: Optional[float] = Field(default=None, description="Relative visual/semantic weight.")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Relationship-specific data (amount, round, title, date).")

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.source, self.target, self.type)


class GraphData(BaseModel):
    nodes: List[GraphNode] = Field(default_factory=list)
    links: List[GraphLink] = Field(default_factory=list)

    def node_ids(self) -> Set[str]:
        return {node.id for node in self.nodes}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the rendering layer (camelCase keys, unset fields dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True)


# --- People and join records ---

class Person(CamelModel):
    id: str
    name: str
    slug: Optional[str] = None
    bio: Optional[str] = None
    photo_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    wikipedia_url: Optional[str] = None


class CompanyRef(CamelModel):
    id: str
    name: str
    slug: Optional[str] = None


class BoardPosition(CamelModel):
    id: Optional[str] = None
    person_id: str
    company_id: str
    title: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    person: Optional[Person] = None


class Investment(CamelModel):
    """An investment record; exactly one of the person or investor-company sides is normally set."""
    id: Optional[str] = None
    company_id: str
    person_id: Optional[str] = None
    investor_company_id: Optional[str] = None
    amount: Optional[str] = None
    round: Optional[str] = None
    date: Optional[str] = None
    role: Optional[str] = None
    person: Optional[Person] = None
    investor_company: Optional[CompanyRef] = None

    @field_validator("amount", "round", "date", mode="before")
    @classmethod
    def _number_to_text(cls, value):
        # The store keeps some amounts as numbers (3.0e8); the graph carries them as text.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if isinstance(value, float) and value.is_integer():
                value = int(value)
            return str(value)
        return value


class FounderRelation(CamelModel):
    id: Optional[str] = None
    person_id: str
    company_id: str
    role: Optional[str] = None
    person: Optional[Person] = None


# --- Company snapshot (read-only input) ---

class FundingInfo(CamelModel):
    total: Optional[str] = None
    latest_round: Optional[str] = None
    investors: List[str] = Field(default_factory=list)
    date: Optional[str] = None


class Partnership(CamelModel):
    company_id: str
    type: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None


class DataCenterRef(CamelModel):
    id: str
    title: str
    owner_company_id: Optional[str] = None
    confidence: Optional[str] = None


class CompanySnapshot(CamelModel):
    id: str
    name: str
    slug: Optional[str] = None
    logo_url: Optional[str] = None
    founders: List[str] = Field(default_factory=list)
    funding: Union[FundingInfo, str, None] = None
    tags: List[str] = Field(default_factory=list)
    parent_company_id: Optional[str] = None
    partnerships: List[Partnership] = Field(default_factory=list)
    owned_data_centers: List[DataCenterRef] = Field(default_factory=list)
    used_data_centers: List[DataCenterRef] = Field(default_factory=list)
    board_members: List[BoardPosition] = Field(default_factory=list)
    investments: List[Investment] = Field(default_factory=list)
    founder_relations: List[FounderRelation] = Field(default_factory=list)
    approved: bool = True

    @field_validator("founders", "tags", mode="before")
    @classmethod
    def _parse_string_list(cls, value, info):
        return [str(item) for item in _load_json_list(value, info.field_name) if isinstance(item, str)]

    @field_validator("partnerships", mode="before")
    @classmethod
    def _parse_partnerships(cls, value):
        partnerships = []
        for entry in _load_json_list(value, "partnerships"):
            if isinstance(entry, Partnership):
                partnerships.append(entry)
                continue
            if not isinstance(entry, dict) or not (entry.get("companyId") or entry.get("company_id")):
                continue
            try:
                partnerships.append(Partnership.model_validate(entry))
            except ValidationError as e:
                logger.debug(f"Skipping malformed partnership entry {entry!r}: {e.error_count()} error(s)")
        return partnerships

    @field_validator("funding", mode="before")
    @classmethod
    def _parse_funding(cls, value):
        # Plain strings are kept verbatim; the funding extractor decides whether they hold JSON.
        if isinstance(value, dict):
            try:
                return FundingInfo.model_validate(value)
            except ValidationError:
                logger.debug("Skipping malformed funding object")
                return None
        return value


# --- Options ---

class GraphBuildOptions(BaseModel):
    include_people: bool = True
    include_data_centers: bool = True
    include_partnerships: bool = True
    max_depth: int = 2
    # Curator overrides win over the capital/person heuristics.
    type_overrides: Dict[str, NodeType] = Field(default_factory=dict)


class FocusFilters(BaseModel):
    """Per-type visibility toggles; a type missing from a map counts as visible."""
    node_types: Dict[str, bool] = Field(default_factory=dict)
    link_types: Dict[str, bool] = Field(default_factory=dict)
    search: Optional[str] = None

    def node_visible(self, node: GraphNode) -> bool:
        return self.node_types.get(node.type, True) is not False

    def link_visible(self, link: GraphLink) -> bool:
        return self.link_types.get(link.type, True) is not False
