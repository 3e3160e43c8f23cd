# /relgraph/graph_builder.py

from typing import Dict, List, Optional, Set

from relgraph.config import Settings, get_settings
from relgraph.database import CompanyDataSource
from relgraph.entity_classifier import EntityClassifier, get_classifier
from relgraph.logger import get_logger
from relgraph.models import (
    CompanySnapshot,
    DataCenterRef,
    GraphBuildOptions,
    GraphData,
    GraphLink,
    GraphNode,
)
from relgraph.person_resolver import BuildContext
from relgraph.relationship_extractors import (
    extract_data_center_relationships,
    extract_founder_relationships,
    extract_funding_relationships,
    extract_hierarchy_relationships,
    extract_partnership_relationships,
    ingest_relational_relationships,
)

logger = get_logger(__name__)

CAPITAL_TAGS = ('investment-firm', 'capital')


class GraphAssembler:
    """
    Builds the company relationship graph from a read-only company store.

    Every call to `build` gets its own BuildContext; the assembler itself keeps no
    per-build state, so one instance can serve concurrent callers.
    """
    def __init__(
        self,
        data_source: CompanyDataSource,
        classifier: Optional[EntityClassifier] = None,
        settings: Optional[Settings] = None,
    ):
        self.data_source = data_source
        self.classifier = classifier or get_classifier()
        self.settings = settings or get_settings()

    def build(self, company_ids: Optional[List[str]] = None, options: Optional[GraphBuildOptions] = None) -> GraphData:
        """
        The main function that orchestrates a graph build.

        Args:
            company_ids: Companies to include. None or empty means all approved companies.
            options: Which relationship families to include, plus curator type overrides.

        Returns:
            A deduplicated GraphData with no dangling links.
        """
        options = options or GraphBuildOptions()

        # 1. Resolve the working set; unknown ids are silently absent
        companies = self.data_source.get_companies(company_ids or None)
        company_index: Dict[str, CompanySnapshot] = {company.id: company for company in companies}
        companies = list(company_index.values())

        company_name_set = self.data_source.get_company_name_index(
            list(company_index.keys()), classifier=self.classifier
        )
        ctx = BuildContext(
            company_name_set,
            classifier=self.classifier,
            min_shared_tokens=self.settings.FUZZY_MIN_SHARED_TOKENS,
        )

        # 2. Authoritative relational records seed the person registry
        missing_investor_ids = ingest_relational_relationships(companies, ctx)

        # 3. Backfill investor companies so company-to-company investments never dangle
        if missing_investor_ids:
            for investor in self.data_source.get_companies(sorted(missing_investor_ids)):
                if investor.id not in company_index:
                    company_index[investor.id] = investor
                    companies.append(investor)

        # 4. Free-text fields, in stable company order against the shared registry
        if options.include_people:
            for company in companies:
                ctx.links.extend(extract_funding_relationships(company, ctx))
                ctx.links.extend(extract_founder_relationships(company, ctx))

        # 5. Batch extractors
        ctx.links.extend(extract_hierarchy_relationships(companies))
        if options.include_partnerships:
            ctx.links.extend(extract_partnership_relationships(companies))
        if options.include_data_centers:
            ctx.links.extend(extract_data_center_relationships(companies))

        # 6. Nodes
        data_centers = self._collect_data_centers(companies) if options.include_data_centers else []
        nodes = self.build_nodes(companies, ctx, data_centers, options.type_overrides)

        # 7. Global dedup pass
        graph = finalize_graph(nodes, ctx.links)

        logger.info(
            "Relationship graph built",
            extra={
                "requested_companies": len(company_ids) if company_ids else None,
                "companies": len(companies),
                "people": len(ctx.person_registry),
                "nodes": len(graph.nodes),
                "links": len(graph.links),
                "dropped_links": len(ctx.links) - len(graph.links),
            },
        )
        return graph

    @staticmethod
    def _collect_data_centers(companies: List[CompanySnapshot]) -> List[DataCenterRef]:
        data_centers: List[DataCenterRef] = []
        for company in companies:
            data_centers.extend(company.owned_data_centers)
            data_centers.extend(company.used_data_centers)
        return data_centers

    def is_capital_company(self, company: CompanySnapshot) -> bool:
        if any(tag in CAPITAL_TAGS for tag in company.tags):
            return True
        return self.classifier.is_organization(company.name)

    def build_nodes(
        self,
        companies: List[CompanySnapshot],
        ctx: BuildContext,
        data_centers: Optional[List[DataCenterRef]] = None,
        type_overrides: Optional[Dict[str, str]] = None,
    ) -> List[GraphNode]:
        """One node per company, registry person and data center, keyed by id."""
        type_overrides = type_overrides or {}
        nodes: List[GraphNode] = []
        node_ids: Set[str] = set()

        for company in companies:
            if company.id in node_ids:
                continue
            node_type = type_overrides.get(company.id)
            if node_type is None:
                node_type = 'capital' if self.is_capital_company(company) else 'company'
            metadata = {'companyId': company.id}
            if node_type == 'capital':
                metadata['capitalId'] = company.id
            nodes.append(GraphNode(
                id=company.id,
                name=company.name,
                type=node_type,
                logo_url=company.logo_url,
                slug=company.slug,
                metadata=metadata,
            ))
            node_ids.add(company.id)

        # Person records whose name reads like a firm become capital nodes
        for person_id, person in ctx.person_registry.items():
            if person_id in node_ids:
                continue
            node_type = type_overrides.get(person_id)
            if node_type is None:
                node_type = 'capital' if self.classifier.is_organization(person.name) else 'person'
            metadata = {'capitalId': person_id} if node_type == 'capital' else {'personId': person_id}
            nodes.append(GraphNode(
                id=person_id,
                name=person.name,
                type=node_type,
                photo_url=person.photo_url,
                slug=person.slug,
                metadata=metadata,
            ))
            node_ids.add(person_id)

        for data_center in data_centers or []:
            if data_center.id in node_ids:
                continue
            nodes.append(GraphNode(
                id=data_center.id,
                name=data_center.title,
                type=type_overrides.get(data_center.id, 'data-center'),
                metadata={'dataCenterId': data_center.id},
            ))
            node_ids.add(data_center.id)

        return nodes


def finalize_graph(nodes: List[GraphNode], links: List[GraphLink]) -> GraphData:
    """
    Unconditional dedup pass: first node per id, first link per (source, target, type),
    and links whose endpoints are not nodes are dropped.
    """
    unique_nodes: List[GraphNode] = []
    node_ids: Set[str] = set()
    for node in nodes:
        if node.id not in node_ids:
            node_ids.add(node.id)
            unique_nodes.append(node)

    unique_links: List[GraphLink] = []
    link_keys = set()
    for link in links:
        if link.source not in node_ids or link.target not in node_ids:
            logger.debug(f"Dropping dangling {link.type} link {link.source} -> {link.target}")
            continue
        if link.key in link_keys:
            continue
        link_keys.add(link.key)
        unique_links.append(link)

    return GraphData(nodes=unique_nodes, links=unique_links)


def build_graph_data(
    data_source: CompanyDataSource,
    company_ids: Optional[List[str]] = None,
    options: Optional[GraphBuildOptions] = None,
    classifier: Optional[EntityClassifier] = None,
) -> GraphData:
    """Entry point for the serving layer: returns `{nodes, links}` for the given companies."""
    return GraphAssembler(data_source, classifier=classifier).build(company_ids, options)
