# /relgraph/relationship_extractors.py
"""
Turn company snapshots into typed links.

Company-scoped extractors take (company, ctx) and only link names that already
resolve to a registry person. Batch-scoped extractors take the company list.
`ingest_relational_relationships` reads the authoritative join records and must
run first, since it is what seeds the person registry.
"""

import json
from typing import Iterable, List, Optional, Set, Tuple

from pydantic import ValidationError

from relgraph.logger import get_logger
from relgraph.models import CompanySnapshot, FundingInfo, GraphLink
from relgraph.person_resolver import BuildContext

logger = get_logger(__name__)

INVESTOR_STRENGTH = 1
FOUNDER_STRENGTH = 2
BOARD_MEMBER_STRENGTH = 2
SUBSIDIARY_STRENGTH = 3
PARTNERSHIP_STRENGTH = 1
DATA_CENTER_OWNER_STRENGTH = 2
DATA_CENTER_USER_STRENGTH = 1


def _compact(metadata: dict) -> dict:
    return {key: value for key, value in metadata.items() if value is not None}


class _LinkCollector:
    """Appends links while suppressing repeats of the same (source, target, type)."""
    def __init__(self):
        self.links: List[GraphLink] = []
        self._seen: Set[Tuple[str, str, str]] = set()

    def add(self, source: str, target: str, link_type: str, strength: float, metadata: Optional[dict] = None) -> None:
        key = (source, target, link_type)
        if key in self._seen:
            return
        self._seen.add(key)
        self.links.append(GraphLink(
            source=source,
            target=target,
            type=link_type,
            strength=strength,
            metadata=_compact(metadata or {}),
        ))


def parse_funding(funding) -> Optional[FundingInfo]:
    """Funding is a FundingInfo, a JSON string, or free text. Free text has no investors."""
    if funding is None:
        return None
    if isinstance(funding, FundingInfo):
        return funding
    if isinstance(funding, dict):
        try:
            return FundingInfo.model_validate(funding)
        except ValidationError:
            return None
    if isinstance(funding, str):
        try:
            data = json.loads(funding)
        except json.JSONDecodeError:
            return None
        if not isinstance(data, dict):
            return None
        try:
            return FundingInfo.model_validate(data)
        except ValidationError:
            logger.debug("Skipping funding JSON with unexpected shape")
            return None
    return None


def _person_candidates(names: Iterable[str], ctx: BuildContext) -> List[str]:
    return [name for name in names if isinstance(name, str) and not ctx.classifier.looks_like_company(name)]


def extract_funding_relationships(company: CompanySnapshot, ctx: BuildContext) -> List[GraphLink]:
    """Investor links person -> company for funding investors that resolve to a known person."""
    funding = parse_funding(company.funding)
    if funding is None or not funding.investors:
        return []

    collector = _LinkCollector()
    for investor_name in _person_candidates(funding.investors, ctx):
        person_id = ctx.resolve(investor_name)
        if person_id and person_id in ctx.person_registry:
            collector.add(person_id, company.id, 'investor', INVESTOR_STRENGTH, {
                'amount': funding.total,
                'round': funding.latest_round,
                'date': funding.date,
            })
    return collector.links


def extract_founder_relationships(company: CompanySnapshot, ctx: BuildContext) -> List[GraphLink]:
    """Founder links person -> company; founders weigh more than investors in the layout."""
    if not company.founders:
        return []

    collector = _LinkCollector()
    for founder_name in _person_candidates(company.founders, ctx):
        person_id = ctx.resolve(founder_name)
        if person_id and person_id in ctx.person_registry:
            collector.add(person_id, company.id, 'founder', FOUNDER_STRENGTH)
    return collector.links


def extract_hierarchy_relationships(companies: List[CompanySnapshot]) -> List[GraphLink]:
    collector = _LinkCollector()
    for company in companies:
        if company.parent_company_id and company.parent_company_id != company.id:
            collector.add(company.parent_company_id, company.id, 'subsidiary', SUBSIDIARY_STRENGTH)
    return collector.links


def extract_partnership_relationships(companies: List[CompanySnapshot]) -> List[GraphLink]:
    collector = _LinkCollector()
    for company in companies:
        for partnership in company.partnerships:
            if partnership.company_id == company.id:
                continue
            collector.add(company.id, partnership.company_id, 'partnership', PARTNERSHIP_STRENGTH, {
                'type': partnership.type,
                'description': partnership.description,
                'date': partnership.date,
            })
    return collector.links


def extract_data_center_relationships(companies: List[CompanySnapshot]) -> List[GraphLink]:
    """Owner links for data centers the company owns, user links for the ones it uses."""
    collector = _LinkCollector()
    for company in companies:
        for data_center in company.owned_data_centers:
            if data_center.owner_company_id == company.id:
                collector.add(company.id, data_center.id, 'data-center-owner', DATA_CENTER_OWNER_STRENGTH)
        for data_center in company.used_data_centers:
            if data_center.owner_company_id == company.id:
                continue
            collector.add(company.id, data_center.id, 'data-center-user', DATA_CENTER_USER_STRENGTH, {
                'confidence': data_center.confidence,
            })
    return collector.links


def ingest_relational_relationships(companies: List[CompanySnapshot], ctx: BuildContext) -> Set[str]:
    """
    Reads board positions, investments and founder relations into the registry and
    `ctx.links`. Person records named like a company are skipped entirely.

    Returns the ids of investor companies that are not part of `companies`, so the
    caller can backfill them before their investor links would dangle.
    """
    collector = _LinkCollector()
    batch_ids = {company.id for company in companies}
    missing_investor_ids: Set[str] = set()

    for company in companies:
        for board_member in company.board_members:
            if board_member.person is None or not ctx.register_person(board_member.person):
                continue
            collector.add(board_member.person.id, company.id, 'board-member', BOARD_MEMBER_STRENGTH, {
                'title': board_member.title,
            })

        for investment in company.investments:
            if investment.person_id and investment.person is not None:
                if not ctx.register_person(investment.person):
                    continue
                collector.add(investment.person.id, company.id, 'investor', INVESTOR_STRENGTH, {
                    'amount': investment.amount,
                    'round': investment.round,
                    'date': investment.date,
                    'role': investment.role,
                })
            elif investment.investor_company_id:
                if investment.investor_company_id not in batch_ids:
                    missing_investor_ids.add(investment.investor_company_id)
                collector.add(investment.investor_company_id, company.id, 'investor', INVESTOR_STRENGTH, {
                    'amount': investment.amount,
                    'round': investment.round,
                    'date': investment.date,
                })

        for founder_relation in company.founder_relations:
            if founder_relation.person is None or not ctx.register_person(founder_relation.person):
                continue
            collector.add(founder_relation.person.id, company.id, 'founder', FOUNDER_STRENGTH, {
                'role': founder_relation.role,
            })

    ctx.links.extend(collector.links)
    return missing_investor_ids
