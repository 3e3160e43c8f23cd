# /relgraph/database.py

from abc import ABC, abstractmethod
import json
from typing import Any, Dict, Iterable, List, Optional, Set

from neo4j import GraphDatabase
from neo4j.exceptions import DriverError, Neo4jError
from pydantic import ValidationError

from relgraph.config import Settings, get_settings
from relgraph.entity_classifier import EntityClassifier, get_classifier
from relgraph.logger import get_logger
from relgraph.models import CompanySnapshot

logger = get_logger(__name__)


class DataAccessError(RuntimeError):
    """The company store could not be read. This is the only hard failure of a graph build."""


def _validate_companies(records: Iterable[Dict[str, Any]]) -> List[CompanySnapshot]:
    """Maps raw company records to snapshots; a record that cannot be mapped is left out."""
    companies = []
    for record in records:
        try:
            companies.append(CompanySnapshot.model_validate(record))
        except ValidationError as e:
            record_id = record.get('id') if isinstance(record, dict) else None
            logger.warning(f"Skipping company record {record_id!r}: {e.error_count()} validation error(s)")
    return companies


class CompanyDataSource(ABC):
    """
    An abstract base class defining the read-only interface the graph builder needs
    from the company store.
    """
    @abstractmethod
    def get_companies(self, ids: Optional[List[str]] = None) -> List[CompanySnapshot]:
        """Companies with their joins; all approved companies when `ids` is omitted.
        Unknown ids are simply absent from the result."""
        pass

    @abstractmethod
    def get_company_names(self, ids: Optional[List[str]] = None) -> List[str]:
        pass

    def get_company_name_index(
        self, ids: Optional[List[str]] = None, classifier: Optional[EntityClassifier] = None
    ) -> Set[str]:
        """Lowercase company names and name tokens for company-vs-person disambiguation."""
        classifier = classifier or get_classifier()
        return classifier.build_company_name_set(self.get_company_names(ids))

    def close(self):
        pass


class InMemoryCompanyStore(CompanyDataSource):
    """Company store backed by a list of snapshots (fixtures, exports, tests)."""
    def __init__(self, companies: Iterable[CompanySnapshot]):
        self._companies: Dict[str, CompanySnapshot] = {}
        for company in companies:
            self._companies[company.id] = company

    @classmethod
    def from_json_file(cls, path: str) -> "InMemoryCompanyStore":
        """Loads `[{...}, ...]` or `{"companies": [{...}, ...]}` in the camelCase export format."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DataAccessError(f"Could not load company snapshot from {path}: {e}") from e
        records = data.get('companies', []) if isinstance(data, dict) else data
        return cls(_validate_companies(records))

    def _select(self, ids: Optional[List[str]]) -> List[CompanySnapshot]:
        if ids is None:
            return [company for company in self._companies.values() if company.approved]
        selected = []
        for company_id in dict.fromkeys(ids):
            company = self._companies.get(company_id)
            if company is not None:
                selected.append(company)
        return selected

    def get_companies(self, ids: Optional[List[str]] = None) -> List[CompanySnapshot]:
        return self._select(ids)

    def get_company_names(self, ids: Optional[List[str]] = None) -> List[str]:
        return [company.name for company in self._select(ids)]


# Nested collections are built with pattern comprehensions so that companies
# without joins still come back as a single row.
_COMPANY_QUERY = """
MATCH (c:Company)
WHERE ($ids IS NULL AND c.approved = true) OR ($ids IS NOT NULL AND c.id IN $ids)
RETURN c {.*} AS company,
    [(c)-[:SUBSIDIARY_OF]->(parent:Company) | parent.id][0] AS parentCompanyId,
    [(p:Person)-[r:BOARD_MEMBER]->(c) |
        {id: r.id, personId: p.id, companyId: c.id, title: r.title,
         startDate: r.startDate, endDate: r.endDate, person: p {.*}}] AS boardMembers,
    [(p:Person)-[r:INVESTED_IN]->(c) |
        {id: r.id, companyId: c.id, personId: p.id, amount: r.amount, round: r.round,
         date: r.date, role: r.role, person: p {.*}}] AS personInvestments,
    [(ic:Company)-[r:INVESTED_IN]->(c) |
        {id: r.id, companyId: c.id, investorCompanyId: ic.id, amount: r.amount,
         round: r.round, date: r.date, investorCompany: ic {.id, .name, .slug}}] AS companyInvestments,
    [(p:Person)-[r:FOUNDED]->(c) |
        {id: r.id, personId: p.id, companyId: c.id, role: r.role, person: p {.*}}] AS founderRelations,
    [(c)-[:OWNS]->(d:DataCenter) | {id: d.id, title: d.title, ownerCompanyId: c.id}] AS ownedDataCenters,
    [(c)-[r:USES]->(d:DataCenter) |
        {id: d.id, title: d.title, confidence: r.confidence,
         ownerCompanyId: [(o:Company)-[:OWNS]->(d) | o.id][0]}] AS usedDataCenters
ORDER BY c.name
"""

_COMPANY_NAMES_QUERY = """
MATCH (c:Company)
WHERE ($ids IS NULL AND c.approved = true) OR ($ids IS NOT NULL AND c.id IN $ids)
RETURN c.name AS name
"""


class Neo4jCompanyStore(CompanyDataSource):
    """Concrete implementation of CompanyDataSource that reads companies from Neo4j."""
    def __init__(self, settings: Optional[Settings] = None, driver=None):
        settings = settings or get_settings()
        self._database = settings.NEO4J_DATABASE
        if driver is not None:
            self._driver = driver
            return
        uri = settings.NEO4J_URI
        user = settings.NEO4J_USERNAME
        password = settings.NEO4J_PASSWORD
        if not all([uri, user, password]):
            raise ValueError("Neo4j credentials not found in environment or .env file.")
        self._driver = GraphDatabase.driver(uri, auth=(user, password))

    def _run(self, query: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            with self._driver.session(database=self._database) as session:
                return session.run(query, params).data()
        except (Neo4jError, DriverError) as e:
            logger.error(f"Company store query failed: {e}")
            raise DataAccessError(str(e)) from e

    @staticmethod
    def _to_record(row: Dict[str, Any]) -> Dict[str, Any]:
        record = dict(row['company'])
        record['parentCompanyId'] = row.get('parentCompanyId')
        record['boardMembers'] = row.get('boardMembers') or []
        record['investments'] = (row.get('personInvestments') or []) + (row.get('companyInvestments') or [])
        record['founderRelations'] = row.get('founderRelations') or []
        record['ownedDataCenters'] = row.get('ownedDataCenters') or []
        record['usedDataCenters'] = row.get('usedDataCenters') or []
        return record

    def get_companies(self, ids: Optional[List[str]] = None) -> List[CompanySnapshot]:
        rows = self._run(_COMPANY_QUERY, {"ids": list(ids) if ids is not None else None})
        companies = _validate_companies(self._to_record(row) for row in rows)
        if ids is None:
            return companies
        by_id = {company.id: company for company in companies}
        return [by_id[company_id] for company_id in dict.fromkeys(ids) if company_id in by_id]

    def get_company_names(self, ids: Optional[List[str]] = None) -> List[str]:
        rows = self._run(_COMPANY_NAMES_QUERY, {"ids": list(ids) if ids is not None else None})
        return [row['name'] for row in rows if row.get('name')]

    def close(self):
        self._driver.close()
