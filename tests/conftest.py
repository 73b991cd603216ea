from types import SimpleNamespace
from typing import Any, Optional

import pytest

from collibra_export.pipeline.source import CatalogClient


def community(cid: str, name: str, parent: Optional[str] = None, description: Optional[str] = None) -> dict:
    payload: dict[str, Any] = {"id": cid, "name": name, "resourceType": "Community"}
    if description:
        payload["description"] = description
    if parent:
        payload["parent"] = {"id": parent, "resourceType": "Community"}
    return payload


def domain(did: str, name: str, community_id: str) -> dict:
    return {
        "id": did,
        "name": name,
        "community": {"id": community_id, "resourceType": "Community"},
        "type": {"id": "dt-1", "name": "Glossary"},
    }


def asset(aid: str, name: str, domain_id: str, type_name: str = "Business Term") -> dict:
    return {
        "id": aid,
        "name": name,
        "domain": {"id": domain_id, "resourceType": "Domain"},
        "type": {"id": "at-1", "name": type_name},
        "status": {"id": "st-1", "name": "Accepted"},
    }


class FakeCatalogService:
    """
    In-memory stand-in for the REST API, honouring offset/limit.

    Name filters behave like a lenient server (case-insensitive substring),
    so callers must do their own exact matching.
    """

    def __init__(self):
        self.communities: list[dict] = []
        self.domains: list[dict] = []
        self.assets: list[dict] = []
        self.attributes: dict[str, list[dict]] = {}
        self.relations: dict[str, list[dict]] = {}
        self.responsibilities: dict[str, list[dict]] = {}
        self.failures: list[tuple[str, dict, Exception]] = []
        self.calls: list[tuple[str, dict]] = []

    def fail_on(self, endpoint: str, error: Exception, **match: Any) -> None:
        """Raise ``error`` for calls to ``endpoint`` whose params include ``match``."""
        self.failures.append((endpoint, match, error))

    def endpoints_called(self) -> list[str]:
        return [endpoint for endpoint, _ in self.calls]

    def _select(self, endpoint: str, params: dict) -> list[dict]:
        if endpoint == "/communities":
            items = self.communities
        elif endpoint == "/domains":
            items = self.domains
            if "communityId" in params:
                items = [d for d in items if d["community"]["id"] == params["communityId"]]
        elif endpoint == "/assets":
            items = self.assets
            if "domainId" in params:
                items = [a for a in items if a["domain"]["id"] == params["domainId"]]
            if "communityId" in params:
                owned = {d["id"] for d in self.domains if d["community"]["id"] == params["communityId"]}
                items = [a for a in items if a["domain"]["id"] in owned]
        else:
            _, _, asset_id, facet = endpoint.split("/")
            items = getattr(self, facet).get(asset_id, [])

        if "name" in params:
            needle = params["name"].lower()
            items = [i for i in items if needle in i["name"].lower()]
        return items

    def __call__(self, endpoint: str, params: Optional[dict] = None) -> dict:
        params = dict(params or {})
        self.calls.append((endpoint, params))
        for failing_endpoint, match, error in self.failures:
            if endpoint == failing_endpoint and all(params.get(k) == v for k, v in match.items()):
                raise error

        items = self._select(endpoint, params)
        offset = params.get("offset", 0)
        limit = params.get("limit")
        page = items[offset:offset + limit] if limit is not None else items[offset:]
        return {"total": len(items), "offset": offset, "limit": limit, "results": page}


def make_config(page_size: int = 2, verify_ssl: bool = True) -> SimpleNamespace:
    return SimpleNamespace(
        collibra=SimpleNamespace(
            base_url="https://acme.collibra.com",
            username="exporter",
            password="s3cret-pass",
        ),
        api=SimpleNamespace(
            api_url="https://acme.collibra.com/rest/2.0",
            verify_ssl=verify_ssl,
            timeout=5,
            page_size=page_size,
        ),
    )


@pytest.fixture
def service() -> FakeCatalogService:
    return FakeCatalogService()


@pytest.fixture
def catalog(service: FakeCatalogService) -> FakeCatalogService:
    """
    A small catalog:

        Finance (c1)
          Finance EMEA (c2)
            Finance UK (c4)
          Finance APAC (c3)
        Marketing (c5)
        HR (c6)
    """
    service.communities = [
        community("c1", "Finance", description="Group finance"),
        community("c2", "Finance EMEA", parent="c1"),
        community("c3", "Finance APAC", parent="c1"),
        community("c4", "Finance UK", parent="c2"),
        community("c5", "Marketing"),
        community("c6", "HR"),
    ]
    service.domains = [
        domain("d1", "Finance Glossary", "c1"),
        domain("d2", "EMEA Reports", "c2"),
        domain("d3", "UK Ledger", "c4"),
        domain("d5", "Campaigns", "c5"),
        domain("d6", "People", "c6"),
    ]
    service.assets = [
        asset("a1", "Revenue", "d1"),
        asset("a2", "Margin", "d1"),
        asset("a3", "Quarterly Report", "d2", "Report"),
        asset("a5", "Spring Launch", "d5"),
        asset("a6", "Headcount", "d6"),
    ]
    service.attributes = {
        "a1": [
            {"id": "at1", "type": {"id": "t1", "name": "Definition"}, "value": "Income from sales",
             "discriminator": "StringAttribute"},
        ],
    }
    service.relations = {
        "a1": [
            {"id": "r1", "source": {"id": "a1", "name": "Revenue"}, "target": {"id": "a2", "name": "Margin"},
             "type": {"id": "rt1", "role": "is used by", "coRole": "uses"}},
            {"id": "r2", "source": {"id": "a3", "name": "Quarterly Report"}, "target": {"id": "a1", "name": "Revenue"},
             "type": {"id": "rt2", "role": "reports", "coRole": "is reported in"}},
        ],
    }
    service.responsibilities = {
        "a1": [
            {"id": "resp1", "role": {"id": "role1", "name": "Steward"},
             "owner": {"id": "u1", "resourceType": "User"}},
        ],
    }
    return service


@pytest.fixture
def client(service: FakeCatalogService) -> CatalogClient:
    """CatalogClient whose transport is the in-memory service (page size 2)."""
    catalog_client = CatalogClient(make_config(page_size=2))
    catalog_client.query = service
    return catalog_client
