"""
CatalogClient - Collibra REST API Source

Thin blocking client over the Collibra REST 2.0 API plus the offset-based
pagination helper every listing goes through. One request is in flight at a
time; failures are raised as CatalogRequestError and never retried here.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

import requests

from ..domain.models import Asset, Community, Domain
from ..types import CatalogAuthError, CatalogNotFoundError, CatalogRequestError

if TYPE_CHECKING:
    from ..config.settings import Config

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000

# Default listing parameters used by the Collibra UI exports
SORTED_LISTING = {
    'sortField': 'NAME',
    'sortOrder': 'ASC',
    'excludeMeta': True,
}

QueryFn = Callable[[str, dict[str, Any]], dict[str, Any]]


def fetch_all_pages(
    query: QueryFn,
    endpoint: str,
    params: Optional[dict[str, Any]] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    items_key: str = "results"
) -> list[dict[str, Any]]:
    """
    Walk an offset-paginated listing until a short page is returned.

    Args:
        query: Callable issuing one request, ``query(endpoint, params) -> body``
        endpoint: API endpoint, e.g. ``/assets``
        params: Filter parameters; ``offset`` and ``limit`` are set by the walk
        page_size: Items requested per page
        items_key: Key of the item list in each response body

    Returns:
        All items in the order the service returned them

    Raises:
        ValueError: If page_size is not positive
        CatalogRequestError: Propagated from the first failing page
    """
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")

    all_items: list[dict[str, Any]] = []
    offset = 0

    while True:
        page_params = {**(params or {}), 'offset': offset, 'limit': page_size}
        body = query(endpoint, page_params) or {}
        items = body.get(items_key) or []
        all_items.extend(items)

        # A short page (including an empty one) is the last page
        if len(items) < page_size:
            break

        offset += page_size
        logger.info(f"  Fetched {len(all_items)} items from {endpoint}, continuing...")

    return all_items


class CatalogClient:
    """
    Collibra REST API client.

    Uses HTTP basic authentication on a shared requests.Session. The session
    credentials are the only state shared across export units and are never
    modified after construction.
    """

    def __init__(self, config: "Config", session: Optional[requests.Session] = None):
        """
        Initialize client from configuration.

        Args:
            config: Loaded configuration with credentials and API settings
            session: Optional pre-built session (tests, custom adapters)
        """
        self.base_url = config.collibra.base_url
        self.api_url = config.api.api_url
        self.timeout = config.api.timeout
        self.page_size = config.api.page_size

        self.session = session or requests.Session()
        self.session.auth = (config.collibra.username, config.collibra.password)
        self.session.verify = config.api.verify_ssl
        self.session.headers.update({'Accept': 'application/json'})
        self._username = config.collibra.username
        self._password = config.collibra.password

    def authenticate(self) -> None:
        """
        Open an authenticated session to check connectivity and credentials.

        Raises:
            CatalogAuthError: If the credentials are rejected or the instance is unreachable
        """
        endpoint = f"{self.base_url}/rest/2.0/auth/sessions"
        try:
            response = self.session.post(
                endpoint,
                json={'username': self._username, 'password': self._password},
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"Authentication failed: {e}")
            raise CatalogAuthError(endpoint, str(e), status) from e

        logger.info(f"Authenticated to {self.base_url} as {self._username}")

    def query(self, endpoint: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Issue one GET request against the REST API.

        Args:
            endpoint: Path below the API root, e.g. ``/communities``
            params: Query string parameters

        Returns:
            Decoded JSON response body

        Raises:
            CatalogRequestError: On network failure or non-2xx status
        """
        url = f"{self.api_url}{endpoint}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"API request failed: {endpoint}: {e}")
            if e.response is not None:
                logger.debug(f"Response body: {e.response.text[:500]}")
            raise CatalogRequestError(endpoint, str(e), status) from e
        except ValueError as e:
            logger.error(f"API response was not JSON: {endpoint}")
            raise CatalogRequestError(endpoint, f"invalid JSON response: {e}") from e

    def fetch_all(self, endpoint: str, params: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        """Fetch every page of a listing with the configured page size."""
        return fetch_all_pages(self.query, endpoint, params, page_size=self.page_size)

    # Listings

    def list_communities(self) -> list[Community]:
        """Fetch the complete flat community listing."""
        items = self.fetch_all('/communities', dict(SORTED_LISTING))
        return [Community.from_api(item) for item in items]

    def list_domains(self, community_id: str) -> list[Domain]:
        """Fetch domains directly owned by a community (not its sub-communities)."""
        params = {**SORTED_LISTING, 'communityId': community_id, 'includeSubCommunities': False}
        items = self.fetch_all('/domains', params)
        return [Domain.from_api(item, community_id=community_id) for item in items]

    def list_assets(self, domain_id: str) -> list[Asset]:
        """Fetch all assets of a domain."""
        params = {**SORTED_LISTING, 'domainId': domain_id}
        items = self.fetch_all('/assets', params)
        return [Asset.from_api(item, domain_id=domain_id) for item in items]

    def list_assets_by_community(self, community_id: str) -> list[Asset]:
        """Fetch all assets of a community, across its domains."""
        params = {**SORTED_LISTING, 'communityId': community_id}
        items = self.fetch_all('/assets', params)
        return [Asset.from_api(item) for item in items]

    # Per-asset sub-resources

    def get_asset(self, asset_id: str) -> Asset:
        return Asset.from_api(self.query(f'/assets/{asset_id}'))

    def get_attributes(self, asset_id: str) -> list[dict[str, Any]]:
        """Attributes come back in a single response."""
        body = self.query(f'/assets/{asset_id}/attributes')
        if isinstance(body, list):
            return body
        return body.get('results') or []

    def get_relations(self, asset_id: str) -> list[dict[str, Any]]:
        return self.fetch_all(f'/assets/{asset_id}/relations')

    def get_responsibilities(self, asset_id: str) -> list[dict[str, Any]]:
        return self.fetch_all(f'/assets/{asset_id}/responsibilities')

    # Name lookups

    def community_by_name(self, name: str) -> Community:
        """
        Resolve a community by exact, case-sensitive name.

        Raises:
            CatalogNotFoundError: If no community has exactly this name
        """
        body = self.query('/communities', {'name': name, 'nameMatchMode': 'EXACT', 'limit': 100})
        for item in body.get('results') or []:
            if item.get('name') == name:
                return Community.from_api(item)
        raise CatalogNotFoundError("community", name)

    def domain_by_name(self, name: str) -> Domain:
        """
        Resolve a domain by exact, case-sensitive name.

        Raises:
            CatalogNotFoundError: If no domain has exactly this name
        """
        body = self.query('/domains', {'name': name, 'nameMatchMode': 'EXACT', 'limit': 100})
        for item in body.get('results') or []:
            if item.get('name') == name:
                return Domain.from_api(item)
        raise CatalogNotFoundError("domain", name)
