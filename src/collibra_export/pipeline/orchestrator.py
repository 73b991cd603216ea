"""
ExportOrchestrator - Batch export across communities

Drives Community -> sub-communities -> domains -> assets -> facets for each
export unit, one unit at a time, and writes each unit through the output sink.
In a batch, a failing unit is recorded and the next unit still runs.
"""

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..domain.models import Community, CommunityExport, Domain, DomainExport, ExportOptions
from ..types import CatalogNotFoundError, ExportFailure, ExportResult, ExportSuccess
from ..utils import timer
from .aggregate import AssetAggregator
from .export import Exporter
from .hierarchy import find_community_by_name, resolve_descendants

if TYPE_CHECKING:
    from .source import CatalogClient

logger = logging.getLogger(__name__)


class ExportOrchestrator:
    """
    Sequential export of one or many units.

    Each unit builds its own community, domain and asset lists; nothing but
    the client's credentials is shared between units.
    """

    def __init__(
        self,
        client: "CatalogClient",
        sink: Optional[Exporter] = None,
        aggregator: Optional[AssetAggregator] = None
    ):
        """
        Args:
            client: Catalog client used for every remote call
            sink: Output sink; when None an Exporter is built from each call's options
            aggregator: Asset aggregator; defaults to one bound to ``client``
        """
        self.client = client
        self.sink = sink
        self.aggregator = aggregator or AssetAggregator(client)

    def _sink_for(self, options: ExportOptions) -> Exporter:
        if self.sink is not None:
            return self.sink
        return Exporter(out_dir=options.output_dir, fmt=options.format)

    # Traversal

    def collect_domain(self, domain: Domain, options: ExportOptions) -> DomainExport:
        """List a domain's assets and enrich each one, if assets were requested."""
        if not options.include_assets:
            return DomainExport(domain=domain)

        assets = self.client.list_assets(domain.id)
        logger.info(f"    Domain '{domain.name}': {len(assets)} assets")

        enriched = []
        for i, asset in enumerate(assets, start=1):
            enriched.append(self.aggregator.aggregate(asset, options))
            if i % 100 == 0:
                logger.info(f"      Enriched {i}/{len(assets)} assets")

        return DomainExport(domain=domain, assets=enriched)

    def collect(
        self,
        community: Community,
        options: ExportOptions,
        all_communities: Optional[Sequence[Community]] = None
    ) -> CommunityExport:
        """
        Aggregate the full hierarchy under one community.

        Args:
            community: Root of the export unit
            options: Facet selection
            all_communities: Flat community listing; fetched when not supplied

        Returns:
            CommunityExport with domains of the root first, then of each
            sub-community in discovery order
        """
        if all_communities is None:
            all_communities = self.client.list_communities()

        subcommunities = resolve_descendants(community.id, all_communities)
        logger.info(f"  Found {len(subcommunities)} sub-communities under '{community.name}'")

        domain_exports = []
        for owner in [community, *subcommunities]:
            domains = self.client.list_domains(owner.id)
            logger.info(f"  Community '{owner.name}': {len(domains)} domains")
            for domain in domains:
                domain_exports.append(self.collect_domain(domain, options))

        return CommunityExport(
            community=community,
            subcommunities=subcommunities,
            domains=domain_exports,
            options=options,
        )

    # Export entry points

    @timer
    def export_one(
        self,
        community: Community,
        options: ExportOptions,
        all_communities: Optional[Sequence[Community]] = None
    ) -> tuple[bool, Path]:
        """
        Export a single community. Failures propagate to the caller.

        Returns:
            ``(True, location)`` of the written file
        """
        logger.info(f"Exporting community: {community.name}")
        hierarchy = self.collect(community, options, all_communities)
        location = self._sink_for(options).write(community.name, hierarchy)
        logger.info(
            f"Exported '{community.name}': {len(hierarchy.domains)} domains, "
            f"{hierarchy.asset_count} assets -> {location}"
        )
        return True, location

    @timer
    def export_domain(self, domain: Domain, options: ExportOptions) -> tuple[bool, Path]:
        """Export a single domain and its assets. Failures propagate to the caller."""
        logger.info(f"Exporting domain: {domain.name}")
        hierarchy = self.collect_domain(domain, options)
        location = self._sink_for(options).write(domain.name, hierarchy)
        logger.info(f"Exported '{domain.name}': {hierarchy.asset_count} assets -> {location}")
        return True, location

    def _attempt(
        self,
        community: Community,
        options: ExportOptions,
        all_communities: Optional[Sequence[Community]] = None
    ) -> ExportResult:
        """Run one unit of a batch and convert its outcome into a result record."""
        try:
            _, location = self.export_one(community, options, all_communities)
        except Exception as e:
            logger.error(f"Failed to export community '{community.name}': {e}")
            logger.debug("Export failure details", exc_info=True)
            return ExportFailure(name=community.name, error=str(e) or type(e).__name__)
        return ExportSuccess(name=community.name, location=location)

    def export_all(
        self,
        communities: Sequence[Community],
        options: ExportOptions,
        all_communities: Optional[Sequence[Community]] = None
    ) -> list[ExportResult]:
        """
        Export several communities in input order, isolating failures per unit.

        Returns:
            One result per input community, in the same order
        """
        results = []
        for i, community in enumerate(communities, start=1):
            logger.info(f"[{i}/{len(communities)}] {community.name}")
            results.append(self._attempt(community, options, all_communities))

        _log_batch(results)
        return results

    def export_by_name(self, names: Sequence[str], options: ExportOptions) -> list[ExportResult]:
        """
        Resolve community names against one listing and export them.

        A lone name that matches nothing raises CatalogNotFoundError. In a
        batch, an unmatched name becomes a Failure result in its input
        position and the remaining names still run.
        """
        if not names:
            return []

        listing = self.client.list_communities()
        if len(names) == 1:
            community = find_community_by_name(names[0], listing)
            if community is None:
                raise CatalogNotFoundError("community", names[0])
            return self.run([community], options, listing)

        results: list[ExportResult] = []
        for i, name in enumerate(names, start=1):
            logger.info(f"[{i}/{len(names)}] {name}")
            community = find_community_by_name(name, listing)
            if community is None:
                missing = CatalogNotFoundError("community", name)
                logger.error(f"Failed to export community '{name}': {missing}")
                results.append(ExportFailure(name=name, error=str(missing)))
                continue
            results.append(self._attempt(community, options, listing))

        _log_batch(results)
        return results

    def run(
        self,
        communities: Sequence[Community],
        options: ExportOptions,
        all_communities: Optional[Sequence[Community]] = None
    ) -> list[ExportResult]:
        """
        Export the selection: a lone community propagates its failure,
        several communities are exported as an isolated batch.
        """
        if not communities:
            return []
        if len(communities) == 1:
            community = communities[0]
            _, location = self.export_one(community, options, all_communities)
            return [ExportSuccess(name=community.name, location=location)]
        return self.export_all(communities, options, all_communities)


def _log_batch(results: Sequence[ExportResult]) -> None:
    succeeded = sum(1 for r in results if r.succeeded)
    logger.info(f"Batch finished: {succeeded} succeeded, {len(results) - succeeded} failed")


def format_summary(results: Sequence[ExportResult]) -> list[str]:
    """Render the per-unit summary printed after a batch export."""
    lines = []
    for result in results:
        if result.succeeded:
            lines.append(f"  ✓ {result.name}")
        else:
            lines.append(f"  ✗ {result.name}")
            lines.append(f"    Error: {result.error}")
    return lines
