"""
AssetAggregator - Per-asset facet enrichment

Combines an asset with the sub-resources that need their own round trips:
attributes, relations and responsibilities. Which facets are fetched is
decided solely by the ExportOptions passed in.
"""

import logging
from typing import TYPE_CHECKING

from ..domain.models import (
    Asset,
    Attribute,
    EnrichedAsset,
    ExportOptions,
    Relation,
    Responsibility,
)

if TYPE_CHECKING:
    from .source import CatalogClient

logger = logging.getLogger(__name__)


class AssetAggregator:
    """
    Builds EnrichedAsset records.

    Sub-fetches run in a fixed order (attributes, relations, responsibilities).
    The first failure propagates unchanged; no partially enriched asset is
    ever returned.
    """

    def __init__(self, client: "CatalogClient"):
        self.client = client

    def aggregate(self, asset: Asset, options: ExportOptions) -> EnrichedAsset:
        """
        Enrich one asset with the facets requested in ``options``.

        Args:
            asset: Base asset record
            options: Export options; only the ``fetch_*`` properties are consulted

        Returns:
            EnrichedAsset with requested facets as lists and the rest left as None
        """
        attributes = None
        relations = None
        responsibilities = None

        if options.fetch_attributes:
            attributes = [Attribute.from_api(item) for item in self.client.get_attributes(asset.id)]

        if options.fetch_relations:
            relations = [Relation.from_api(item, asset.id) for item in self.client.get_relations(asset.id)]

        if options.fetch_responsibilities:
            responsibilities = [
                Responsibility.from_api(item)
                for item in self.client.get_responsibilities(asset.id)
            ]

        logger.debug(
            f"Aggregated asset '{asset.name}': "
            f"attributes={len(attributes) if attributes is not None else '-'} "
            f"relations={len(relations) if relations is not None else '-'} "
            f"responsibilities={len(responsibilities) if responsibilities is not None else '-'}"
        )

        return EnrichedAsset(
            asset=asset,
            attributes=attributes,
            relations=relations,
            responsibilities=responsibilities,
        )
