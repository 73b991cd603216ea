"""
Domain Models and Types

This module contains the catalog models and enumerations used throughout the pipeline.
These typed models are immutable snapshots of what was read from Collibra.

Models:
- Community, Domain, Asset: the catalog hierarchy
- Attribute, Relation, Responsibility: per-asset facets
- ExportOptions: which facets to fetch and where to write them
- EnrichedAsset, DomainExport, CommunityExport: aggregated export records

Enums:
- ExportFormat: Output format options (json, csv)
- RelationDirection: Relation direction seen from the exported asset
"""

from .enums import ExportFormat, RelationDirection
from .models import (
    Asset,
    Attribute,
    Community,
    CommunityExport,
    Domain,
    DomainExport,
    EnrichedAsset,
    ExportOptions,
    Relation,
    Responsibility,
)

__all__ = [
    "Community", "Domain", "Asset", "Attribute", "Relation", "Responsibility",
    "ExportOptions", "EnrichedAsset", "DomainExport", "CommunityExport",
    "ExportFormat", "RelationDirection"
]
