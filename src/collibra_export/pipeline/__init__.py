"""
Collibra Export Pipeline Components

This module provides the traversal pipeline following the Source → Aggregate → Export pattern.

Components:
- source: CatalogClient and offset pagination over the Collibra REST API
- hierarchy: Sub-community resolution and exact-name lookups
- aggregate: AssetAggregator for attributes, relations and responsibilities
- orchestrator: ExportOrchestrator for single and batch exports
- export: Exporter for JSON and CSV output
"""

from .aggregate import AssetAggregator
from .export import Exporter
from .hierarchy import preview_hierarchy, resolve_descendants
from .orchestrator import ExportOrchestrator, format_summary
from .source import CatalogClient, fetch_all_pages

__all__ = [
    "CatalogClient", "fetch_all_pages", "resolve_descendants", "preview_hierarchy",
    "AssetAggregator", "ExportOrchestrator", "format_summary", "Exporter"
]
