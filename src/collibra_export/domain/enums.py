"""
Pipeline Enumerations

Core enums for type safety and clear interface definitions across the pipeline.
"""

from enum import Enum


class ExportFormat(str, Enum):
    """Export format options for catalog output."""
    JSON = "json"           # Full nested hierarchy
    CSV = "csv"             # One row per asset, flattened

    @property
    def extension(self) -> str:
        return self.value


class RelationDirection(str, Enum):
    """Direction of a relation as seen from the exported asset."""
    OUTGOING = "outgoing"   # Asset is the relation source
    INCOMING = "incoming"   # Asset is the relation target
