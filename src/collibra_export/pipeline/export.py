"""
Exporter - Multi-format Catalog Export

Output sink for aggregated hierarchies. Writes nested JSON documents or
flattened CSV tables (one row per asset) into the configured output directory.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd

from ..domain.enums import ExportFormat, RelationDirection
from ..domain.models import CommunityExport, DomainExport, EnrichedAsset
from ..utils import clean_filename, ensure_directory

logger = logging.getLogger(__name__)

Hierarchy = Union[CommunityExport, DomainExport]


class Exporter:
    """
    Multi-format catalog exporter.

    Supports JSON (full nested hierarchy) and CSV (flattened asset table)
    with timestamped file names derived from the unit name.
    """

    def __init__(self, out_dir: Path = Path("./exports"), fmt: ExportFormat = ExportFormat.JSON):
        """
        Initialize exporter with output directory and format.

        Args:
            out_dir: Directory export files are written to (created on first write)
            fmt: Output format
        """
        self.out_dir = Path(out_dir)
        self.fmt = ExportFormat(fmt)

    def write(self, unit_name: str, hierarchy: Hierarchy) -> Path:
        """
        Serialize one unit's hierarchy to durable storage.

        Args:
            unit_name: Name of the exported community or domain
            hierarchy: Aggregated hierarchy for the unit

        Returns:
            Path to the created file
        """
        ensure_directory(self.out_dir)
        output_path = _unique_path(self.out_dir / generate_export_filename(unit_name, self.fmt))

        if self.fmt == ExportFormat.JSON:
            self._export_to_json(hierarchy, output_path)
        elif self.fmt == ExportFormat.CSV:
            self._export_to_csv(hierarchy, output_path)
        else:
            raise ValueError(f"Unsupported export format: {self.fmt}")

        logger.info(f"Successfully exported '{unit_name}' to {output_path} ({self.fmt.value})")
        return output_path

    def _export_to_json(self, hierarchy: Hierarchy, output_path: Path) -> None:
        """Write the nested hierarchy with a metadata block."""
        document = hierarchy.to_dict()
        document["metadata"] = {
            "generated": datetime.now().isoformat(),
            "source": "collibra-export",
            "unit": hierarchy.name,
            "domain_count": len(hierarchy.domains) if isinstance(hierarchy, CommunityExport) else 1,
            "asset_count": hierarchy.asset_count,
        }

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, ensure_ascii=False, default=str)

        if not self._validate_json_file(output_path):
            raise ValueError(f"Generated JSON file is invalid: {output_path}")

    def _export_to_csv(self, hierarchy: Hierarchy, output_path: Path) -> None:
        """Write one row per asset, or one row per domain when assets were not exported."""
        df = hierarchy_to_dataframe(hierarchy)
        df.to_csv(output_path, index=False, encoding="utf-8")
        logger.debug(f"CSV export: {len(df)} rows, {len(df.columns)} columns")

    def _validate_json_file(self, filepath: Path) -> bool:
        """Validate that the exported file parses and has the expected root keys."""
        try:
            with open(filepath, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"JSON validation failed: {e}")
            return False

        if not isinstance(data, dict):
            logger.error("Invalid export: root must be an object")
            return False

        if "metadata" not in data:
            logger.error("Invalid export: missing 'metadata' block")
            return False

        return True


def _unique_path(path: Path) -> Path:
    """Append _2, _3, ... to the stem until the path does not exist yet."""
    candidate = path
    counter = 2
    while candidate.exists():
        candidate = path.with_name(f"{path.stem}_{counter}{path.suffix}")
        counter += 1
    return candidate


def _asset_row(enriched: EnrichedAsset) -> dict[str, Any]:
    asset = enriched.asset
    row: dict[str, Any] = {
        "asset_id": asset.id,
        "asset_name": asset.name,
        "asset_type": asset.type_name,
        "asset_status": asset.status,
    }

    if enriched.attributes is not None:
        values: dict[str, list[str]] = {}
        for attribute in enriched.attributes:
            key = f"attr:{attribute.name or attribute.kind or 'unknown'}"
            values.setdefault(key, []).append("" if attribute.value is None else str(attribute.value))
        row.update({key: "; ".join(v) for key, v in values.items()})

    if enriched.relations is not None:
        row["relations_outgoing"] = sum(1 for r in enriched.relations if r.direction == RelationDirection.OUTGOING)
        row["relations_incoming"] = sum(1 for r in enriched.relations if r.direction == RelationDirection.INCOMING)

    if enriched.responsibilities is not None:
        row["responsibilities"] = "; ".join(
            f"{r.role}: {r.assignee_id}" for r in enriched.responsibilities
        )

    return row


def hierarchy_to_dataframe(hierarchy: Hierarchy) -> pd.DataFrame:
    """
    Flatten a hierarchy into a table.

    Community and domain columns are repeated on every asset row. Domains
    exported without assets produce a single domain-level row.
    """
    if isinstance(hierarchy, CommunityExport):
        names = {c.id: c.name for c in [hierarchy.community, *hierarchy.subcommunities]}
        domains = hierarchy.domains
    else:
        names = {}
        domains = [hierarchy]

    rows = []
    for domain_export in domains:
        domain = domain_export.domain
        base = {
            "community_id": domain.community_id,
            "community_name": names.get(domain.community_id),
            "domain_id": domain.id,
            "domain_name": domain.name,
        }
        if not domain_export.assets:
            rows.append(base)
            continue
        for enriched in domain_export.assets:
            rows.append({**base, **_asset_row(enriched)})

    columns: Optional[list[str]] = None
    if not rows:
        columns = ["community_id", "community_name", "domain_id", "domain_name"]
    return pd.DataFrame(rows, columns=columns)


def generate_export_filename(unit_name: str, export_format: ExportFormat = ExportFormat.JSON,
                             timestamp: Optional[datetime] = None) -> str:
    """
    Generate a timestamped export filename for a unit.

    Args:
        unit_name: Community or domain name
        export_format: Output format, determines the extension
        timestamp: Override for the timestamp (defaults to now)

    Returns:
        Filename such as ``Finance_20250101_120000.json``
    """
    stamp = (timestamp or datetime.now()).strftime("%Y%m%d_%H%M%S")
    base = clean_filename(unit_name.replace(" ", "_")) or "export"
    filename = f"{base}_{stamp}.{ExportFormat(export_format).extension}"
    logger.debug(f"Generated export filename: {filename}")
    return filename
