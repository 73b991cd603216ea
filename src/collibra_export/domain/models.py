"""
Catalog Domain Models

Pydantic models for the catalog snapshot read during an export run.
All models are immutable: the export never writes back to the catalog.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..types import MalformedPayloadError
from .enums import ExportFormat, RelationDirection


def _require(payload: dict[str, Any], field: str, resource: str) -> Any:
    value = payload.get(field)
    if value is None or value == "":
        raise MalformedPayloadError(resource, field)
    return value


def _ref(payload: dict[str, Any], key: str, attr: str = "id") -> Optional[str]:
    """Read ``payload[key][attr]`` from a nested resource reference."""
    ref = payload.get(key)
    if isinstance(ref, dict):
        return ref.get(attr)
    return None


class Community(BaseModel):
    """Organizational grouping; may be nested under a parent community."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Community UUID")
    name: str = Field(..., description="Community name")
    description: Optional[str] = Field(None, description="Free-text description")
    parent_id: Optional[str] = Field(None, description="Parent community UUID, absent for roots")

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Community":
        return cls(
            id=_require(payload, "id", "Community"),
            name=_require(payload, "name", "Community"),
            description=payload.get("description"),
            parent_id=_ref(payload, "parent"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "parentId": self.parent_id,
        }


class Domain(BaseModel):
    """Named grouping of assets owned by exactly one community."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Domain UUID")
    name: str = Field(..., description="Domain name")
    community_id: Optional[str] = Field(None, description="Owning community UUID")
    description: Optional[str] = Field(None, description="Free-text description")
    type_name: Optional[str] = Field(None, description="Domain type, e.g. Glossary")

    @classmethod
    def from_api(cls, payload: dict[str, Any], community_id: Optional[str] = None) -> "Domain":
        return cls(
            id=_require(payload, "id", "Domain"),
            name=_require(payload, "name", "Domain"),
            community_id=_ref(payload, "community") or community_id,
            description=payload.get("description"),
            type_name=_ref(payload, "type", "name"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "communityId": self.community_id,
            "description": self.description,
            "type": self.type_name,
        }


class Asset(BaseModel):
    """Cataloged data object."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Asset UUID")
    name: str = Field(..., description="Asset name")
    display_name: Optional[str] = Field(None, description="Display name if different from name")
    domain_id: Optional[str] = Field(None, description="Owning domain UUID")
    type_name: Optional[str] = Field(None, description="Asset type, e.g. Business Term")
    status: Optional[str] = Field(None, description="Workflow status, e.g. Accepted")

    @classmethod
    def from_api(cls, payload: dict[str, Any], domain_id: Optional[str] = None) -> "Asset":
        return cls(
            id=_require(payload, "id", "Asset"),
            name=_require(payload, "name", "Asset"),
            display_name=payload.get("displayName"),
            domain_id=_ref(payload, "domain") or domain_id,
            type_name=_ref(payload, "type", "name"),
            status=_ref(payload, "status", "name"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "displayName": self.display_name,
            "domainId": self.domain_id,
            "type": self.type_name,
            "status": self.status,
        }


class Attribute(BaseModel):
    """Typed key/value pair attached to an asset."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = Field(None, description="Attribute type name (the key)")
    value: Any = Field(None, description="Attribute value as returned by the catalog")
    kind: Optional[str] = Field(None, description="Value kind, e.g. StringAttribute")

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Attribute":
        return cls(
            id=_require(payload, "id", "Attribute"),
            name=_ref(payload, "type", "name"),
            value=payload.get("value"),
            kind=payload.get("discriminator") or payload.get("resourceType"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "value": self.value, "kind": self.kind}


class Relation(BaseModel):
    """Typed link between the exported asset and another asset."""
    model_config = ConfigDict(frozen=True)

    id: str
    direction: RelationDirection
    type_id: Optional[str] = None
    role: Optional[str] = Field(None, description="Role read from the source side")
    co_role: Optional[str] = Field(None, description="Role read from the target side")
    related_asset_id: Optional[str] = None
    related_asset_name: Optional[str] = None

    @classmethod
    def from_api(cls, payload: dict[str, Any], asset_id: str) -> "Relation":
        source_id = _ref(payload, "source")
        if source_id == asset_id:
            direction = RelationDirection.OUTGOING
            related = "target"
        else:
            direction = RelationDirection.INCOMING
            related = "source"
        return cls(
            id=_require(payload, "id", "Relation"),
            direction=direction,
            type_id=_ref(payload, "type"),
            role=_ref(payload, "type", "role"),
            co_role=_ref(payload, "type", "coRole"),
            related_asset_id=_ref(payload, related),
            related_asset_name=_ref(payload, related, "name"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "direction": self.direction.value,
            "typeId": self.type_id,
            "role": self.role,
            "coRole": self.co_role,
            "relatedAssetId": self.related_asset_id,
            "relatedAssetName": self.related_asset_name,
        }


class Responsibility(BaseModel):
    """Assignment of a role (steward, owner, ...) to a user or group."""
    model_config = ConfigDict(frozen=True)

    id: str
    role: Optional[str] = None
    assignee_id: Optional[str] = None
    assignee_type: Optional[str] = Field(None, description="User or UserGroup")

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Responsibility":
        return cls(
            id=_require(payload, "id", "Responsibility"),
            role=_ref(payload, "role", "name"),
            assignee_id=_ref(payload, "owner"),
            assignee_type=_ref(payload, "owner", "resourceType"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "assigneeId": self.assignee_id,
            "assigneeType": self.assignee_type,
        }


class ExportOptions(BaseModel):
    """
    Which parts of the hierarchy to export and where to write it.

    The attribute/relation/responsibility flags only take effect when
    ``include_assets`` is set; read the ``fetch_*`` properties rather than
    the raw flags.
    """
    model_config = ConfigDict(frozen=True)

    include_assets: bool = Field(default=True, description="Export assets of every domain")
    include_attributes: bool = Field(default=True, description="Fetch asset attributes")
    include_relations: bool = Field(default=False, description="Fetch incoming and outgoing relations")
    include_responsibilities: bool = Field(default=False, description="Fetch stewards, owners, etc.")
    output_dir: Path = Field(default=Path("./exports"), description="Directory for export files")
    format: ExportFormat = Field(default=ExportFormat.JSON, description="Output file format")

    @property
    def fetch_attributes(self) -> bool:
        return self.include_assets and self.include_attributes

    @property
    def fetch_relations(self) -> bool:
        return self.include_assets and self.include_relations

    @property
    def fetch_responsibilities(self) -> bool:
        return self.include_assets and self.include_responsibilities

    def to_dict(self) -> dict[str, Any]:
        return {
            "includeAssets": self.include_assets,
            "includeAttributes": self.fetch_attributes,
            "includeRelations": self.fetch_relations,
            "includeResponsibilities": self.fetch_responsibilities,
            "format": self.format.value,
        }


class EnrichedAsset(BaseModel):
    """
    An asset merged with its requested facets.

    A facet that was not requested is ``None`` and is left out of
    ``to_dict()``; a requested facet with no data is an empty list.
    """
    model_config = ConfigDict(frozen=True)

    asset: Asset
    attributes: Optional[list[Attribute]] = None
    relations: Optional[list[Relation]] = None
    responsibilities: Optional[list[Responsibility]] = None

    def to_dict(self) -> dict[str, Any]:
        record = self.asset.to_dict()
        if self.attributes is not None:
            record["attributes"] = [a.to_dict() for a in self.attributes]
        if self.relations is not None:
            record["relations"] = [r.to_dict() for r in self.relations]
        if self.responsibilities is not None:
            record["responsibilities"] = [r.to_dict() for r in self.responsibilities]
        return record


class DomainExport(BaseModel):
    """A domain and, when assets were requested, its enriched assets."""
    model_config = ConfigDict(frozen=True)

    domain: Domain
    assets: Optional[list[EnrichedAsset]] = None

    @property
    def name(self) -> str:
        return self.domain.name

    @property
    def asset_count(self) -> int:
        return len(self.assets) if self.assets else 0

    def to_dict(self) -> dict[str, Any]:
        record = self.domain.to_dict()
        if self.assets is not None:
            record["assets"] = [a.to_dict() for a in self.assets]
        return record


class CommunityExport(BaseModel):
    """Everything collected for one top-level export unit."""
    model_config = ConfigDict(frozen=True)

    community: Community
    subcommunities: list[Community] = Field(default_factory=list)
    domains: list[DomainExport] = Field(default_factory=list)
    options: ExportOptions = Field(default_factory=ExportOptions)
    exported_at: datetime = Field(default_factory=datetime.now)

    @property
    def name(self) -> str:
        return self.community.name

    @property
    def asset_count(self) -> int:
        return sum(d.asset_count for d in self.domains)

    def to_dict(self) -> dict[str, Any]:
        return {
            "community": self.community.to_dict(),
            "subcommunities": [c.to_dict() for c in self.subcommunities],
            "domains": [d.to_dict() for d in self.domains],
            "exportOptions": self.options.to_dict(),
            "exportedAt": self.exported_at.isoformat(),
        }
