"""
Result and error types for the Collibra export pipeline.

This module provides the per-unit export outcome records returned by the
batch orchestrator, and the exception hierarchy raised by the catalog client,
the hierarchy resolver and the payload parsers.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union


@dataclass(frozen=True)
class ExportSuccess:
    """Outcome of a unit whose export completed and was written by the sink."""
    name: str
    location: Optional[Path] = None

    @property
    def succeeded(self) -> bool:
        return True


@dataclass(frozen=True)
class ExportFailure:
    """Outcome of a unit whose export raised; carries the failure description."""
    name: str
    error: str

    @property
    def succeeded(self) -> bool:
        return False


ExportResult = Union[ExportSuccess, ExportFailure]


# Catalog exception hierarchy
class CatalogError(Exception):
    """Base exception for catalog traversal and export operations."""
    pass


class CatalogRequestError(CatalogError):
    """A remote catalog call failed (network error or non-2xx status)."""
    def __init__(self, endpoint: str, message: str, status_code: Optional[int] = None):
        self.endpoint = endpoint
        self.status_code = status_code
        status = f" [HTTP {status_code}]" if status_code is not None else ""
        super().__init__(f"Request to {endpoint} failed{status}: {message}")


class CatalogAuthError(CatalogRequestError):
    """Credentials were rejected by the catalog."""
    pass


class CatalogNotFoundError(CatalogError):
    """A name-based lookup matched nothing."""
    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"No {kind} named '{name}' (exact match)")


class HierarchyCycleError(CatalogError):
    """Community parent references do not form a forest."""
    def __init__(self, community_id: str, community_name: Optional[str] = None):
        self.community_id = community_id
        self.community_name = community_name
        label = f"'{community_name}' ({community_id})" if community_name else community_id
        super().__init__(
            f"Community {label} was reached twice while resolving the hierarchy; "
            f"parent references contain a cycle or a duplicate id"
        )


class MalformedPayloadError(CatalogError):
    """A catalog record is missing a field the export relies on."""
    def __init__(self, resource: str, field: str):
        self.resource = resource
        self.field = field
        super().__init__(f"{resource} record is missing required field '{field}'")
