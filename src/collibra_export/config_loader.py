"""
Export profile loading for the Collibra export pipeline.

This module merges export options from:
- data/export_profile.yml (packaged defaults)
- an optional user-supplied YAML profile
- CLI overrides

and returns a single immutable ExportOptions object.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from .config.settings import ConfigurationError
from .domain.models import ExportOptions
from .utils import load_yaml_file

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = Path(__file__).parent / "data" / "export_profile.yml"

PROFILE_FIELDS = (
    "include_assets",
    "include_attributes",
    "include_relations",
    "include_responsibilities",
    "output_dir",
    "format",
)


def _profile_section(path: Path) -> dict[str, Any]:
    content = load_yaml_file(path)
    section = content.get("export", {}) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'export' section of {path} must be a mapping")

    unknown = set(section) - set(PROFILE_FIELDS)
    if unknown:
        logger.warning(f"Ignoring unknown export profile keys in {path}: {sorted(unknown)}")
    return {k: v for k, v in section.items() if k in PROFILE_FIELDS}


def load_export_options(profile_path: Optional[str] = None, **overrides: Any) -> ExportOptions:
    """
    Build ExportOptions from the default profile, a user profile and overrides.

    Args:
        profile_path: Optional YAML profile with an ``export:`` section
        **overrides: Field values from the CLI; ``None`` means "not given"

    Returns:
        Validated ExportOptions

    Raises:
        FileNotFoundError: If ``profile_path`` does not exist
        ConfigurationError: If the merged values are invalid
    """
    values = _profile_section(DEFAULT_PROFILE) if DEFAULT_PROFILE.exists() else {}

    if profile_path:
        values.update(_profile_section(Path(profile_path)))
        logger.info(f"Loaded export profile: {profile_path}")

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        options = ExportOptions(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid export options: {e}") from e

    if not options.include_assets and any(
        (options.include_attributes, options.include_relations, options.include_responsibilities)
    ):
        logger.debug("Assets excluded: attribute, relation and responsibility options are ignored")

    return options
