"""
Consolidated Utilities

Helper functions shared by the CLI, the orchestrator and the exporter.

Sections:
- Logging and timing utilities
- Filesystem and path operations
- Configuration helpers
"""

import functools
import logging
import re
import sys
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import yaml

# =============================================================================
# Logging and Timing Utilities
# =============================================================================

def setup_logging(
    verbose: bool,
    run_name: Optional[str] = None,
    enable_file_logging: bool = False
) -> Optional[Path]:
    """
    Configure logging with optional timestamped file output.

    Args:
        verbose: Enable debug-level logging if True
        run_name: Name used for the log file (e.g. the command being run)
        enable_file_logging: Create a timestamped log file under ./logs when True

    Returns:
        Path of the log file, if one was created
    """
    level = logging.DEBUG if verbose else logging.INFO
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_file = None

    if enable_file_logging:
        logs_dir = ensure_directory(Path("logs"))
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = logs_dir / f"{run_name or 'export'}_{timestamp}.log"
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
        print(f"Logging to: {log_file}")

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        handlers=handlers,
        force=True
    )

    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return log_file


def timer(func: Callable) -> Callable:
    """Decorator to time function execution."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            return func(*args, **kwargs)
        finally:
            logging.info(f"{func.__name__} finished in {time.time() - start_time:.2f} seconds")
    return wrapper


# =============================================================================
# Filesystem and Path Operations
# =============================================================================

def ensure_directory(path: Path) -> Path:
    """
    Ensure directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure

    Returns:
        Path object for the directory
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def clean_filename(filename: str) -> str:
    """
    Clean filename for cross-platform compatibility.

    Args:
        filename: Original filename

    Returns:
        Cleaned filename safe for all platforms
    """
    cleaned = re.sub(r'[<>:"/\\|?*\x00-\x1f]', '_', filename)
    cleaned = re.sub(r'_+', '_', cleaned)
    return cleaned.strip('_. ')


# =============================================================================
# Configuration Helpers
# =============================================================================

def load_yaml_file(file_path: Path) -> dict[str, Any]:
    """
    Load YAML configuration file with error handling.

    Args:
        file_path: Path to YAML file

    Returns:
        Parsed YAML content as dictionary (empty for an empty file)

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If file is not valid YAML or not a mapping
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    try:
        with open(file_path, encoding='utf-8') as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {file_path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ValueError(f"Expected a mapping at the top of {file_path}")
    return content
