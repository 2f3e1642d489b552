"""
Configuration loader for devpipe.

Loads project settings from devpipe.env at the project root.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from . import envparse
from . import validate
from .constants import CONFIG_FILENAME, DEFAULT_DOCS_DIR

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class PipelineConfig:
    """Project-level configuration from devpipe.env"""
    root: Path
    docs_dir: Path  # Absolute; artifacts live directly under it
    base_branch: str  # Compared against for branch-scope review diffs
    git_timeout: int
    log_level: str


def load_config(root: Path) -> PipelineConfig:
    """Load devpipe.env from root and return PipelineConfig.

    A missing file yields defaults. A present file is validated against the
    config schema, so unknown keys and malformed values raise ValidationError.
    """
    root = Path(root)
    config_path = root / CONFIG_FILENAME

    if config_path.exists():
        env = envparse.load_env(config_path)
        validate.validate(env, "config", source=config_path)
    else:
        logger.debug(f"No {CONFIG_FILENAME} in {root}, using defaults")
        env = {}

    log_level = env.get("LOG_LEVEL", "WARNING").upper()
    if log_level not in VALID_LOG_LEVELS:
        logger.warning(f"Unknown LOG_LEVEL '{log_level}', defaulting to WARNING")
        log_level = "WARNING"

    docs_dir = Path(env.get("DOCS_DIR", DEFAULT_DOCS_DIR))
    if not docs_dir.is_absolute():
        docs_dir = root / docs_dir

    return PipelineConfig(
        root=root,
        docs_dir=docs_dir,
        base_branch=env.get("BASE_BRANCH", "main"),
        git_timeout=int(env.get("GIT_TIMEOUT", "30")),
        log_level=log_level,
    )
