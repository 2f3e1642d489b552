"""Shared constants for devpipe."""

import re

# Feature slug validation
SLUG_PATTERN = re.compile(r'^[a-z0-9]+(-[a-z0-9]+)*$')
MAX_SLUG_LEN = 64

# Artifact layout
DEFAULT_DOCS_DIR = "docs/features"
ARTIFACT_EXT = ".md"
CONFIG_FILENAME = "devpipe.env"

# Interview
OTHER_OPTION = "Other"
OTHER_LABEL = "Other (specify)"
