"""Default configuration values - no magic numbers or tool names in the code.

All default values should be defined here, not hardcoded in the modules.
"""

from __future__ import annotations


# ================================================================
# Content Step Synthesis
# ================================================================

DEFAULT_CONTENT_TOOLS = ("create_note", "create_file", "create")
"""Tools that need generated text before they can run."""

DEFAULT_CONTENT_FIELDS = ("file_text", "content", "text")
"""Input fields of a content tool that get pointed at the generated content."""

DEFAULT_CONTENT_GENERATOR_TOOL = "generate_content"
"""Tool name of an (auto-inserted) content generation step."""

DEFAULT_CONTENT_OUTPUT_FIELD = "content"
"""Output field of a content generation step referenced by consumers."""

DEFAULT_AUTO_INSERT_CONTENT = True
"""Default: synthesize missing content generation steps."""


# ================================================================
# Step Identifiers
# ================================================================

STEP_ID_PREFIX = "step"
"""Steps are renumbered to step1, step2, ..."""

DEFAULT_PLAN_ID_PREFIX = "plan"
"""Prefix for generated plan ids."""


# ================================================================
# Execution Defaults
# ================================================================

DEFAULT_MAX_CONCURRENCY = 5
"""Default maximum concurrently executing steps within one layer."""

MAX_CONCURRENCY_LIMIT = 100
"""Upper bound accepted for max_concurrency."""


# ================================================================
# Rendering Defaults
# ================================================================

DEFAULT_DAG_TOOL_MAX_CHARS = 30
"""Tool names longer than this are truncated in the ASCII DAG."""


# ================================================================
# Logging Defaults
# ================================================================

DEFAULT_LOG_LEVEL = "WARNING"
"""Default log level for the command line."""

DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024
"""Rotate log files after 10 MB."""

DEFAULT_LOG_BACKUP_COUNT = 3
"""Number of rotated log files to keep."""
