"""
Project-wide constants for resilient JSON decoding
"""  # noqa: D200, D212, D415

# ==============================================================================
# Input Bounds
# ==============================================================================

# Repair and recovery stages are skipped above this many characters
MAX_REPAIR_INPUT_SIZE = 1_000_000

# Characters of the raw response kept in debug log previews
LOG_PREVIEW_LENGTH = 200

# ==============================================================================
# Structural Characters
# ==============================================================================

OPENERS = "{["
CLOSERS = "}]"
CLOSER_FOR = {"{": "}", "[": "]"}
OPENER_FOR = {"}": "{", "]": "["}

BYTE_ORDER_MARK = "\ufeff"

# ==============================================================================
# Environment
# ==============================================================================

ENV_PREFIX = "RESILIENT_JSON_"
TELEMETRY_ENV_VAR = "RESILIENT_JSON_TELEMETRY"
DEFAULT_FALLBACK_LOG_LEVEL = "WARNING"
