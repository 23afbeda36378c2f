"""
Constants
Centralised storage for category keys, base priority weights, and git labels.
"""
SYNTAX_IMPORT_DECLARATION = "syntax-import-declaration"
DUPLICATE_IMPORTS = "duplicate-imports"
UNUSED_IMPORTS = "unused-imports"
MISSING_IMPORTS = "missing-imports"
TYPE_COMPATIBILITY = "type-compatibility"
EVENT_HANDLER_TYPES = "event-handler-types"
OTHER_PREFIX = "other-"

# Higher = scheduled first. Syntax errors block all further checking.
BASE_PRIORITY: dict[str, float] = {
    SYNTAX_IMPORT_DECLARATION: 10,
    DUPLICATE_IMPORTS:         9,
    MISSING_IMPORTS:           8,
    UNUSED_IMPORTS:            7,
    EVENT_HANDLER_TYPES:       6,
    TYPE_COMPATIBILITY:        5,
}
DEFAULT_BASE_PRIORITY = 1
FILE_BONUS_PER_FILE = 0.1
FILE_BONUS_CAP = 2.0

ARROW = "\u2192"
CHECKPOINT_PREFIX = "checkpoint:"
COMMIT_PREFIX = "fix:"
