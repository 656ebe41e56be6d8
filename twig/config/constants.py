"""Hard-coded configuration constants not meant to be user-configurable."""

STATE_DIR_NAME = ".twig"
OBJECTS_DIR_NAME = "objects"
STATE_DB_NAME = "twig.sqlite"
LOCAL_CONFIG_NAME = "config.json"

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
MIN_COMMIT_PREFIX_LENGTH = 4
FULL_COMMIT_ID_LENGTH = 40

CONFLICT_HEAD_MARKER = "<<<<<<< HEAD"
CONFLICT_SEPARATOR = "======="
CONFLICT_END_MARKER = ">>>>>>>"
