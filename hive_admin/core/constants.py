"""Core constants: cache key prefixes and shared literal values."""

# Cache key prefixes (used as permission:<scope>:<user_id>)
CACHE_PREFIX_PERMISSION = "permission"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Scope component used in cache keys when the operation targets the central scope
CENTRAL_SCOPE_KEY = "central"

# Role/permission key format and limits
KEY_PATTERN = r"^[a-z0-9_.]+$"
KEY_MAX_LENGTH = 64
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 120
