"""Global constants for the persistent events package.

Key layout for persisted bindings::

    Gwilym_Event,bind,<event name>,<md5 of canonical form>
"""

# Persisted binding keys
KEY_NAMESPACE = "Gwilym_Event"
KEY_BIND_SEGMENT = "bind"
KEY_DELIMITER = ","

# Canonical form of a (type, method) binding, e.g. "pkg.mod:Type::method"
METHOD_SEPARATOR = "::"

# Instance-scoped event keys, e.g. "<scope token>#<event name>"
SCOPE_SEPARATOR = "#"

# Store backends
STORE_BACKEND_MEMORY = "memory"
STORE_BACKEND_REDIS = "redis"

# Glob metacharacters of fnmatch and Redis SCAN MATCH; kept out of event names
# and key prefixes so that load patterns match exactly one event
GLOB_CHARACTERS = "*?[]\\"
