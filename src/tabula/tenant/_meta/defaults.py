DEBUG = False

# Process-wide fallback to a default tenant when an explicit tenant has
# no matching resource. Only applies to lookups that ask for fallback.
TENANT_FALLBACK_TO_DEFAULT = False
TENANT_DEFAULT_VALUE = ""
