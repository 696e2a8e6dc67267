DEBUG = False

UUID5_NAMESPACE = 'a3c1f0d2-5b0e-4c4e-9a57-7d7b4f3f2e61'

BACKEND_QUERY_DEFAULT_LIMIT = 100

# Escape character appended to LIKE clauses. Must not be a wildcard.
LIKE_ESCAPE_CHAR = "|"

# Engine options for pooled backends (e.g. postgres). Keep empty for sqlite.
DB_CONFIG = {}
