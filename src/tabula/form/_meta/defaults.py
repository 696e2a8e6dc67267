DEBUG = False

# Database of the form repository and instance store
DB_DSN = "sqlite+aiosqlite:////tmp/tabula_form.sqlite"

# Optional database schema (postgres) of the form tables
DB_SCHEMA = None

# Glob of form model files picked up by `tabula form deploy <dir>`
FORM_RESOURCE_PATTERN = "*.form"
