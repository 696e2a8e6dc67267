DEBUG = False

# Default page size of `EntityQuery.list_page`
QUERY_PAGE_LIMIT = 100
