ITEM_ID_FIELD = "_id"
CREATED_FIELD = "_created"
UPDATED_FIELD = "_updated"
ETAG_FIELD = "_etag"

# Value stored in `tenant_id` columns for records that belong to no tenant
NO_TENANT_ID = ""
