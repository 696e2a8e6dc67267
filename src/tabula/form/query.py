from tabula.query import EntityQuery, query_filter, like_filter, tenant_filters

from .constant import RESOURCE_DEPLOYMENT, RESOURCE_FORM_DEFINITION, RESOURCE_FORM_INSTANCE


class FormDefinitionQuery(EntityQuery):
    __resource__ = RESOURCE_FORM_DEFINITION

    id = query_filter('_id')
    ids = query_filter('_id', 'in')
    key = query_filter('key')
    key_like = like_filter('key')
    name = query_filter('name')
    name_like = like_filter('name')
    category = query_filter('category')
    category_like = like_filter('category')
    deployment_id = query_filter('deployment_id')
    deployment_ids = query_filter('deployment_id', 'in')
    version = query_filter('version')
    tenant_id, tenant_id_like, without_tenant_id = tenant_filters()


class DeploymentQuery(EntityQuery):
    __resource__ = RESOURCE_DEPLOYMENT

    deployment_id = query_filter('_id')
    ids = query_filter('_id', 'in')
    name = query_filter('name')
    name_like = like_filter('name')
    category = query_filter('category')
    category_like = like_filter('category')
    tenant_id, tenant_id_like, without_tenant_id = tenant_filters()

    def __init__(self, manager):
        super().__init__(manager)
        self._definition_query = None

    def _definitions(self):
        if self._definition_query is None:
            self._definition_query = FormDefinitionQuery(self._manager)

        return self._definition_query

    def definition_key(self, key):
        self._definitions().key(key)
        return self

    def definition_key_like(self, raw):
        self._definitions().key_like(raw)
        return self

    async def _prepare(self):
        if self._definition_query is None:
            return []

        # Deployments linked to the matching definitions
        definitions = await self._definition_query.list()
        deployment_ids = tuple({d.deployment_id for d in definitions if d.deployment_id})
        if not deployment_ids:
            return None

        return [{'_id.in': deployment_ids}]


class FormInstanceQuery(EntityQuery):
    __resource__ = RESOURCE_FORM_INSTANCE

    id = query_filter('_id')
    ids = query_filter('_id', 'in')
    form_definition_id = query_filter('form_definition_id')
    task_id = query_filter('task_id')
    process_instance_id = query_filter('process_instance_id')
    process_definition_id = query_filter('process_definition_id')
    scope_id = query_filter('scope_id')
    scope_type = query_filter('scope_type')
    scope_definition_id = query_filter('scope_definition_id')
    submitted_by = query_filter('submitted_by')
    tenant_id, tenant_id_like, without_tenant_id = tenant_filters()
