from pathlib import Path

from tabula.data import ID_GENR, timestamp
from tabula.data.constant import NO_TENANT_ID
from tabula.error import NotFoundError, ValidationError
from tabula.tenant import TenantResolver

from ._meta import config, logger
from .constant import RESOURCE_DEPLOYMENT, RESOURCE_FORM_DEFINITION, RESOURCE_FORM_INSTANCE
from .model import Deployment, FormDefinition, FormInfo, parse_form_model
from .query import DeploymentQuery, FormDefinitionQuery


def read_form_resources(directory, pattern=config.FORM_RESOURCE_PATTERN):
    ''' Form model sources of a directory, keyed by file name '''
    return {
        path.name: path.read_text(encoding='utf-8')
        for path in sorted(Path(directory).glob(pattern))
    }


class RepositoryService(object):
    ''' Deployments and versioned form definitions '''

    def __init__(self, manager, tenant_resolver: TenantResolver):
        self._manager = manager
        self._tenant_resolver = tenant_resolver

    def create_deployment_query(self) -> DeploymentQuery:
        return DeploymentQuery(self._manager)

    def create_form_definition_query(self) -> FormDefinitionQuery:
        return FormDefinitionQuery(self._manager)

    async def deploy(self, name=None, forms=None, tenant_id=None, category=None) -> Deployment:
        ''' Create a deployment holding one definition per form model. Each
            definition gets the next version of its (key, tenant). '''
        if isinstance(forms, dict):
            resources = list(forms.items())
        else:
            resources = [(None, source) for source in (forms or ())]

        tenant_id = tenant_id or NO_TENANT_ID
        models = [(resource_name, parse_form_model(source)) for resource_name, source in resources]
        keys = [model.key for _, model in models]
        if len(set(keys)) != len(keys):
            raise ValidationError('F04.001', f'Duplicated form keys in deployment: {keys}')

        deployment_id = ID_GENR()
        async with self._manager.transaction('deploy') as mgr:
            await mgr.insert_data(RESOURCE_DEPLOYMENT, {
                '_id': deployment_id,
                '_created': timestamp(),
                'name': name,
                'category': category,
                'tenant_id': tenant_id,
            })

            for resource_name, model in models:
                latest = await self._latest_definition(model.key, tenant_id)
                version = latest.version + 1 if latest else 1
                await mgr.insert_data(RESOURCE_FORM_DEFINITION, {
                    '_id': ID_GENR(),
                    '_created': timestamp(),
                    'key': model.key,
                    'name': model.name,
                    'description': model.description,
                    'version': version,
                    'category': category,
                    'deployment_id': deployment_id,
                    'resource_name': resource_name,
                    'tenant_id': tenant_id,
                    'form_model': model.set(version=version).serialize(mode='json'),
                })
                logger.info('Deployed form [%s] version %d (tenant: %r)', model.key, version, tenant_id)

            return await mgr.fetch(RESOURCE_DEPLOYMENT, deployment_id)

    async def get_deployment(self, deployment_id) -> Deployment:
        async with self._manager.transaction('get_deployment') as mgr:
            deployment = await mgr.find_one(RESOURCE_DEPLOYMENT, identifier=deployment_id)

        if deployment is None:
            raise NotFoundError('F04.404', f'Deployment not found: {deployment_id}')

        return deployment

    async def delete_deployment(self, deployment_id, cascade=False):
        ''' Remove a deployment and its definitions. With `cascade`, the
            instances of those definitions are removed as well. '''
        async with self._manager.transaction('delete_deployment') as mgr:
            definitions = await mgr.query(
                RESOURCE_FORM_DEFINITION, where={'deployment_id': deployment_id}, limit=0
            )
            definition_ids = tuple(d.id for d in definitions)

            if cascade and definition_ids:
                removed = await mgr.remove_data(
                    RESOURCE_FORM_INSTANCE, where={'form_definition_id.in': definition_ids}
                )
                logger.info('Removed %d form instance(s) of deployment [%s]', removed, deployment_id)

            await mgr.remove_data(RESOURCE_FORM_DEFINITION, where={'deployment_id': deployment_id})
            return await mgr.remove_data(RESOURCE_DEPLOYMENT, identifier=deployment_id)

    async def _latest_definition(self, key, tenant_id):
        items = await self._manager.query(
            RESOURCE_FORM_DEFINITION,
            where={'key': key, 'tenant_id': tenant_id},
            sort='version:desc',
            limit=1,
        )
        return items[0] if items else None

    async def get_form_definition(self, definition_id) -> FormDefinition:
        async with self._manager.transaction('get_form_definition') as mgr:
            definition = await mgr.find_one(RESOURCE_FORM_DEFINITION, identifier=definition_id)

        if definition is None:
            raise NotFoundError('F04.405', f'Form definition not found: {definition_id}')

        return definition

    async def get_form_model_by_id(self, definition_id) -> FormInfo:
        return FormInfo.from_definition(await self.get_form_definition(definition_id))

    async def find_latest_definition(self, key, tenant_id=None, fallback=False) -> FormDefinition:
        ''' Latest version of a form definition, resolved for the tenant '''
        async def _lookup(tenant):
            return await self._latest_definition(key, tenant)

        async with self._manager.transaction('find_latest_definition'):
            return await self._tenant_resolver.resolve(
                _lookup, tenant_id, fallback, scope_type='form', scope_key=key
            )

    async def get_form_model_by_key(self, key, tenant_id=None, fallback=False) -> FormInfo:
        definition = await self.find_latest_definition(key, tenant_id, fallback)
        return FormInfo.from_definition(definition)
