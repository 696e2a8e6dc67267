from tabula.tenant import TenantConfiguration, TenantResolver

from ._meta import logger
from .expression import ExpressionResolver
from .repository import RepositoryService
from .schema import FormDataManager, FormMemoryDataManager
from .service import FormService
from .store import FormInstanceStore


class FormEngine(object):
    ''' Wires the form services around one data access manager.

        >>> engine = FormEngine(dsn='sqlite+aiosqlite:///forms.sqlite')
        >>> await engine.create_schema()
        >>> form_info = await engine.repository_service.get_form_model_by_key('form1')
    '''

    def __init__(self, manager=None, tenant_configuration=None, expression_resolver=None, **manager_config):
        self.manager = manager or FormDataManager(**manager_config)
        self.tenant_configuration = tenant_configuration or TenantConfiguration()
        self.tenant_resolver = TenantResolver(self.tenant_configuration)
        self.expression_resolver = expression_resolver or ExpressionResolver()

        self.repository_service = RepositoryService(self.manager, self.tenant_resolver)
        self.form_instance_store = FormInstanceStore(
            self.manager, self.repository_service, self.expression_resolver
        )
        self.form_service = FormService(self.repository_service, self.form_instance_store)
        logger.debug('Form engine ready [%s]', self.manager.connector.__class__.__name__)

    @classmethod
    def in_memory(cls, **kwargs):
        return cls(manager=FormMemoryDataManager(), **kwargs)

    async def create_schema(self):
        await self.manager.connector.create_schema()

    async def drop_schema(self):
        await self.manager.connector.drop_schema()

    async def dispose(self):
        await self.manager.dispose()
