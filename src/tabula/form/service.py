from .model import FormInfo
from .query import FormInstanceQuery
from .repository import RepositoryService
from .store import FormInstanceStore
from .variables import extract


class FormService(object):
    ''' Submission facing API: variable extraction, instance writes and
        rendering of form models against runtime variables. '''

    def __init__(self, repository: RepositoryService, store: FormInstanceStore):
        self._repository = repository
        self._store = store

    def get_variables_from_form_submission(self, form_info: FormInfo, values: dict, outcome=None) -> dict:
        return extract(form_info.form_model, values, outcome)

    async def create_form_instance(self, variables, form_info, task_id=None, process_instance_id=None,
                                   process_definition_id=None, tenant_id=None, outcome=None):
        return await self._store.create(
            variables, form_info, task_id, process_instance_id, process_definition_id, tenant_id, outcome
        )

    async def create_form_instance_with_scope_id(self, variables, form_info, task_id=None, scope_id=None,
                                                 scope_type=None, scope_definition_id=None, tenant_id=None,
                                                 outcome=None):
        return await self._store.create_with_scope(
            variables, form_info, task_id, scope_id, scope_type, scope_definition_id, tenant_id, outcome
        )

    async def save_form_instance(self, variables, form_info, task_id=None, process_instance_id=None,
                                 process_definition_id=None, tenant_id=None, outcome=None):
        return await self._store.save(
            variables, form_info, task_id, process_instance_id, process_definition_id, tenant_id, outcome
        )

    async def save_form_instance_with_scope_id(self, variables, form_info, task_id=None, scope_id=None,
                                               scope_type=None, scope_definition_id=None, tenant_id=None,
                                               outcome=None):
        return await self._store.save_with_scope(
            variables, form_info, task_id, scope_id, scope_type, scope_definition_id, tenant_id, outcome
        )

    async def get_form_instance_model_by_id(self, form_instance_id, variables=None):
        return await self._store.get_model(form_instance_id, variables)

    async def get_form_instance_model_by_key(self, form_key, task_id=None, process_instance_id=None,
                                             variables=None, tenant_id=None, fallback=False):
        return await self._store.get_model_by_key(
            form_key, task_id, process_instance_id, variables, tenant_id, fallback
        )

    async def get_form_instance_model_by_key_and_scope_id(self, form_key, scope_id=None, scope_type=None,
                                                          variables=None, tenant_id=None, fallback=False):
        return await self._store.get_model_by_key_and_scope(
            form_key, scope_id, scope_type, variables, tenant_id, fallback
        )

    async def get_form_model_with_variables_by_id(self, form_definition_id, task_id=None, variables=None) -> FormInfo:
        ''' Definition with its field values rendered against the runtime variables '''
        form_info = await self._repository.get_form_model_by_id(form_definition_id)
        form_model = self._store.render_form_model(form_info.form_model, None, variables)
        return form_info.set(form_model=form_model)

    async def get_form_model_with_variables_by_key(self, form_key, task_id=None, variables=None,
                                                   tenant_id=None, fallback=False) -> FormInfo:
        form_info = await self._repository.get_form_model_by_key(form_key, tenant_id, fallback)
        form_model = self._store.render_form_model(form_info.form_model, None, variables)
        return form_info.set(form_model=form_model)

    def create_form_instance_query(self) -> FormInstanceQuery:
        return self._store.create_query()

    async def delete_form_instance(self, form_instance_id):
        return await self._store.delete_instance(form_instance_id)

    async def delete_form_instances_by_form_definition(self, form_definition_id):
        return await self._store.delete_by_form_definition(form_definition_id)

    async def delete_form_instances_by_process_definition(self, process_definition_id):
        return await self._store.delete_by_process_definition(process_definition_id)

    async def delete_form_instances_by_scope_definition(self, scope_definition_id):
        return await self._store.delete_by_scope_definition(scope_definition_id)
