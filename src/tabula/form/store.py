''' Form instance store.

    Two write operations with different contracts:

    - `create` always inserts a new instance.
    - `save` upserts the single instance of its save key
      (form definition, task, process/scope instance, scope type,
      process/scope definition). It is one conditional write
      (INSERT .. ON CONFLICT (save_key) DO UPDATE), so concurrent saves
      never produce duplicates; the last committed save wins.

    Created instances carry no save key and are never touched by `save`.
'''
from tabula.data import ID_GENR, UUID_GENF, serialize_blob, timestamp
from tabula.data.constant import NO_TENANT_ID
from tabula.error import NotFoundError, ValidationError
from tabula.identity import get_authenticated_user_id

from ._meta import logger
from .constant import (
    FORM_OUTCOME_KEY,
    FORM_VALUES_KEY,
    RESOURCE_FORM_DEFINITION,
    RESOURCE_FORM_INSTANCE,
    outcome_variable,
)
from .expression import ExpressionResolver
from .model import FormDefinition, FormInfo, FormInstance, FormInstanceInfo, SimpleFormModel
from .query import FormInstanceQuery
from .repository import RepositoryService

SAVE_KEY_FIELD = 'save_key'
SAVE_KEY_PREFIX = 'form-instance-save'


def save_key(form_definition_id, task_id=None, instance_id=None, scope_type=None, definition_id=None):
    seed = '|'.join(
        str(part) if part is not None else ''
        for part in (SAVE_KEY_PREFIX, form_definition_id, task_id, instance_id, scope_type, definition_id)
    )
    return str(UUID_GENF(seed))


def form_value_blob(form_model: SimpleFormModel, variables: dict, outcome=None) -> bytes:
    ''' Serialized values of the declared fields, plus the outcome '''
    variables = variables or {}
    values = {
        field.id: variables[field.id]
        for field in form_model.fields
        if field.id in variables
    }

    if outcome is None:
        outcome = variables.get(outcome_variable(form_model.key))

    data = {FORM_VALUES_KEY: values}
    if outcome is not None:
        data[FORM_OUTCOME_KEY] = outcome

    return serialize_blob(data)


class FormInstanceStore(object):
    def __init__(self, manager, repository: RepositoryService, expression_resolver: ExpressionResolver = None):
        self._manager = manager
        self._repository = repository
        self._expression_resolver = expression_resolver or ExpressionResolver()

    def create_query(self) -> FormInstanceQuery:
        return FormInstanceQuery(self._manager)

    async def _resolve_form_info(self, form_info) -> FormInfo:
        if form_info is None:
            raise ValidationError('F05.001', 'Form definition is required to submit a form instance.')

        definition_id = form_info.id if isinstance(form_info, FormInfo) else form_info
        try:
            definition = await self._repository.get_form_definition(definition_id)
        except NotFoundError:
            raise ValidationError('F05.002', f'Form definition could not be resolved: {definition_id}')

        if isinstance(form_info, FormInfo):
            return form_info

        return FormInfo.from_definition(definition)

    def _instance_data(self, form_info: FormInfo, variables, outcome, tenant_id, **scope):
        return {
            '_id': ID_GENR(),
            '_created': timestamp(),
            'form_definition_id': form_info.id,
            'tenant_id': tenant_id or form_info.tenant_id or NO_TENANT_ID,
            'submitted_by': get_authenticated_user_id(),
            'submitted_date': timestamp(),
            'form_value_bytes': form_value_blob(form_info.form_model, variables, outcome),
            **scope,
        }

    async def _insert(self, form_info, variables, outcome, tenant_id, **scope) -> FormInstance:
        async with self._manager.transaction('create_form_instance') as mgr:
            form_info = await self._resolve_form_info(form_info)
            data = self._instance_data(form_info, variables, outcome, tenant_id, **scope)
            await mgr.insert_data(RESOURCE_FORM_INSTANCE, data)
            instance = await mgr.fetch(RESOURCE_FORM_INSTANCE, data['_id'])

        logger.info('Created form instance [%s] of form [%s]', instance.id, form_info.key)
        return instance

    async def _upsert(self, form_info, variables, outcome, tenant_id, key_parts, **scope) -> FormInstance:
        async with self._manager.transaction('save_form_instance') as mgr:
            form_info = await self._resolve_form_info(form_info)
            key = save_key(form_info.id, *key_parts)
            data = self._instance_data(form_info, variables, outcome, tenant_id, **scope)
            data[SAVE_KEY_FIELD] = key
            await mgr.upsert_data(RESOURCE_FORM_INSTANCE, data, (SAVE_KEY_FIELD,))
            instance = await mgr.find_one(RESOURCE_FORM_INSTANCE, where={SAVE_KEY_FIELD: key})

        logger.info('Saved form instance [%s] of form [%s] (key: %s)', instance.id, form_info.key, key)
        return instance

    async def create(self, values, form_info, task_id=None, process_instance_id=None,
                     process_definition_id=None, tenant_id=None, outcome=None) -> FormInstance:
        return await self._insert(
            form_info, values, outcome, tenant_id,
            task_id=task_id,
            process_instance_id=process_instance_id,
            process_definition_id=process_definition_id,
        )

    async def create_with_scope(self, values, form_info, task_id=None, scope_id=None, scope_type=None,
                                scope_definition_id=None, tenant_id=None, outcome=None) -> FormInstance:
        return await self._insert(
            form_info, values, outcome, tenant_id,
            task_id=task_id,
            scope_id=scope_id,
            scope_type=scope_type,
            scope_definition_id=scope_definition_id,
        )

    async def save(self, values, form_info, task_id=None, process_instance_id=None,
                   process_definition_id=None, tenant_id=None, outcome=None) -> FormInstance:
        return await self._upsert(
            form_info, values, outcome, tenant_id,
            (task_id, process_instance_id, None, process_definition_id),
            task_id=task_id,
            process_instance_id=process_instance_id,
            process_definition_id=process_definition_id,
        )

    async def save_with_scope(self, values, form_info, task_id=None, scope_id=None, scope_type=None,
                              scope_definition_id=None, tenant_id=None, outcome=None) -> FormInstance:
        return await self._upsert(
            form_info, values, outcome, tenant_id,
            (task_id, scope_id, scope_type, scope_definition_id),
            task_id=task_id,
            scope_id=scope_id,
            scope_type=scope_type,
            scope_definition_id=scope_definition_id,
        )

    def render_form_model(self, form_model: SimpleFormModel, stored_values=None, variables=None):
        ''' Field values by precedence: stored value, resolved expression
            (only when variables are given), runtime variable, declared value. '''
        stored_values = stored_values or {}
        fields = []

        for field in form_model.fields:
            if field.id in stored_values:
                value = stored_values[field.id]
            elif variables is not None and field.is_expression:
                value = self._expression_resolver.resolve(field.value, variables)
            elif variables and field.id in variables:
                value = variables[field.id]
            else:
                value = field.value

            fields.append(field.set(value=value))

        return form_model.set(fields=tuple(fields))

    def _instance_info(self, instance: FormInstance, definition: FormDefinition, variables=None):
        form_info = FormInfo.from_definition(definition)
        form_value = instance.form_value()
        form_model = self.render_form_model(
            form_info.form_model, form_value.get(FORM_VALUES_KEY), variables
        )

        return FormInstanceInfo(
            **form_info.model_dump(exclude={'form_model', 'tenant_id'}),
            form_model=form_model,
            tenant_id=instance.tenant_id,
            form_instance_id=instance.id,
            task_id=instance.task_id,
            process_instance_id=instance.process_instance_id,
            process_definition_id=instance.process_definition_id,
            scope_id=instance.scope_id,
            scope_type=instance.scope_type,
            scope_definition_id=instance.scope_definition_id,
            submitted_by=instance.submitted_by,
            submitted_date=instance.submitted_date,
            selected_outcome=form_value.get(FORM_OUTCOME_KEY),
        )

    async def get_model(self, form_instance_id, variables=None) -> FormInstanceInfo:
        async with self._manager.transaction('get_form_instance_model') as mgr:
            instance = await mgr.find_one(RESOURCE_FORM_INSTANCE, identifier=form_instance_id)
            if instance is None:
                raise NotFoundError('F05.404', f'Form instance not found: {form_instance_id}')

            definition = await self._repository.get_form_definition(instance.form_definition_id)

        return self._instance_info(instance, definition, variables)

    async def _latest_instance_by_key(self, form_key, tenant_id, fallback, variables, **scope):
        async with self._manager.transaction('get_form_instance_model_by_key') as mgr:
            definition = await self._repository.find_latest_definition(form_key, tenant_id, fallback)
            versions = await mgr.query(
                RESOURCE_FORM_DEFINITION,
                where={'key': form_key, 'tenant_id': definition.tenant_id},
                limit=0,
            )
            definitions = {d.id: d for d in versions}

            where = {'form_definition_id.in': tuple(definitions)}
            where.update({k: v for k, v in scope.items() if v is not None})
            instances = await mgr.query(
                RESOURCE_FORM_INSTANCE,
                where=where,
                sort=('submitted_date:desc', '_created:desc', '_id:desc'),
                limit=1,
            )

        if not instances:
            raise NotFoundError('F05.405', f'No form instance of form [{form_key}] matches: {scope}')

        instance = instances[0]
        return self._instance_info(instance, definitions[instance.form_definition_id], variables)

    async def get_model_by_key(self, form_key, task_id=None, process_instance_id=None, variables=None,
                               tenant_id=None, fallback=False) -> FormInstanceInfo:
        return await self._latest_instance_by_key(
            form_key, tenant_id, fallback, variables,
            task_id=task_id,
            process_instance_id=process_instance_id,
        )

    async def get_model_by_key_and_scope(self, form_key, scope_id=None, scope_type=None, variables=None,
                                         tenant_id=None, fallback=False) -> FormInstanceInfo:
        return await self._latest_instance_by_key(
            form_key, tenant_id, fallback, variables,
            scope_id=scope_id,
            scope_type=scope_type,
        )

    async def _remove(self, trace_msg, **query) -> int:
        async with self._manager.transaction(trace_msg) as mgr:
            removed = await mgr.remove_data(RESOURCE_FORM_INSTANCE, **query)

        logger.info('[%s] removed %d form instance(s): %s', trace_msg, removed, query)
        return removed

    async def delete_instance(self, form_instance_id) -> int:
        return await self._remove('delete_form_instance', identifier=form_instance_id)

    async def _remove_scoped(self, trace_msg, field, value) -> int:
        # A missing scope matches nothing, it must not turn into an IS NULL filter
        if not value:
            logger.warning('[%s] no %s given, nothing removed', trace_msg, field)
            return 0

        return await self._remove(trace_msg, where={field: value})

    async def delete_by_form_definition(self, form_definition_id) -> int:
        return await self._remove_scoped('delete_by_form_definition', 'form_definition_id', form_definition_id)

    async def delete_by_process_definition(self, process_definition_id) -> int:
        return await self._remove_scoped('delete_by_process_definition', 'process_definition_id', process_definition_id)

    async def delete_by_scope_definition(self, scope_definition_id) -> int:
        return await self._remove_scoped('delete_by_scope_definition', 'scope_definition_id', scope_definition_id)
