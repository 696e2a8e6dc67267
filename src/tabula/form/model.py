import json

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import Field, ValidationError as ModelValidationError

from tabula.data import DataModel, deserialize_blob
from tabula.data.constant import NO_TENANT_ID
from tabula.error import ValidationError

from .constant import EXPRESSION_MARKER, FORM_OUTCOME_KEY, FORM_VALUES_KEY


class FieldType(str, Enum):
    TEXT = 'text'
    MULTI_LINE_TEXT = 'multi-line-text'
    PASSWORD = 'password'
    INTEGER = 'integer'
    DECIMAL = 'decimal'
    BOOLEAN = 'boolean'
    DATE = 'date'
    DROPDOWN = 'dropdown'
    RADIO_BUTTONS = 'radio-buttons'
    HYPERLINK = 'hyperlink'
    EXPRESSION = 'expression'


class FormField(DataModel):
    id: str
    name: Optional[str] = None
    type: FieldType = FieldType.TEXT
    value: Any = None
    required: bool = False
    readonly: bool = False
    placeholder: Optional[str] = None
    params: dict = Field(default_factory=dict)

    @property
    def is_expression(self) -> bool:
        if self.type == FieldType.EXPRESSION:
            return True

        return isinstance(self.value, str) and EXPRESSION_MARKER in self.value


class FormOutcome(DataModel):
    id: str
    name: Optional[str] = None


class SimpleFormModel(DataModel):
    ''' Parsed form model. The order of `fields` is the declared order. '''
    key: str
    name: Optional[str] = None
    description: Optional[str] = None
    version: int = 0
    fields: tuple[FormField, ...] = ()
    outcomes: tuple[FormOutcome, ...] = ()

    def get_field(self, field_id) -> Optional[FormField]:
        for field in self.fields:
            if field.id == field_id:
                return field

        return None


def parse_form_model(source) -> SimpleFormModel:
    ''' Parse a form model from its JSON text, bytes or a mapping. '''
    if isinstance(source, SimpleFormModel):
        return source

    try:
        if isinstance(source, (str, bytes, bytearray)):
            source = json.loads(source)

        return SimpleFormModel.model_validate(source)
    except (ValueError, ModelValidationError) as e:
        raise ValidationError('F01.001', f'Invalid form model: {e}')


class Deployment(DataModel):
    id: str = Field(alias='_id')
    name: Optional[str] = None
    category: Optional[str] = None
    tenant_id: str = NO_TENANT_ID
    created: Optional[datetime] = Field(None, alias='_created')


class FormDefinition(DataModel):
    id: str = Field(alias='_id')
    key: str
    name: Optional[str] = None
    description: Optional[str] = None
    version: int = 1
    category: Optional[str] = None
    deployment_id: Optional[str] = None
    resource_name: Optional[str] = None
    tenant_id: str = NO_TENANT_ID
    form_model: dict = Field(default_factory=dict)
    created: Optional[datetime] = Field(None, alias='_created')


class FormInstance(DataModel):
    id: str = Field(alias='_id')
    form_definition_id: str
    task_id: Optional[str] = None
    process_instance_id: Optional[str] = None
    process_definition_id: Optional[str] = None
    scope_id: Optional[str] = None
    scope_type: Optional[str] = None
    scope_definition_id: Optional[str] = None
    tenant_id: str = NO_TENANT_ID
    submitted_by: Optional[str] = None
    submitted_date: Optional[datetime] = None
    form_value_bytes: Optional[bytes] = None
    created: Optional[datetime] = Field(None, alias='_created')

    def form_value(self) -> dict:
        return deserialize_blob(self.form_value_bytes)

    @property
    def values(self) -> dict:
        return self.form_value().get(FORM_VALUES_KEY, {})

    @property
    def outcome(self):
        return self.form_value().get(FORM_OUTCOME_KEY)


class FormInfo(DataModel):
    ''' A resolved form definition together with its parsed model '''
    id: str
    key: str
    name: Optional[str] = None
    description: Optional[str] = None
    version: int = 1
    deployment_id: Optional[str] = None
    tenant_id: str = NO_TENANT_ID
    form_model: SimpleFormModel

    @classmethod
    def from_definition(cls, definition: FormDefinition, form_model=None):
        return cls(
            id=definition.id,
            key=definition.key,
            name=definition.name,
            description=definition.description,
            version=definition.version,
            deployment_id=definition.deployment_id,
            tenant_id=definition.tenant_id,
            form_model=form_model or parse_form_model(definition.form_model),
        )


class FormInstanceInfo(FormInfo):
    ''' A stored form instance rendered with its definition '''
    form_instance_id: str
    task_id: Optional[str] = None
    process_instance_id: Optional[str] = None
    process_definition_id: Optional[str] = None
    scope_id: Optional[str] = None
    scope_type: Optional[str] = None
    scope_definition_id: Optional[str] = None
    submitted_by: Optional[str] = None
    submitted_date: Optional[datetime] = None
    selected_outcome: Optional[str] = None
