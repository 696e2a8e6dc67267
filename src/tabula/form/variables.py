''' Variables of a form submission.

    Submitted values are projected onto the fields declared by the form
    model and coerced by the declared field type:

        >>> extract(form_model, {'input1': 'test', 'other': 1}, 'default')
        {'input1': 'test', 'form_form1_outcome': 'default'}

    Expression-valued fields are rendered later and never extracted.
'''
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from tabula.error import ValidationError
from tabula.helper import parse_iso_date

from ._meta import logger
from .constant import outcome_variable
from .model import FieldType, SimpleFormModel

BOOLEAN_TRUE = ('true', 'yes', 'on', '1')
BOOLEAN_FALSE = ('false', 'no', 'off', '0', '')


def __closure__():
    REGISTRY = {}

    def _register(*field_types):
        def _decorator(coercer):
            for field_type in field_types:
                if field_type in REGISTRY:
                    raise ValueError('Coercer already registered [%s]' % field_type)

                REGISTRY[field_type] = coercer
            return coercer
        return _decorator

    def _get(field_type):
        try:
            return REGISTRY[field_type]
        except KeyError:
            raise ValueError('Coercer has not been registered [%s]' % field_type)

    return _register, _get


register_coercer, get_coercer = __closure__()


@register_coercer(
    FieldType.TEXT,
    FieldType.MULTI_LINE_TEXT,
    FieldType.PASSWORD,
    FieldType.DROPDOWN,
    FieldType.RADIO_BUTTONS,
    FieldType.HYPERLINK,
)
def coerce_text(value):
    return value


@register_coercer(FieldType.DATE)
def coerce_date(value):
    if value in (None, ''):
        return None

    if not isinstance(value, (str, date, datetime)):
        raise ValueError(f'not a date: {value!r}')

    return parse_iso_date(value)


@register_coercer(FieldType.INTEGER)
def coerce_integer(value):
    if value in (None, ''):
        return None

    if isinstance(value, bool):
        raise ValueError(f'not an integer: {value!r}')

    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f'not an integer: {value!r}')

    return int(value)


@register_coercer(FieldType.DECIMAL)
def coerce_decimal(value):
    if value in (None, ''):
        return None

    if isinstance(value, bool):
        raise ValueError(f'not a number: {value!r}')

    try:
        return float(Decimal(str(value)))
    except InvalidOperation:
        raise ValueError(f'not a number: {value!r}')


@register_coercer(FieldType.BOOLEAN)
def coerce_boolean(value):
    if isinstance(value, bool) or value is None:
        return value

    text = str(value).strip().lower()
    if text in BOOLEAN_TRUE:
        return True

    if text in BOOLEAN_FALSE:
        return False

    raise ValueError(f'not a boolean: {value!r}')


def coerce(field, value):
    coercer = get_coercer(field.type)
    try:
        return coercer(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            'F02.001',
            f'Invalid value for field [{field.id}] of type [{field.type.value}]: {e}',
            {'field': field.id, 'type': field.type.value}
        )


def extract(form_model: SimpleFormModel, raw_values: dict, outcome=None) -> dict:
    raw_values = raw_values or {}
    variables = {}

    for field in form_model.fields:
        if field.is_expression:
            continue

        if field.id not in raw_values:
            continue

        variables[field.id] = coerce(field, raw_values[field.id])

    variables[outcome_variable(form_model.key)] = outcome
    logger.debug('[%s] extracted variables: %s', form_model.key, list(variables))
    return variables
