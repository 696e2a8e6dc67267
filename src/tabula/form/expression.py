from typing import Any, Dict

import jinja2

from tabula.error import ValidationError

from .constant import EXPRESSION_MARKER, EXPRESSION_START, EXPRESSION_END


class ExpressionResolver(object):
    ''' Resolves `${...}` expressions of form field values against runtime
        variables. Undefined variables render as an empty string.

        >>> ExpressionResolver().resolve('http://www.flowable.org/${page}', {'page': 'downloads.html'})
        'http://www.flowable.org/downloads.html'
    '''

    def __init__(self, **env_options):
        self.template_env = jinja2.Environment(
            variable_start_string=EXPRESSION_START,
            variable_end_string=EXPRESSION_END,
            autoescape=False,
            **env_options
        )

    def add_filter(self, name, func):
        self.template_env.filters[name] = func

    def add_global(self, key, value):
        self.template_env.globals[key] = value

    def is_expression(self, value) -> bool:
        return isinstance(value, str) and EXPRESSION_MARKER in value

    def resolve(self, expression, variables: Dict[str, Any]):
        if not self.is_expression(expression):
            return expression

        try:
            template = self.template_env.from_string(expression)
            return str(template.render(**(variables or {})))
        except jinja2.TemplateError as e:
            raise ValidationError('F03.001', f'Unable to resolve expression [{expression}]: {e}')
