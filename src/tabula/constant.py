import re

QUERY_OPERATOR_SEP = "."
OPERATOR_SEP_NEGATE = "!"
RX_PARAM_SPLIT = re.compile(r'(\.|!)')
DEFAULT_OPERATOR = 'eq'

SORT_DIRECTION_SEP = ":"
