# Key of the submitted values in a stored form value blob
FORM_VALUES_KEY = "values"

# Key of the selected outcome in a stored form value blob
FORM_OUTCOME_KEY = "flowable_form_outcome"

# Values containing this marker are expressions, resolved when rendered
EXPRESSION_MARKER = "${"
EXPRESSION_START = "${"
EXPRESSION_END = "}"

RESOURCE_DEPLOYMENT = "deployment"
RESOURCE_FORM_DEFINITION = "form_definition"
RESOURCE_FORM_INSTANCE = "form_instance"


def outcome_variable(form_key):
    ''' Name of the variable holding the outcome of a submitted form '''
    return f"form_{form_key}_outcome"
