from ._meta import config, logger
from .constant import FORM_OUTCOME_KEY, FORM_VALUES_KEY, outcome_variable
from .model import (
    Deployment,
    FieldType,
    FormDefinition,
    FormField,
    FormInfo,
    FormInstance,
    FormInstanceInfo,
    FormOutcome,
    SimpleFormModel,
    parse_form_model,
)
from .variables import extract
from .expression import ExpressionResolver
from .schema import FormConnector, FormDataManager, FormMemoryConnector, FormMemoryDataManager
from .query import DeploymentQuery, FormDefinitionQuery, FormInstanceQuery
from .repository import RepositoryService
from .store import FormInstanceStore
from .service import FormService
from .engine import FormEngine
