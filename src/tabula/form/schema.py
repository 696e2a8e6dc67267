import sqlalchemy as sa

from tabula.data import DataAccessManager, InMemoryDriver, SqlaDriver, JSONField
from tabula.data.constant import NO_TENANT_ID
from tabula.data.data_driver.sqla import DomainSchema

from ._meta import config
from .constant import RESOURCE_DEPLOYMENT, RESOURCE_FORM_DEFINITION, RESOURCE_FORM_INSTANCE
from .model import Deployment, FormDefinition, FormInstance


class FormConnector(SqlaDriver):
    __db_dsn__ = config.DB_DSN
    __schema__ = config.DB_SCHEMA


class FormMemoryConnector(InMemoryDriver):
    pass


class FormBaseSchema(FormConnector.__data_schema_base__, DomainSchema):
    __abstract__ = True


class DeploymentSchema(FormBaseSchema):
    __tablename__ = RESOURCE_DEPLOYMENT

    name = sa.Column(sa.String(255))
    category = sa.Column(sa.String(255))
    tenant_id = sa.Column(sa.String(255), nullable=False, default=NO_TENANT_ID, index=True)


class FormDefinitionSchema(FormBaseSchema):
    __tablename__ = RESOURCE_FORM_DEFINITION
    __table_args__ = (
        sa.UniqueConstraint('key', 'version', 'tenant_id', name='uq_form_definition_version'),
    )

    key = sa.Column(sa.String(255), nullable=False, index=True)
    name = sa.Column(sa.String(255))
    description = sa.Column(sa.Text)
    version = sa.Column(sa.Integer, nullable=False)
    category = sa.Column(sa.String(255))
    deployment_id = sa.Column(sa.String(64), index=True)
    resource_name = sa.Column(sa.String(255))
    tenant_id = sa.Column(sa.String(255), nullable=False, default=NO_TENANT_ID, index=True)
    form_model = sa.Column(JSONField, nullable=False)


class FormInstanceSchema(FormBaseSchema):
    __tablename__ = RESOURCE_FORM_INSTANCE

    form_definition_id = sa.Column(sa.String(64), nullable=False, index=True)
    task_id = sa.Column(sa.String(64), index=True)
    process_instance_id = sa.Column(sa.String(64), index=True)
    process_definition_id = sa.Column(sa.String(64), index=True)
    scope_id = sa.Column(sa.String(64), index=True)
    scope_type = sa.Column(sa.String(255))
    scope_definition_id = sa.Column(sa.String(64), index=True)
    tenant_id = sa.Column(sa.String(255), nullable=False, default=NO_TENANT_ID, index=True)
    submitted_by = sa.Column(sa.String(255))
    submitted_date = sa.Column(sa.DateTime(timezone=True))
    form_value_bytes = sa.Column(sa.LargeBinary)

    # Set only by `save`: one row per save key, created instances keep NULL
    save_key = sa.Column(sa.String(64), nullable=True, unique=True)


class FormDataManager(DataAccessManager):
    __connector__ = FormConnector


FormDataManager.register_model(RESOURCE_DEPLOYMENT)(Deployment)
FormDataManager.register_model(RESOURCE_FORM_DEFINITION)(FormDefinition)
FormDataManager.register_model(RESOURCE_FORM_INSTANCE)(FormInstance)


class FormMemoryDataManager(FormDataManager, connector=FormMemoryConnector):
    pass
