import uuid
from tabula.data._meta import config


DEFAULT_UUID5_NAMESPACE = uuid.UUID(config.UUID5_NAMESPACE)


def _gen_uuid5(seed, namespace=DEFAULT_UUID5_NAMESPACE):
    return uuid.uuid5(namespace, seed)


def _gen_id():
    return str(uuid.uuid4())


UUID_TYPE = uuid.UUID  # Identifier class
UUID_GENF = _gen_uuid5  # Generate an identifier deterministicly from a seed within a namespace (optional)
ID_GENR = _gen_id  # Random identifier in its stored (string) form
