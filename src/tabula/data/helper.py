import secrets
from collections.abc import Mapping
from types import SimpleNamespace

from pydantic import BaseModel
from pyrsistent import PClass

from tabula.helper.timeutil import timestamp  # noqa


NONE_TYPE = type(None)


def nullable(*types):
    return (NONE_TYPE, *types)


def generate_etag(ctx=None, **kwargs):
    return secrets.token_urlsafe()


def serialize_mapping(data):
    if data is None:
        return {}

    if isinstance(data, Mapping):
        return dict(data)

    if isinstance(data, BaseModel):
        return data.model_dump()

    if isinstance(data, SimpleNamespace):
        return data.__dict__

    if isinstance(data, PClass):
        return data.serialize()

    raise ValueError(f'Unable to convert value to mapping [{data.__class__}]')


def parse_table_args(table_args):
    args = []
    opts = {}

    if not table_args:
        return args, opts

    if isinstance(table_args, dict):
        opts.update(table_args)
    else:
        for entry in table_args:
            if isinstance(entry, dict):
                opts.update(entry)
            else:
                args.append(entry)

    return args, opts


def merge_table_args(base_cls, child_cls):
    base_args = getattr(base_cls, '__table_args__', None)
    child_args = child_cls.__dict__.get('__table_args__', None)

    if not child_args:
        return base_args

    if not base_args:
        return child_args

    args, opts = parse_table_args(base_args)
    child_args, child_opts = parse_table_args(child_args)

    args.extend(child_args)
    opts.update(child_opts)
    return tuple(args + [opts]) if opts else tuple(args)
