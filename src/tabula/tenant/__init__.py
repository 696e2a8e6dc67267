''' Tenant resolution with optional fallback to a default tenant.

    A lookup for an explicit tenant that has no match may be re-run under
    a default tenant, but only when the caller asks for it (`fallback=True`)
    AND the process-wide switch is on AND a default tenant is known, either
    a static value or one returned by the default tenant provider.

    An empty tenant id means "no tenant" and is looked up as such first. A
    miss then follows the same fallback rules.
'''
from collections import namedtuple
from contextlib import contextmanager

from tabula.data.constant import NO_TENANT_ID
from tabula.error import NotFoundError

from ._meta import config, logger

TenantSnapshot = namedtuple(
    'TenantSnapshot',
    'fallback_to_default_tenant default_tenant_value default_tenant_provider'
)


class TenantConfiguration(object):
    def __init__(self, fallback_to_default_tenant=None, default_tenant_value=None, default_tenant_provider=None):
        if fallback_to_default_tenant is None:
            fallback_to_default_tenant = config.TENANT_FALLBACK_TO_DEFAULT

        if default_tenant_value is None:
            default_tenant_value = config.TENANT_DEFAULT_VALUE

        self.restore(TenantSnapshot(fallback_to_default_tenant, default_tenant_value, default_tenant_provider))

    @property
    def fallback_to_default_tenant(self) -> bool:
        return self._fallback_to_default_tenant

    @property
    def default_tenant_value(self):
        return self._default_tenant_value

    @property
    def default_tenant_provider(self):
        return self._default_tenant_provider

    def set_fallback_to_default_tenant(self, enabled: bool):
        self._fallback_to_default_tenant = bool(enabled)
        return self

    def set_default_tenant_value(self, value):
        self._default_tenant_value = value
        return self

    def set_default_tenant_provider(self, provider):
        if provider is not None and not callable(provider):
            raise ValueError(f'Default tenant provider must be callable: {provider!r}')

        self._default_tenant_provider = provider
        return self

    def snapshot(self) -> TenantSnapshot:
        return TenantSnapshot(
            self._fallback_to_default_tenant,
            self._default_tenant_value,
            self._default_tenant_provider,
        )

    def restore(self, snapshot: TenantSnapshot):
        self.set_fallback_to_default_tenant(snapshot.fallback_to_default_tenant)
        self.set_default_tenant_value(snapshot.default_tenant_value)
        self.set_default_tenant_provider(snapshot.default_tenant_provider)
        return self

    @contextmanager
    def override(self, **changes):
        ''' Apply changes for the duration of the block, then restore the
            previous values.

            >>> with tenant_config.override(fallback_to_default_tenant=True, default_tenant_value='D'):
            ...     ...
        '''
        saved = self.snapshot()
        self.restore(saved._replace(**changes))
        try:
            yield self
        finally:
            self.restore(saved)

    def default_tenant(self, tenant_id, scope_type=None, scope_key=None):
        ''' Default tenant for a failed lookup, or None when global
            fallback is disabled or no default is known. '''
        if not self._fallback_to_default_tenant:
            return None

        if self._default_tenant_value:
            return self._default_tenant_value

        if self._default_tenant_provider is not None:
            return self._default_tenant_provider(tenant_id, scope_type, scope_key) or None

        return None


class TenantResolver(object):
    def __init__(self, configuration: TenantConfiguration):
        self._configuration = configuration

    @property
    def configuration(self):
        return self._configuration

    def candidate_tenants(self, tenant_id=None, fallback=False, scope_type=None, scope_key=None):
        ''' Tenants to try, in order. '''
        requested = tenant_id or NO_TENANT_ID
        yield requested

        if not fallback:
            return

        default = self._configuration.default_tenant(tenant_id, scope_type, scope_key)
        if default is not None and default != requested:
            yield default

    async def resolve(self, lookup, tenant_id=None, fallback=False, scope_type=None, scope_key=None):
        ''' Run `lookup(tenant)` for each candidate tenant and return the
            first non-None result. Raise `NotFoundError` when none matches.
        '''
        for tenant in self.candidate_tenants(tenant_id, fallback, scope_type, scope_key):
            result = await lookup(tenant)
            if result is not None:
                if tenant != (tenant_id or NO_TENANT_ID):
                    logger.info('[%s] resolved under default tenant [%s] (requested: %r)', scope_key, tenant, tenant_id)

                return result

        raise NotFoundError(
            'T01.404',
            f'No resource [{scope_key}] found for tenant [{tenant_id or NO_TENANT_ID}]',
            {'tenant_id': tenant_id, 'fallback': fallback, 'scope_type': scope_type, 'scope_key': scope_key}
        )


__all__ = (
    "config",
    "logger",
    "TenantConfiguration",
    "TenantResolver",
    "TenantSnapshot",
)
