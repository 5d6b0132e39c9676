"""Schema management for SQL-backed Protean providers.

Memory providers need no schema; these helpers are no-ops for them.
"""

from protean.domain import Domain
from sqlalchemy import create_engine

_SQL_PROVIDERS = ("sqlite", "postgresql")


def _touch_daos(domain: Domain, provider_name: str) -> None:
    """Force DAO creation so every table is registered on the provider metadata."""
    registry = domain.registry
    for records in (registry.aggregates, registry.entities, registry.projections):
        for _, record in records.items():
            if record.cls.meta_.provider == provider_name:
                domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain) -> None:
    """Create tables for every SQL provider configured on the domain."""
    with domain.domain_context():
        for name, provider in domain.providers.items():
            if provider.conn_info["provider"] in _SQL_PROVIDERS:
                engine = create_engine(provider.conn_info["database_uri"])
                _touch_daos(domain, name)
                provider._metadata.create_all(engine)


def drop_db(domain: Domain) -> None:
    """Drop tables for every SQL provider configured on the domain."""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in _SQL_PROVIDERS:
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.drop_all(engine)
