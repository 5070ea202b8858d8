from __future__ import annotations

import os
from typing import TYPE_CHECKING

import httpx
import pytest
from sqlalchemy import create_engine

from teamsync.adapters.sqlalchemy import create_all_tables, start_mappers
from teamsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, shutdown, startup
from teamsync.config.grafana import GrafanaConfig
from teamsync.config.http_resilience import ResilienceConfig, RetryPolicy

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.engine import Engine

GRAFANA_TEST_URL = "https://grafana.test"


@pytest.fixture
def grafana_config() -> GrafanaConfig:
    return GrafanaConfig(
        url=GRAFANA_TEST_URL,
        org_id=1,
        admin_user="admin",
        resilience=ResilienceConfig(
            name="grafana",
            base_url=GRAFANA_TEST_URL,
            retry=RetryPolicy(total=0),
            default_headers={"X-Grafana-Org-Id": "1"},
            auth=httpx.BasicAuth("admin", "secret"),
        ),
    )


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()
