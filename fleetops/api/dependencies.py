"""
fleetops/api/dependencies.py

Shared FastAPI dependencies: configuration and deferred database access.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from functools import partial
from typing import NamedTuple

from fastapi import Depends, Request

from fleetops.db.connection import db_connection
from fleetops.db.repositories import FuelPurchaseRepository, VehicleRepository
from fleetops.models.config_models import AppConfig


class Repositories(NamedTuple):
    vehicles: VehicleRepository
    purchases: FuelPurchaseRepository


RepositorySession = Callable[[], AbstractContextManager[Repositories]]


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


@contextmanager
def open_repositories(config: AppConfig) -> Iterator[Repositories]:
    """
    One connection for the block; committed when the block exits normally.
    """

    with db_connection(config.database) as cursor:
        yield Repositories(
            vehicles=VehicleRepository(cursor, config.tables),
            purchases=FuelPurchaseRepository(cursor, config.tables),
        )


def get_repository_session(config: AppConfig = Depends(get_config)) -> RepositorySession:
    """
    Handlers enter the session themselves, so no connection is opened for
    requests rejected before they need the database.
    """

    return partial(open_repositories, config)
