"""MySQL metadata queries for drdump."""

from contextlib import closing
from typing import List

import mysql.connector

from drdump.constants import CONNECT_TIMEOUT_SECONDS
from drdump.errors import ConnectivityError, QueryError
from drdump.errors_catalog import actionable_error
from drdump.models import DbConnectionSpec


class DatabaseIntrospector:
    """Lists the databases visible to a user with a single short-lived connection."""

    LIST_DATABASES_SQL = "SHOW DATABASES"

    def __init__(
        self,
        logger,
        connector_module=mysql.connector,
        connect_timeout: float = CONNECT_TIMEOUT_SECONDS,
    ):
        self.logger = logger
        self.connector = connector_module
        self.connect_timeout = connect_timeout

    def _connect(self, spec: DbConnectionSpec, password: str):
        try:
            return self.connector.connect(
                host=spec.host,
                port=spec.port,
                user=spec.username,
                password=password,
                connection_timeout=int(self.connect_timeout),
                ssl_disabled=True,
            )
        except self.connector.Error as exc:
            self.logger.warning("Unable to connect to %s:%s: %s", spec.host, spec.port, exc)
            raise ConnectivityError(
                actionable_error("connect_failed", host=spec.host, port=str(spec.port), reason=str(exc))
            ) from exc

    def list_databases(self, spec: DbConnectionSpec, password: str) -> List[str]:
        with closing(self._connect(spec, password)) as connection:
            try:
                with closing(connection.cursor()) as cursor:
                    cursor.execute(self.LIST_DATABASES_SQL)
                    databases = [row[0] for row in cursor.fetchall()]
            except self.connector.Error as exc:
                self.logger.warning("Unable to get databases on %s:%s: %s", spec.host, spec.port, exc)
                raise QueryError(
                    actionable_error("query_failed", host=spec.host, port=str(spec.port), reason=str(exc))
                ) from exc

        self.logger.debug("Queried %s databases on %s:%s", len(databases), spec.host, spec.port)
        return databases
