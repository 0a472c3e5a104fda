"""AWS Lambda entry points, one per remote operation.

Value-returning handlers answer ``None`` when the operation fails for a
domain reason, so the caller sees a failure indicator instead of an error.
``check_environment`` lets provider errors propagate, and
``prepare_environment`` raises because it has no return value to carry one.
"""

import logging
import os
from typing import Any, List, Mapping, Optional

from .core import DbDump
from .errors import ConnectivityError, DumpError, InvalidRequestError, QueryError
from .models import DbConnectionSpec, ProvisioningTarget, Settings
from .services.config_loader import ConfigLoader

CONFIG_ENV = "DRDUMP_CONFIG"

logger = logging.getLogger("drdump")


def _settings() -> Settings:
    settings = ConfigLoader().load_settings(os.environ.get(CONFIG_ENV))
    logger.setLevel(settings.log_level)
    return settings


def _field(event: Mapping[str, Any], key: str) -> str:
    value = event.get(key)
    if not value:
        raise DumpError(f"Missing required field '{key}'.")
    return str(value)


def get_databases(event, context) -> Optional[List[str]]:
    try:
        spec = DbConnectionSpec.from_payload(event, require_databases=False)
        return DbDump(settings=_settings()).get_databases(spec)
    except (InvalidRequestError, ConnectivityError, QueryError) as exc:
        logger.warning("Unable to get databases from %s: %s", event.get("host"), exc)
        return None


def check_environment(event, context) -> bool:
    settings = _settings()
    app = DbDump.for_source(_field(event, "region"), _field(event, "projectId"), settings=settings)
    return app.check_environment()


def prepare_environment(event, context) -> None:
    settings = _settings()
    target = ProvisioningTarget.from_payload(event, settings)
    DbDump.for_source(target.region, target.project_id, settings=settings).prepare_environment(target)


def dump_database(event, context) -> Optional[str]:
    try:
        spec = DbConnectionSpec.from_payload(event)
        return DbDump(settings=_settings()).dump(spec)
    except DumpError as exc:
        logger.error("Dump of %s failed: %s", event.get("databases"), exc)
        return None


def call_get_databases(event, context) -> Optional[List[str]]:
    settings = _settings()
    try:
        spec = DbConnectionSpec.from_payload(event.get("dbParameter") or {}, require_databases=False)
    except InvalidRequestError as exc:
        logger.warning("Invalid database parameter for %s: %s", event.get("dbId"), exc)
        return None
    app =DbDump.for_source(_field(event, "region"), _field(event, "projectId"), settings=settings)
    return app.call_get_databases(_field(event, "projectId"), _field(event, "dbId"), spec)
