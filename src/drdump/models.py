"""Shared domain models for drdump."""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from . import constants
from .errors import InvalidRequestError


class DumpStage(str, Enum):
    CHECK_DISK = "check_disk"
    CHECK_TOOL_VERSION = "check_tool_version"
    CHECK_DATABASES = "check_databases"
    DUMP_TO_LOCAL = "dump_to_local"
    COMPRESS = "compress"
    UPLOAD = "upload"


class ProvisionStep(str, Enum):
    STACK = "stack"
    FUNCTION = "function"
    NETWORK = "network"


class ArtifactStage(str, Enum):
    RAW_DUMP = "raw_dump"
    COMPRESSED = "compressed"


class FunctionStatus(str, Enum):
    """Outcome of a function existence probe."""

    PRESENT = "present"
    ABSENT = "absent"


@dataclass(frozen=True)
class CommandResult:
    exit_code: Optional[int]
    output: str = ""

    @property
    def successful(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class DumpArtifact:
    path: str
    stage: ArtifactStage

    @property
    def name(self) -> str:
        return os.path.basename(self.path)


def _require(payload: Mapping[str, Any], key: str) -> Any:
    value = payload.get(key)
    if value is None or value == "":
        raise InvalidRequestError(f"Missing required field '{key}'.")
    return value


def _split_names(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        raise InvalidRequestError("Field 'databases' must be a list or a comma-separated string.")
    names = (str(item).strip() for item in items)
    return tuple(dict.fromkeys(name for name in names if name))


@dataclass(frozen=True)
class DbConnectionSpec:
    """Connection details for one MySQL server.

    ``password_id`` is an opaque secret identifier; the plaintext password is
    resolved by the caller and never stored on this object. ``databases``
    keeps the requested order; it may only be empty for listing calls.
    """

    host: str
    port: int
    username: str
    password_id: str
    databases: Tuple[str, ...]

    def __post_init__(self):
        if self.port < 0 or self.port > 65535:
            raise InvalidRequestError(f"Invalid port: {self.port}")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], require_databases: bool = True) -> "DbConnectionSpec":
        if not isinstance(payload, Mapping):
            raise InvalidRequestError("Database parameter must be a JSON object.")
        try:
            port = int(payload.get("port") or constants.MYSQL_DEFAULT_PORT)
        except (TypeError, ValueError) as exc:
            raise InvalidRequestError(f"Invalid port: {payload.get('port')}") from exc
        databases = _split_names(payload.get("databases") or ())
        if require_databases and not databases:
            raise InvalidRequestError("At least one database must be requested.")
        return cls(
            host=str(_require(payload, "host")),
            port=port,
            username=str(_require(payload, "username")),
            password_id=str(payload.get("passwordId") or ""),
            databases=databases,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "passwordId": self.password_id,
            "databases": list(self.databases),
        }


@dataclass(frozen=True)
class Settings:
    """Runtime configuration; every field can be overridden from YAML."""

    dump_folder: str = constants.DUMP_FOLDER
    bucket_parameter: str = constants.PARAM_BUCKET
    bucket_stack_name: str = constants.COMMON_BUCKET_STACK_NAME
    bucket_template_key: str = constants.COMMON_BUCKET_TEMPLATE_KEY
    function_package_key: str = constants.GET_DATABASES_PACKAGE_KEY
    function_name: str = constants.GET_DATABASES_FUNCTION
    function_role_prefix: str = constants.FUNCTION_ROLE_PREFIX
    function_runtime: str = constants.GET_DATABASES_RUNTIME
    function_handler: str = constants.GET_DATABASES_HANDLER
    function_memory_mb: int = constants.FUNCTION_MEMORY_MB
    function_timeout_seconds: int = constants.FUNCTION_TIMEOUT_SECONDS
    command_timeout_seconds: Optional[float] = None
    connect_timeout_seconds: float = constants.CONNECT_TIMEOUT_SECONDS
    keep_artifacts: bool = False
    log_level: str = "INFO"


@dataclass(frozen=True)
class ProvisioningTarget:
    """Resources to prepare in one source region/account."""

    region: str
    project_id: str
    subnet_ids: Tuple[str, ...] = ()
    security_group_ids: Tuple[str, ...] = ()
    stack_name: str = constants.COMMON_BUCKET_STACK_NAME
    function_name: str = constants.GET_DATABASES_FUNCTION

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], settings: Settings) -> "ProvisioningTarget":
        return cls(
            region=str(_require(payload, "region")),
            project_id=str(_require(payload, "projectId")),
            subnet_ids=tuple(payload.get("subnetIds") or ()),
            security_group_ids=tuple(payload.get("securityGroupIds") or ()),
            stack_name=settings.bucket_stack_name,
            function_name=settings.function_name,
        )
