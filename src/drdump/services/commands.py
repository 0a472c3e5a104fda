"""Argument-vector builders for the external tools used by the dump pipeline.

Builders are immutable: each option method returns a new builder, so a
partially configured command can be shared and extended safely. Nothing here
executes a process.
"""

import os
from typing import Iterable, List, Optional, Tuple

from drdump.constants import MYSQL_DEFAULT_PORT
from drdump.errors import InvalidCommandError


class CommandBase:
    def __init__(self, args: Tuple[str, ...] = (), sensitive: Tuple[str, ...] = ()):
        self._args = args
        self._sensitive = sensitive

    def _add(self, *tokens: str):
        extra = tuple(str(token) for token in tokens)
        return self._copy(self._args + extra, self._sensitive)

    def _add_with_equal(self, option: str, value, sensitive: bool = False):
        hidden = self._sensitive + ((str(value),) if sensitive else ())
        return self._copy(self._args + (f"{option}={value}",), hidden)

    def _copy(self, args: Tuple[str, ...], sensitive: Tuple[str, ...]):
        return type(self)(args, sensitive)

    @property
    def sensitive_values(self) -> Tuple[str, ...]:
        return self._sensitive

    def build(self) -> List[str]:
        return list(self._args)


class MySqlDumpCommand(CommandBase):
    def __init__(self, args: Tuple[str, ...] = ("mysqldump",), sensitive: Tuple[str, ...] = ()):
        super().__init__(args, sensitive)

    def user(self, user: str) -> "MySqlDumpCommand":
        return self._add_with_equal("--user", user)

    def password(self, password: str) -> "MySqlDumpCommand":
        return self._add_with_equal("--password", password, sensitive=True)

    def host(self, host: str) -> "MySqlDumpCommand":
        return self._add_with_equal("--host", host)

    def default_port(self) -> "MySqlDumpCommand":
        return self.port(MYSQL_DEFAULT_PORT)

    def port(self, port: int) -> "MySqlDumpCommand":
        if isinstance(port, bool) or not isinstance(port, int):
            raise InvalidCommandError(f"Port must be an integer, got {port!r}.")
        if port < 0 or port > 65535:
            raise InvalidCommandError(f"Port out of range: {port}")
        return self._add_with_equal("--port", port)

    def databases(self, databases: Iterable[str]) -> "MySqlDumpCommand":
        names = list(databases)
        if not names:
            raise InvalidCommandError("At least one database is required for --databases.")
        if any(not name or not name.strip() for name in names):
            raise InvalidCommandError("Database names cannot be empty.")
        return self._add("--databases", *names)

    def compress(self) -> "MySqlDumpCommand":
        return self._add("--compress")

    def events(self) -> "MySqlDumpCommand":
        return self._add("--events")

    def order_by_primary(self) -> "MySqlDumpCommand":
        return self._add("--order-by-primary")

    def result_file(self, path: str) -> "MySqlDumpCommand":
        if not path:
            raise InvalidCommandError("Result file path cannot be empty.")
        return self._add_with_equal("--result-file", path)

    def routines(self) -> "MySqlDumpCommand":
        return self._add("--routines")

    def single_transaction(self) -> "MySqlDumpCommand":
        return self._add("--single-transaction")

    def triggers(self) -> "MySqlDumpCommand":
        return self._add("--triggers")

    def version(self) -> "MySqlDumpCommand":
        return self._add("--version")

    def build(self) -> List[str]:
        if "--version" not in self._args and "--databases" not in self._args:
            raise InvalidCommandError("mysqldump requires --databases unless probing --version.")
        return super().build()


class TarCommand(CommandBase):
    def __init__(self, args: Tuple[str, ...] = ("tar",), sensitive: Tuple[str, ...] = ()):
        super().__init__(args, sensitive)

    def compress_file(self, target: str, source: str) -> "TarCommand":
        if not target or not source:
            raise InvalidCommandError("Archive target and source paths are required.")
        source_dir = os.path.dirname(os.path.abspath(source))
        return self._add("-czf", target, "-C", source_dir, os.path.basename(source))

    def version(self) -> "TarCommand":
        return self._add("--version")


class DfCommand(CommandBase):
    def __init__(self, args: Tuple[str, ...] = ("df",), sensitive: Tuple[str, ...] = ()):
        super().__init__(args, sensitive)

    def human_readable(self, path: Optional[str] = None) -> "DfCommand":
        clone = self._add("-h")
        return clone._add(path) if path else clone


def mysqldump() -> MySqlDumpCommand:
    return MySqlDumpCommand()


def tar() -> TarCommand:
    return TarCommand()


def df() -> DfCommand:
    return DfCommand()
