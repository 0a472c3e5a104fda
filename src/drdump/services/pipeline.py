"""Dump pipeline: preflight checks, mysqldump, compression and upload."""

import os
from typing import Optional

from drdump import constants
from drdump.errors import InvalidRequestError, StageError, ToolFailure, ValidationError
from drdump.errors_catalog import actionable_error
from drdump.models import ArtifactStage, DbConnectionSpec, DumpArtifact, DumpStage, Settings
from drdump.services import commands


class DumpPipeline:
    """Runs the dump stages strictly in order and stops at the first failure.

    Every failure surfaces as ``StageError`` carrying the failing stage. The
    raw dump is removed once compressed and the archive once uploaded; on
    failure whatever was produced stays in ``dump_folder`` for diagnostics.
    """

    def __init__(
        self,
        logger,
        console,
        command_runner,
        introspector,
        filesystem_service,
        storage,
        parameters,
        secret_manager,
        settings: Settings,
    ):
        self.logger = logger
        self.console = console
        self.command_runner = command_runner
        self.introspector = introspector
        self.filesystem_service = filesystem_service
        self.storage = storage
        self.parameters = parameters
        self.secret_manager = secret_manager
        self.settings = settings
        self.current_stage: Optional[DumpStage] = None

    def _run_stage(self, stage: DumpStage, callback, *args):
        self.current_stage = stage
        self.logger.debug("Starting stage: %s", stage.value)
        try:
            result = callback(*args)
        except Exception as exc:
            self.logger.warning("Stage %s failed: %s", stage.value, exc)
            raise StageError(stage, exc) from exc
        self.current_stage = None
        return result

    def _execute(self, name: str, command: commands.CommandBase):
        result = self.command_runner.execute(
            name,
            command.build(),
            redact=command.sensitive_values,
            timeout=self.settings.command_timeout_seconds,
        )
        if not result.successful:
            raise ToolFailure(name, result)
        return result

    def check_disk(self):
        self.filesystem_service.ensure_dir(self.settings.dump_folder)
        result = self._execute("df", commands.df().human_readable(self.settings.dump_folder))
        self.logger.info("Disk check is ok: %s", result.output.strip())

    def check_version(self):
        result = self._execute("mysqldump", commands.mysqldump().version())
        self.logger.info("Tool check is ok: %s", result.output.strip())

    def check_databases(self, spec: DbConnectionSpec, password: str):
        live = set(self.introspector.list_databases(spec, password))
        missing = [name for name in dict.fromkeys(spec.databases) if name not in live]
        if missing:
            raise ValidationError(
                missing,
                actionable_error(
                    "missing_databases",
                    names=", ".join(missing),
                    username=spec.username,
                    host=spec.host,
                ),
            )
        self.logger.info("Database check is ok: queried %s databases.", len(live))

    def dump_to_local(self, spec: DbConnectionSpec, password: str) -> DumpArtifact:
        path = self.filesystem_service.allocate_temp_file(
            self.settings.dump_folder,
            constants.DUMP_FILE_PREFIX,
            constants.DUMP_FILE_SUFFIX,
        )
        command = (
            commands.mysqldump()
            .user(spec.username)
            .password(password)
            .host(spec.host)
            .port(spec.port)
            .databases(spec.databases)
            .result_file(path)
            .events()
            .routines()
            .triggers()
            .compress()
            .order_by_primary()
            .single_transaction()
        )
        self._execute("mysqldump", command)
        self.logger.info("Dumped to %s", path)
        return DumpArtifact(path=path, stage=ArtifactStage.RAW_DUMP)

    def compress(self, artifact: DumpArtifact) -> DumpArtifact:
        target = self.filesystem_service.allocate_temp_file(
            self.settings.dump_folder,
            constants.DUMP_FILE_PREFIX,
            constants.ARCHIVE_FILE_SUFFIX,
        )
        self._execute("tar", commands.tar().compress_file(target, artifact.path))
        self.logger.info("Compressed to %s", target)
        return DumpArtifact(path=target, stage=ArtifactStage.COMPRESSED)

    def upload(self, artifact: DumpArtifact) -> str:
        bucket = self.parameters.get_parameter(self.settings.bucket_parameter)
        folder = os.path.basename(os.path.normpath(self.settings.dump_folder))
        key = f"{folder}/{artifact.name}"
        self.storage.upload_file(artifact.path, bucket, key)
        self.logger.info("Uploaded to s3://%s/%s", bucket, key)
        return key

    def _discard(self, artifact: DumpArtifact):
        if not self.settings.keep_artifacts:
            self.filesystem_service.remove_file(artifact.path)

    def run(self, spec: DbConnectionSpec) -> str:
        if not spec.databases:
            raise InvalidRequestError("At least one database must be requested.")
        self.logger.info("Dump databases: %s", ", ".join(spec.databases))
        self.console.print(f"[blue]Dumping {', '.join(spec.databases)} from {spec.host}...[/blue]")

        self._run_stage(DumpStage.CHECK_DISK, self.check_disk)
        self._run_stage(DumpStage.CHECK_TOOL_VERSION, self.check_version)
        password = self._run_stage(DumpStage.CHECK_DATABASES, self._resolve_and_check, spec)
        raw = self._run_stage(DumpStage.DUMP_TO_LOCAL, self.dump_to_local, spec, password)
        archive = self._run_stage(DumpStage.COMPRESS, self.compress, raw)
        self._discard(raw)
        self._run_stage(DumpStage.UPLOAD, self.upload, archive)
        self._discard(archive)

        self.console.print(f"[green]Dumped and uploaded {archive.name}[/green]")
        self.logger.info("Dumped and compressed to file %s", archive.name)
        return archive.name

    def _resolve_and_check(self, spec: DbConnectionSpec) -> str:
        # The only place the password is resolved in a run.
        password = self.secret_manager.get_secret(spec.password_id)
        self.check_databases(spec, password)
        return password
