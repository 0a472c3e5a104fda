import logging
from typing import List, Optional

from rich.console import Console

from .errors import DumpError
from .models import DbConnectionSpec, FunctionStatus, ProvisioningTarget, Settings
from .services.aws import AwsScope
from .services.command_runner import CommandRunner
from .services.database import DatabaseIntrospector
from .services.filesystem import FileSystemService
from .services.parameters import ParameterStore
from .services.pipeline import DumpPipeline
from .services.prober import EnvironmentProber
from .services.provisioner import EnvironmentProvisioner
from .services.remote import RemoteDatabaseLister
from .services.secrets import SecretManager
from .services.storage import StorageService

console = Console()
logger = logging.getLogger("drdump")


class DbDump:
    """Assembles services for one top-level call.

    ``scope`` is the default credential chain where the dump bucket, secrets
    and deployment assets live. ``source_scope`` is only set for operations
    against a project's source account and is built fresh per call by
    :meth:`for_source`.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        scope: Optional[AwsScope] = None,
        source_scope: Optional[AwsScope] = None,
    ):
        self.settings = settings or Settings()
        self.scope = scope or AwsScope()
        self.source_scope = source_scope
        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.command_runner = CommandRunner(
            logger=logger,
            default_timeout=self.settings.command_timeout_seconds,
        )
        self.introspector = DatabaseIntrospector(
            logger=logger,
            connect_timeout=self.settings.connect_timeout_seconds,
        )

    @classmethod
    def for_source(cls, region: str, project_id: str, settings: Optional[Settings] = None, scope=None):
        scope = scope or AwsScope()
        credential = cls._secret_manager(scope).get_credential_by_project(project_id)
        return cls(settings=settings, scope=scope, source_scope=AwsScope(region=region, credential=credential))

    @staticmethod
    def _secret_manager(scope) -> SecretManager:
        return SecretManager(scope.client("secretsmanager"), scope.client("sts"))

    def _require_source(self):
        if self.source_scope is None:
            raise DumpError("This operation needs a source scope; build it with DbDump.for_source().")
        return self.source_scope

    def get_databases(self, spec: DbConnectionSpec) -> List[str]:
        password = self._secret_manager(self.scope).get_secret(spec.password_id)
        return self.introspector.list_databases(spec, password)

    def build_pipeline(self) -> DumpPipeline:
        return DumpPipeline(
            logger=logger,
            console=console,
            command_runner=self.command_runner,
            introspector=self.introspector,
            filesystem_service=self.filesystem_service,
            storage=StorageService(self.scope.client("s3"), logger),
            parameters=ParameterStore(self.scope.client("ssm")),
            secret_manager=self._secret_manager(self.scope),
            settings=self.settings,
        )

    def dump(self, spec: DbConnectionSpec) -> str:
        return self.build_pipeline().run(spec)

    def build_prober(self) -> EnvironmentProber:
        return EnvironmentProber(self._require_source().client("lambda"), logger)

    def check_environment(self) -> bool:
        return self.build_prober().probe(self.settings.function_name) is FunctionStatus.PRESENT

    def build_provisioner(self) -> EnvironmentProvisioner:
        source = self._require_source()
        source_lambda = source.client("lambda")
        return EnvironmentProvisioner(
            logger=logger,
            console=console,
            settings=self.settings,
            prober=EnvironmentProber(source_lambda, logger),
            cfn_client=source.client("cloudformation"),
            iam_client=source.client("iam"),
            lambda_client=source_lambda,
            storage=StorageService(self.scope.client("s3"), logger),
            source_storage=StorageService(source.client("s3"), logger),
            parameters=ParameterStore(self.scope.client("ssm")),
            source_parameters=ParameterStore(source.client("ssm")),
        )

    def prepare_environment(self, target: ProvisioningTarget):
        self.build_provisioner().prepare(target)

    def call_get_databases(self, project_id: str, db_id: str, spec: DbConnectionSpec) -> Optional[List[str]]:
        lister = RemoteDatabaseLister(
            logger,
            self._require_source().client("lambda"),
            self.settings.function_name,
        )
        return lister.call(project_id, db_id, spec)
