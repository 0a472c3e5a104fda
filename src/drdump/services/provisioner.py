"""Source environment preparation: bucket stack, listing function, VPC attachment."""

from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from drdump.errors import DumpError, MissingRoleError, ProviderError, StageError
from drdump.errors_catalog import actionable_error
from drdump.models import FunctionStatus, ProvisioningTarget, ProvisionStep, Settings
from drdump.services.stack import StackUpdater


class EnvironmentProvisioner:
    """Idempotently provisions what the remote listing function needs.

    The CloudFormation, IAM and Lambda clients, ``source_storage`` and
    ``source_parameters`` belong to the source scope. ``storage`` and
    ``parameters`` belong to the default scope where deployment assets live.
    """

    def __init__(
        self,
        logger,
        console,
        settings: Settings,
        prober,
        cfn_client,
        iam_client,
        lambda_client,
        storage,
        source_storage,
        parameters,
        source_parameters,
    ):
        self.logger = logger
        self.console = console
        self.settings = settings
        self.prober = prober
        self.cfn = cfn_client
        self.iam = iam_client
        self.lambda_client = lambda_client
        self.storage = storage
        self.source_storage = source_storage
        self.parameters = parameters
        self.source_parameters = source_parameters

    def _run_step(self, step: ProvisionStep, callback, *args):
        self.logger.debug("Starting provisioning step: %s", step.value)
        try:
            return callback(*args)
        except StageError:
            raise
        except (DumpError, ClientError, BotoCoreError) as exc:
            self.logger.warning("Provisioning step %s failed: %s", step.value, exc)
            raise StageError(step, exc) from exc

    def prepare(self, target: ProvisioningTarget):
        self.console.print(f"[blue]Preparing environment at region {target.region}...[/blue]")
        self.logger.info("Prepare environment at region %s", target.region)

        self._run_step(ProvisionStep.STACK, self.deploy_bucket_stack, target)
        self._run_step(ProvisionStep.FUNCTION, self.create_function, target)
        self._run_step(ProvisionStep.NETWORK, self.configure_network, target)

        self.console.print("[green]Environment is ready.[/green]")

    def deploy_bucket_stack(self, target: ProvisioningTarget):
        updater = StackUpdater(self.cfn, target.stack_name, self.logger)
        if updater.is_valid():
            self.logger.info("Stack [%s] already exists.", target.stack_name)
            return

        body = self.storage.read_text(
            self.parameters.get_parameter(self.settings.bucket_parameter),
            self.settings.bucket_template_key,
        )
        updater.update(body)

    def find_role_arn(self, prefix: str) -> str:
        """Returns the ARN of the first role, in listing order, whose name starts with ``prefix``.

        Pages are fetched lazily, so listing stops at the page holding the match.
        """
        paginator = self.iam.get_paginator("list_roles")
        for page in paginator.paginate():
            for role in page.get("Roles", []):
                if role["RoleName"].startswith(prefix):
                    self.logger.debug("Found role %s", role["RoleName"])
                    return role["Arn"]
        raise MissingRoleError(actionable_error("missing_role", prefix=prefix))

    def copy_function_package(self) -> str:
        key = self.settings.function_package_key
        source_bucket = self.source_parameters.get_parameter(self.settings.bucket_parameter)
        self.storage.copy_to(
            self.source_storage,
            self.parameters.get_parameter(self.settings.bucket_parameter),
            source_bucket,
            key,
        )
        return source_bucket

    def _wait_function(self, waiter_name: str, function_name: str):
        try:
            self.lambda_client.get_waiter(waiter_name).wait(FunctionName=function_name)
        except WaiterError as exc:
            raise ProviderError(f"Function {function_name} did not settle: {exc}") from exc

    def create_function(self, target: ProvisioningTarget):
        if self.prober.probe(target.function_name) is FunctionStatus.PRESENT:
            self.logger.info("Function %s already exists.", target.function_name)
            return

        role_arn = self.find_role_arn(self.settings.function_role_prefix)
        bucket = self.copy_function_package()

        self.console.print(f"[blue]Creating function {target.function_name}...[/blue]")
        self.lambda_client.create_function(
            FunctionName=target.function_name,
            Runtime=self.settings.function_runtime,
            Handler=self.settings.function_handler,
            Role=role_arn,
            MemorySize=self.settings.function_memory_mb,
            Timeout=self.settings.function_timeout_seconds,
            Code={"S3Bucket": bucket, "S3Key": self.settings.function_package_key},
        )
        self._wait_function("function_active_v2", target.function_name)
        self.logger.info("Created function %s with role %s", target.function_name, role_arn)

    def configure_network(self, target: ProvisioningTarget):
        # Full replace of the VPC config, so re-applying is harmless.
        self.lambda_client.update_function_configuration(
            FunctionName=target.function_name,
            VpcConfig={
                "SubnetIds": list(target.subnet_ids),
                "SecurityGroupIds": list(target.security_group_ids),
            },
        )
        self._wait_function("function_updated_v2", target.function_name)
        self.logger.info(
            "Attached %s to subnets %s and security groups %s",
            target.function_name,
            ", ".join(target.subnet_ids) or "<none>",
            ", ".join(target.security_group_ids) or "<none>",
        )
