"""CloudFormation stack create/update with completion polling."""

from typing import Optional

from botocore.exceptions import ClientError, WaiterError

from drdump.errors import ProviderError
from drdump.errors_catalog import actionable_error


class StackUpdater:
    """Creates or updates a single named stack and waits until it settles."""

    VALID_STATUSES = {
        "CREATE_COMPLETE",
        "UPDATE_COMPLETE",
        "UPDATE_ROLLBACK_COMPLETE",
        "IMPORT_COMPLETE",
    }
    RECREATE_STATUSES = {"ROLLBACK_COMPLETE"}
    NO_UPDATES_MESSAGE = "No updates are to be performed"
    CAPABILITIES = ["CAPABILITY_IAM", "CAPABILITY_NAMED_IAM"]

    def __init__(self, cfn_client, stack_name: str, logger, waiter_delay: int = 10, waiter_max_attempts: int = 180):
        self.cfn_client = cfn_client
        self.stack_name = stack_name
        self.logger = logger
        self.waiter_config = {"Delay": waiter_delay, "MaxAttempts": waiter_max_attempts}

    def status(self) -> Optional[str]:
        """Returns the stack status, or None when the stack does not exist."""
        try:
            stacks = self.cfn_client.describe_stacks(StackName=self.stack_name)["Stacks"]
        except ClientError as exc:
            message = exc.response.get("Error", {}).get("Message", "")
            if "does not exist" in message:
                return None
            raise ProviderError(f"Unable to describe stack {self.stack_name}: {exc}") from exc
        if not stacks:
            return None
        return stacks[0]["StackStatus"]

    def is_valid(self) -> bool:
        return self.status() in self.VALID_STATUSES

    def _wait(self, waiter_name: str):
        try:
            self.cfn_client.get_waiter(waiter_name).wait(
                StackName=self.stack_name,
                WaiterConfig=self.waiter_config,
            )
        except WaiterError as exc:
            raise ProviderError(
                actionable_error("stack_failed", stack=self.stack_name, reason=str(exc))
            ) from exc

    def _create(self, template_body: str):
        self.logger.info("Creating stack [%s]", self.stack_name)
        self.cfn_client.create_stack(
            StackName=self.stack_name,
            TemplateBody=template_body,
            Capabilities=self.CAPABILITIES,
        )
        self._wait("stack_create_complete")

    def update(self, template_body: str):
        status = self.status()
        try:
            if status is None:
                self._create(template_body)
                return

            if status in self.RECREATE_STATUSES:
                self.logger.warning("Stack [%s] is %s, deleting before re-creating.", self.stack_name, status)
                self.cfn_client.delete_stack(StackName=self.stack_name)
                self._wait("stack_delete_complete")
                self._create(template_body)
                return

            if status.endswith("_IN_PROGRESS"):
                raise ProviderError(
                    actionable_error("stack_failed", stack=self.stack_name, reason=f"status is {status}")
                )

            self.logger.info("Updating stack [%s] from status %s", self.stack_name, status)
            try:
                self.cfn_client.update_stack(
                    StackName=self.stack_name,
                    TemplateBody=template_body,
                    Capabilities=self.CAPABILITIES,
                )
            except ClientError as exc:
                if self.NO_UPDATES_MESSAGE in exc.response.get("Error", {}).get("Message", ""):
                    self.logger.info("Stack [%s] is already up to date.", self.stack_name)
                    return
                raise
            self._wait("stack_update_complete")
        except ClientError as exc:
            raise ProviderError(f"Stack [{self.stack_name}] submission was rejected: {exc}") from exc
