"""Parameter Store lookups."""

from botocore.exceptions import ClientError

from drdump.errors import ProviderError
from drdump.errors_catalog import actionable_error


class ParameterStore:
    def __init__(self, ssm_client):
        self.ssm_client = ssm_client

    def get_parameter(self, name: str) -> str:
        try:
            parameters = self.ssm_client.get_parameters(Names=[name])["Parameters"]
        except ClientError as exc:
            raise ProviderError(f"Unable to read parameter {name}: {exc}") from exc
        if not parameters:
            raise ProviderError(actionable_error("missing_parameter", name=name))
        return parameters[0]["Value"]
