"""Existence checks against the source environment."""

from botocore.exceptions import ClientError

from drdump.models import FunctionStatus

NOT_FOUND_CODE = "ResourceNotFoundException"


class EnvironmentProber:
    """Tells "confirmed absent" apart from "the probe itself failed".

    Only a not-found response maps to ``FunctionStatus.ABSENT``; every other
    client error is raised unchanged.
    """

    def __init__(self, lambda_client, logger):
        self.lambda_client = lambda_client
        self.logger = logger

    def probe(self, function_name: str) -> FunctionStatus:
        try:
            self.lambda_client.get_function(FunctionName=function_name)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == NOT_FOUND_CODE:
                self.logger.debug("Function %s not found.", function_name)
                return FunctionStatus.ABSENT
            raise
        return FunctionStatus.PRESENT

    def function_exists(self, function_name: str) -> bool:
        return self.probe(function_name) is FunctionStatus.PRESENT
