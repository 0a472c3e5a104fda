"""Client side of the remote database listing function."""

import json
from dataclasses import replace
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from drdump.models import DbConnectionSpec
from drdump.services.secrets import secret_id_of_db

SOURCE_SIDE = "source"


class RemoteDatabaseLister:
    def __init__(self, logger, lambda_client, function_name: str):
        self.logger = logger
        self.lambda_client = lambda_client
        self.function_name = function_name

    def call(self, project_id: str, db_id: str, spec: DbConnectionSpec) -> Optional[List[str]]:
        """Invokes the listing function; returns None if invocation or decoding fails."""
        spec = replace(spec, password_id=secret_id_of_db(project_id, SOURCE_SIDE, db_id))
        payload = json.dumps(spec.to_payload()).encode("utf-8")

        try:
            response = self.lambda_client.invoke(FunctionName=self.function_name, Payload=payload)
            raw_output = response["Payload"].read()
        except (ClientError, BotoCoreError) as exc:
            self.logger.warning("Unable to invoke %s: %s", self.function_name, exc)
            return None

        try:
            output = raw_output.decode("utf-8")
        except UnicodeDecodeError as exc:
            self.logger.warning("Unable to decode %s output: %s", self.function_name, exc)
            return None

        self.logger.debug(
            "%s (%s) output %s", self.function_name, response.get("StatusCode"), output
        )
        if response.get("FunctionError"):
            self.logger.warning("%s reported %s: %s", self.function_name, response["FunctionError"], output)
            return None

        try:
            databases = json.loads(output)
        except json.JSONDecodeError as exc:
            self.logger.warning("Unable to decode %s output: %s", self.function_name, exc)
            return None

        if not isinstance(databases, list):
            self.logger.warning("%s returned %s instead of a list.", self.function_name, type(databases).__name__)
            return None
        return [str(name) for name in databases]
