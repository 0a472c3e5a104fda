"""Secrets Manager access: database passwords and project credentials."""

import json

from botocore.exceptions import ClientError

from drdump.errors import DumpError, ProviderError
from drdump.services.aws import Credential

SECRET_ROOT = "drportal/projects"
ASSUMED_SESSION_NAME = "drdump"


def secret_id_of_db(project_id: str, side: str, db_id: str) -> str:
    return f"{SECRET_ROOT}/{project_id}/{side}/databases/{db_id}"


def secret_id_of_credential(project_id: str) -> str:
    return f"{SECRET_ROOT}/{project_id}/credential"


class SecretManager:
    def __init__(self, secrets_client, sts_client=None):
        self.secrets_client = secrets_client
        self.sts_client = sts_client

    def get_secret(self, secret_id: str) -> str:
        if not secret_id:
            raise DumpError("A secret id is required to resolve the password.")
        try:
            response = self.secrets_client.get_secret_value(SecretId=secret_id)
        except ClientError as exc:
            raise ProviderError(f"Unable to read secret {secret_id}: {exc}") from exc
        return response["SecretString"]

    def get_credential_by_project(self, project_id: str) -> Credential:
        """Resolves the source-account credential stored for a project.

        The secret is a JSON document holding either ``roleArn`` (assumed for
        temporary keys) or ``accessKeyId``/``secretAccessKey``.
        """
        secret_id = secret_id_of_credential(project_id)
        try:
            document = json.loads(self.get_secret(secret_id))
        except json.JSONDecodeError as exc:
            raise ProviderError(f"Secret {secret_id} is not valid JSON.") from exc

        role_arn = document.get("roleArn")
        if role_arn:
            if self.sts_client is None:
                raise ProviderError(f"Secret {secret_id} needs STS to assume {role_arn}.")
            try:
                response = self.sts_client.assume_role(
                    RoleArn=role_arn,
                    RoleSessionName=ASSUMED_SESSION_NAME,
                    **({"ExternalId": document["externalId"]} if document.get("externalId") else {}),
                )
            except ClientError as exc:
                raise ProviderError(f"Unable to assume {role_arn}: {exc}") from exc
            keys = response["Credentials"]
            return Credential(
                access_key_id=keys["AccessKeyId"],
                secret_access_key=keys["SecretAccessKey"],
                session_token=keys["SessionToken"],
            )

        try:
            return Credential(
                access_key_id=document["accessKeyId"],
                secret_access_key=document["secretAccessKey"],
                session_token=document.get("sessionToken"),
            )
        except KeyError as exc:
            raise ProviderError(f"Secret {secret_id} is missing {exc}.") from exc
