"""Credential scopes for boto3 clients."""

from dataclasses import dataclass
from typing import Optional

import boto3


@dataclass(frozen=True)
class Credential:
    access_key_id: str
    secret_access_key: str
    session_token: Optional[str] = None

    def __repr__(self) -> str:
        return f"Credential(access_key_id={self.access_key_id!r}, secret_access_key='****')"


@dataclass(frozen=True)
class AwsScope:
    """A region plus credential pair that every client of one side shares.

    ``AwsScope()`` uses the default credential chain of the running process.
    A source scope always carries the credential resolved for its project.
    """

    region: Optional[str] = None
    credential: Optional[Credential] = None

    def session(self) -> boto3.session.Session:
        if self.credential is None:
            return boto3.session.Session(region_name=self.region)
        return boto3.session.Session(
            aws_access_key_id=self.credential.access_key_id,
            aws_secret_access_key=self.credential.secret_access_key,
            aws_session_token=self.credential.session_token,
            region_name=self.region,
        )

    def client(self, service_name: str):
        return self.session().client(service_name)
