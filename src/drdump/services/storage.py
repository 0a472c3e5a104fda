"""S3 object storage helpers."""

from botocore.exceptions import BotoCoreError, ClientError

from drdump.errors import ProviderError


class StorageService:
    """Wraps one S3 client; each credential scope gets its own instance."""

    def __init__(self, s3_client, logger):
        self.s3_client = s3_client
        self.logger = logger

    def upload_file(self, path: str, bucket: str, key: str):
        try:
            self.s3_client.upload_file(path, bucket, key)
        except (ClientError, BotoCoreError) as exc:
            raise ProviderError(f"Unable to upload {path} to s3://{bucket}/{key}: {exc}") from exc
        self.logger.debug("Uploaded %s to s3://%s/%s", path, bucket, key)

    def read_text(self, bucket: str, key: str, encoding: str = "utf-8") -> str:
        try:
            response = self.s3_client.get_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            raise ProviderError(f"Unable to read s3://{bucket}/{key}: {exc}") from exc
        body = response["Body"]
        try:
            return body.read().decode(encoding)
        finally:
            body.close()

    def copy_to(self, target: "StorageService", source_bucket: str, target_bucket: str, key: str):
        """Streams an object from this scope's bucket into another scope's bucket."""
        try:
            response = self.s3_client.get_object(Bucket=source_bucket, Key=key)
            body = response["Body"]
            extra_args = {}
            if response.get("ContentType"):
                extra_args["ContentType"] = response["ContentType"]
            try:
                target.s3_client.upload_fileobj(body, target_bucket, key, ExtraArgs=extra_args)
            finally:
                body.close()
        except (ClientError, BotoCoreError) as exc:
            raise ProviderError(
                f"Unable to copy s3://{source_bucket}/{key} to s3://{target_bucket}/{key}: {exc}"
            ) from exc
        self.logger.info("Copied %s from %s to %s", key, source_bucket, target_bucket)
