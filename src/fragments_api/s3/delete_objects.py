"""Functions for deleting objects from an S3 bucket--the "D" in CRUD."""

from typing import TYPE_CHECKING, Optional

import boto3

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client


def delete_s3_object(bucket_name: str, object_key: str, s3_client: Optional["S3Client"] = None) -> None:
    """
    Delete an object from an S3 bucket.

    S3 treats deleting a missing key as success, so callers that need
    not-found semantics must check existence first.

    :param bucket_name: The name of the S3 bucket.
    :param object_key: path to the object in the S3 bucket.
    :param s3_client: An optional boto3 S3 client. If not provided, one will be created.
    """
    s3_client = s3_client or boto3.client("s3")
    s3_client.delete_object(Bucket=bucket_name, Key=object_key)
