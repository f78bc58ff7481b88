"""Functions for reading objects from an S3 bucket--the "R" in CRUD."""

from typing import TYPE_CHECKING, Optional

import boto3
from botocore.exceptions import ClientError

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

MISSING_OBJECT_CODES = ("404", "NoSuchKey", "NotFound")


def is_missing_object_error(error: ClientError) -> bool:
    """True if a ClientError means the object (not the bucket or service) is absent."""
    return error.response.get("Error", {}).get("Code") in MISSING_OBJECT_CODES


def object_exists_in_s3(bucket_name: str, object_key: str, s3_client: Optional["S3Client"] = None) -> bool:
    """
    Check if an object exists in the S3 bucket using head_object.

    :param bucket_name: Name of the S3 bucket.
    :param object_key: Key of the object to check.
    :param s3_client: Optional S3 client to use. If not provided, a new client will be created.

    :return: True if the object exists, False otherwise.
    """
    s3_client = s3_client or boto3.client("s3")
    try:
        s3_client.head_object(Bucket=bucket_name, Key=object_key)
        return True
    except ClientError as err:
        if is_missing_object_error(err):
            return False
        raise


def fetch_s3_object(bucket_name: str, object_key: str, s3_client: Optional["S3Client"] = None) -> bytes:
    """
    Fetch the full body of an object from an S3 bucket.

    :param bucket_name: The name of the S3 bucket.
    :param object_key: The key (path) of the object in the S3 bucket.
    :param s3_client: An optional boto3 S3 client. If not provided, one will be created.

    :return: The object's content as bytes.
    """
    s3_client = s3_client or boto3.client("s3")
    response = s3_client.get_object(Bucket=bucket_name, Key=object_key)
    body = response["Body"]
    try:
        return body.read()
    finally:
        body.close()
