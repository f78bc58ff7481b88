"""Thin boto3 wrappers for the S3 payload store."""
