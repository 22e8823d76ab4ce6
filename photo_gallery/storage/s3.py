import boto3
import json
from datetime import datetime
from typing import Dict, Iterator, Optional
from urllib.parse import quote
from botocore.exceptions import ClientError
from pydantic import BaseModel
from photo_gallery.settings import settings
import logging

log = logging.getLogger(__name__)

NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}


class ObjectStat(BaseModel):
    """Size, modification time and headers of a stored object."""
    key: str
    size: int
    last_modified: Optional[datetime] = None
    headers: Dict[str, str] = {}


def is_not_found(error: ClientError) -> bool:
    code = str(error.response.get("Error", {}).get("Code"))
    return code in NOT_FOUND_CODES


def public_read_policy(bucket: str) -> str:
    """Bucket policy letting anyone GET objects, so the browser can load images directly."""
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"AWS": ["*"]},
                "Action": ["s3:GetObject"],
                "Resource": [f"arn:aws:s3:::{bucket}/*"],
            }
        ],
    })


# -------------------------
# S3 Service
# -------------------------
class S3Service:
    def __init__(self, bucket: Optional[str] = None):
        self.bucket = bucket or settings.s3_bucket
        session = boto3.session.Session(region_name=settings.aws_region)
        kwargs = {
            "aws_access_key_id": settings.aws_access_key_id,
            "aws_secret_access_key": settings.aws_secret_access_key,
        }
        if settings.aws_endpoint_url:
            kwargs["endpoint_url"] = settings.aws_endpoint_url

        self.client = session.client("s3", **kwargs)
        log.info("Initialized S3 client for bucket %s", self.bucket)

    def ensure_bucket(self):
        """Creates the bucket with a public-read policy when it does not exist yet."""
        try:
            self.client.head_bucket(Bucket=self.bucket)
            log.debug("Bucket %s already exists", self.bucket)
            return
        except ClientError as e:
            if not is_not_found(e):
                log.error("Failed to check bucket: %s", e)
                raise

        if settings.aws_region and settings.aws_region.lower() != "us-east-1":
            self.client.create_bucket(
                Bucket=self.bucket,
                CreateBucketConfiguration={"LocationConstraint": settings.aws_region},
            )
        else:
            self.client.create_bucket(Bucket=self.bucket)
        self.client.put_bucket_policy(Bucket=self.bucket, Policy=public_read_policy(self.bucket))
        log.info("Created bucket %s and applied public-read policy", self.bucket)

    def upload(self, fileobj, key: str, content_type: str, metadata: Optional[Dict[str, str]] = None):
        self.client.upload_fileobj(
            Fileobj=fileobj,
            Bucket=self.bucket,
            Key=key,
            ExtraArgs={"ContentType": content_type, "Metadata": metadata or {}},
        )
        log.debug("Uploaded %s to s3://%s/%s", key, self.bucket, key)

    def list_keys(self) -> Iterator[str]:
        """Yields every key in the bucket, recursively."""
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket):
            for obj in page.get("Contents", []):
                yield obj["Key"]

    def stat(self, key: str) -> ObjectStat:
        """
            Returns size, modification time and headers for a key.
            Headers hold both the raw response headers (x-amz-meta-title, content-type, ...)
            and the user metadata keys boto3 strips the prefix from (title, ...).
        """
        resp = self.client.head_object(Bucket=self.bucket, Key=key)
        headers = dict(resp.get("ResponseMetadata", {}).get("HTTPHeaders", {}))
        headers.update(resp.get("Metadata", {}))
        if resp.get("ContentType"):
            headers.setdefault("content-type", resp["ContentType"])
        return ObjectStat(
            key=key,
            size=int(resp.get("ContentLength", 0)),
            last_modified=resp.get("LastModified"),
            headers=headers,
        )

    def exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if is_not_found(e):
                return False
            raise
        return True

    def delete(self, key: str):
        self.client.delete_object(Bucket=self.bucket, Key=key)
        log.debug("Deleted s3://%s/%s", self.bucket, key)

    def public_url(self, key: str) -> str:
        base = settings.external_endpoint.rstrip("/")
        return f"{base}/{self.bucket}/{quote(key)}"

    def close(self):
        self.client.close()
        log.info("Closed S3 client")
