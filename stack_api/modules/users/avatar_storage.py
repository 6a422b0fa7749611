import boto3
from botocore.exceptions import ClientError
from stack_api.config.settings import settings
import logging

logger = logging.getLogger(__name__)


def avatar_key(user_id: str) -> str:
    return f"profile_images/{user_id}.jpg"


class AvatarStorage:
    """Profile images in S3, one object per user"""

    def __init__(self):
        if not all([settings.aws_access_key_id, settings.aws_secret_access_key, settings.s3_bucket_name]):
            raise ValueError("AWS S3 credentials and bucket name must be configured")

        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = settings.s3_bucket_name

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket_name}.s3.{settings.aws_region}.amazonaws.com/{key}"

    def upload_avatar(self, user_id: str, content: bytes, content_type: str = "image/jpeg") -> str:
        """Upload (or replace) the user's image and return its https URL"""
        key = avatar_key(user_id)
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=content,
                ContentType=content_type
            )
            return self.public_url(key)
        except ClientError as e:
            logger.error(f"Failed to upload avatar to S3: {str(e)}")
            raise

    def delete_avatar(self, user_id: str) -> bool:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=avatar_key(user_id))
            return True
        except ClientError as e:
            logger.error(f"Failed to delete avatar from S3: {str(e)}")
            return False
