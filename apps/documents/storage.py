import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

logger = logging.getLogger(__name__)


def get_s3_client():
    """Returns a boto3 S3 client using settings."""
    return boto3.client(
        's3',
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        region_name=settings.AWS_S3_REGION_NAME
    )


def get_user_s3_prefix(user_id):
    """Standardized prefix for user folders."""
    return f"users/{user_id}/documents/"


def upload_document(user_id, file_obj, key_name, content_type=None):
    """
    Uploads a file to the user's S3 folder.

    Returns the object key, or None if the upload failed.
    """
    s3 = get_s3_client()
    key = f"{get_user_s3_prefix(user_id)}{key_name}"
    extra_args = {'ContentType': content_type} if content_type else None

    try:
        s3.upload_fileobj(file_obj, settings.AWS_STORAGE_BUCKET_NAME, key, ExtraArgs=extra_args)
        logger.info("Uploaded %s to %s", key_name, key)
        return key
    except (ClientError, BotoCoreError) as e:
        logger.error("Error uploading to S3: %s", e)
        return None


def generate_presigned_url_for_key(s3_key, expiration=None):
    """Generates a presigned download URL for an S3 object given its full key."""
    s3 = get_s3_client()
    try:
        return s3.generate_presigned_url(
            'get_object',
            Params={'Bucket': settings.AWS_STORAGE_BUCKET_NAME, 'Key': s3_key},
            ExpiresIn=expiration or settings.PRESIGNED_URL_EXPIRY
        )
    except (ClientError, BotoCoreError) as e:
        logger.error("Error generating presigned URL for key %s: %s", s3_key, e)
        return None


def delete_document_object(s3_key):
    """Deletes an S3 object given its full key."""
    s3 = get_s3_client()
    try:
        s3.delete_object(Bucket=settings.AWS_STORAGE_BUCKET_NAME, Key=s3_key)
        logger.info("Deleted S3 object: %s", s3_key)
        return True
    except (ClientError, BotoCoreError) as e:
        logger.error("Error deleting S3 key %s: %s", s3_key, e)
        return False
