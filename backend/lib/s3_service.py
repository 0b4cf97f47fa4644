"""
=============================================================================
S3 SERVICE - Amazon Simple Storage Service Integration
=============================================================================

The tracker keeps its whole state in two JSON documents ("blobs"):
- the plant configuration (extraction points and their assets)
- the list of counter readings

When S3 storage is enabled each blob is stored as one object:

    Bucket: pumping-tracker-data
    Key:    state/bes_v3_config.json
    Key:    state/bes_v3_readings.json

Objects are always rewritten whole; there is no partial update.
=============================================================================
"""

# boto3 - The official AWS SDK for Python
import boto3

# ClientError - Exception class for AWS API errors
from botocore.exceptions import ClientError

# os - For reading environment variables
import os

# typing - For type hints
from typing import Optional


class S3Service:
    """
    Small key -> bytes store on top of one S3 bucket.

    Usage:
        s3 = S3Service()
        s3.create_bucket_if_not_exists()
        s3.put_blob("bes_v3_readings", b"[]")
        data = s3.get_blob("bes_v3_readings")
    """

    def __init__(self, bucket_name: str = None, prefix: str = "state/"):
        """
        Initialize the S3 service.

        AWS credentials are loaded from these environment variables:
        - AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY
        - AWS_SESSION_TOKEN (temporary credentials only)
        - AWS_REGION (default 'us-east-1')

        Args:
            bucket_name: Optional bucket name. Defaults to S3_BUCKET_NAME
                         from the environment.
            prefix: Folder inside the bucket holding the blobs.
        """
        self.bucket_name = bucket_name or os.getenv('S3_BUCKET_NAME', 'pumping-tracker-data')
        self.prefix = prefix
        self.region = os.getenv('AWS_REGION', 'us-east-1')

        session_token = os.getenv('AWS_SESSION_TOKEN')

        self.s3_client = boto3.client(
            's3',
            region_name=self.region,
            aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
            aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
            aws_session_token=session_token if session_token else None
        )

    def object_key(self, name: str) -> str:
        return f"{self.prefix}{name}.json"

    def create_bucket_if_not_exists(self) -> bool:
        """
        Create the bucket if it doesn't already exist.

        Returns:
            bool: True if the bucket exists or was created

        Note:
            us-east-1 must not be given a LocationConstraint.
        """
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            return True

        except ClientError as e:
            error_code = e.response['Error']['Code']

            if error_code == '404':
                try:
                    if self.region == 'us-east-1':
                        self.s3_client.create_bucket(Bucket=self.bucket_name)
                    else:
                        self.s3_client.create_bucket(
                            Bucket=self.bucket_name,
                            CreateBucketConfiguration={'LocationConstraint': self.region}
                        )
                    print(f"Created bucket: {self.bucket_name}")
                    return True

                except ClientError as create_error:
                    print(f"Failed to create bucket: {create_error}")
                    return False
            else:
                print(f"Error checking bucket: {e}")
                return False

    def put_blob(self, name: str, content: bytes) -> None:
        """
        Store a blob, replacing any previous content.

        Raises:
            ClientError: if the upload fails (after printing it)
        """
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=self.object_key(name),
                Body=content,
                ContentType='application/json'
            )
        except ClientError as e:
            print(f"Failed to upload {name} to S3: {e}")
            raise

    def get_blob(self, name: str) -> Optional[bytes]:
        """
        Fetch a blob.

        Returns:
            bytes: The stored content, or None if nothing was stored yet

        Raises:
            ClientError: for any failure other than a missing object
        """
        try:
            response = self.s3_client.get_object(
                Bucket=self.bucket_name,
                Key=self.object_key(name)
            )
            return response['Body'].read()

        except ClientError as e:
            if e.response['Error']['Code'] in ('NoSuchKey', '404'):
                return None
            print(f"Failed to download {name} from S3: {e}")
            raise

    def delete_blob(self, name: str) -> bool:
        """
        Delete a blob. Deleting a missing blob is not an error in S3.

        Returns:
            bool: True if successful, False otherwise
        """
        try:
            self.s3_client.delete_object(
                Bucket=self.bucket_name,
                Key=self.object_key(name)
            )
            return True

        except ClientError as e:
            print(f"Failed to delete {name} from S3: {e}")
            return False
