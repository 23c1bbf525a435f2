"""
MinIO Table Cache Connector
===========================

Caches intermediate tables (raw extract, normalized households, long and
wide tabulations) in MinIO object storage (S3-compatible) as Parquet.
Objects live under stable names so a later run can reuse them.
"""

import io
import logging
from typing import Dict, Optional
import pandas as pd
from minio import Minio
from minio.error import S3Error

logger = logging.getLogger(__name__)


class MinIOConnector:
    """
    MinIO object storage connector for the intermediate table cache.
    """

    def __init__(self, config: Dict, client: Optional[Minio] = None):
        """
        Initialize MinIO connector.

        Args:
            config: Connection configuration dict with endpoint, access_key,
                    secret_key, bucket and prefix
            client: Optional pre-built Minio client
        """
        self.config = config
        self.client = client
        self.bucket = config.get("bucket", "tabulation-cache")
        self.prefix = config.get("prefix", "").strip("/")

    def connect(self):
        """Establish connection to MinIO."""
        if self.client is None:
            self.client = Minio(
                endpoint=self.config["endpoint"],
                access_key=self.config["access_key"],
                secret_key=self.config["secret_key"],
                secure=self.config.get("secure", False)
            )

        # Test connection and ensure bucket exists
        if not self.client.bucket_exists(self.bucket):
            self.client.make_bucket(self.bucket)
            logger.info(f"Created bucket: {self.bucket}")

        logger.info(f"Connected to MinIO: {self.config.get('endpoint')}, bucket: {self.bucket}")

    def object_name(self, table_name: str) -> str:
        """Object path for a cached table."""
        name = f"{table_name}.parquet"
        return f"{self.prefix}/{name}" if self.prefix else name

    def write_table(self, df: pd.DataFrame, table_name: str, compression: str = "snappy") -> str:
        """
        Write DataFrame to the cache, replacing any previous copy.

        Args:
            df: Pandas DataFrame to write
            table_name: Logical table name (e.g. 'data_raw')
            compression: Parquet compression codec

        Returns:
            Full object path
        """
        buffer = io.BytesIO()
        df.to_parquet(buffer, index=False, compression=compression)
        buffer.seek(0)
        object_name = self.object_name(table_name)

        self.client.put_object(
            bucket_name=self.bucket,
            object_name=object_name,
            data=buffer,
            length=buffer.getbuffer().nbytes,
            content_type="application/octet-stream"
        )

        logger.info(f"Written {len(df)} rows to s3://{self.bucket}/{object_name}")
        return f"s3://{self.bucket}/{object_name}"

    def read_table(self, table_name: str) -> Optional[pd.DataFrame]:
        """
        Read a cached table.

        Args:
            table_name: Logical table name

        Returns:
            DataFrame, or None if the table is not cached
        """
        object_name = self.object_name(table_name)
        if not self.object_exists(object_name):
            logger.info(f"Cache miss: s3://{self.bucket}/{object_name}")
            return None

        response = self.client.get_object(self.bucket, object_name)
        try:
            df = pd.read_parquet(io.BytesIO(response.read()))
        finally:
            response.close()
            response.release_conn()

        logger.info(f"Cache hit: {len(df)} rows from s3://{self.bucket}/{object_name}")
        return df

    def object_exists(self, object_name: str) -> bool:
        """
        Check if object exists.

        Args:
            object_name: Object path to check

        Returns:
            True if exists, False otherwise
        """
        try:
            self.client.stat_object(self.bucket, object_name)
            return True
        except S3Error:
            return False
