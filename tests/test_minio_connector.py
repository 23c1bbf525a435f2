import io
from unittest import mock

import pandas as pd

from ingestion.connectors.minio_connector import MinIOConnector

CONFIG = {
    "endpoint": "localhost:9000",
    "access_key": "minioadmin",
    "secret_key": "minioadmin123",
    "bucket": "tabulation-cache",
    "prefix": "vehicles/2019/",
}


def test_connect_creates_missing_bucket():
    client = mock.Mock()
    client.bucket_exists.return_value = False
    MinIOConnector(CONFIG, client=client).connect()
    client.make_bucket.assert_called_once_with("tabulation-cache")


def test_connect_keeps_existing_bucket():
    client = mock.Mock()
    client.bucket_exists.return_value = True
    MinIOConnector(CONFIG, client=client).connect()
    client.make_bucket.assert_not_called()


def test_object_name_uses_prefix():
    assert MinIOConnector(CONFIG).object_name("data_raw") == "vehicles/2019/data_raw.parquet"
    assert MinIOConnector({"bucket": "b"}).object_name("data_raw") == "data_raw.parquet"


def test_write_table_uploads_parquet():
    client = mock.Mock()
    connector = MinIOConnector(CONFIG, client=client)
    df = pd.DataFrame({"SERIALNO": ["A", "B"], "WGTP": ["1", "2"]})

    path = connector.write_table(df, "data_raw")

    assert path == "s3://tabulation-cache/vehicles/2019/data_raw.parquet"
    kwargs = client.put_object.call_args.kwargs
    assert kwargs["bucket_name"] == "tabulation-cache"
    assert kwargs["object_name"] == "vehicles/2019/data_raw.parquet"
    written = pd.read_parquet(io.BytesIO(kwargs["data"].getvalue()))
    pd.testing.assert_frame_equal(written, df)


def test_read_table_hit():
    df = pd.DataFrame({"SERIALNO": ["A"], "WGTP": ["3"]})
    buffer = io.BytesIO()
    df.to_parquet(buffer, index=False)

    response = mock.Mock()
    response.read.return_value = buffer.getvalue()
    client = mock.Mock()
    client.get_object.return_value = response

    result = MinIOConnector(CONFIG, client=client).read_table("data_raw")

    pd.testing.assert_frame_equal(result, df)
    client.get_object.assert_called_once_with("tabulation-cache", "vehicles/2019/data_raw.parquet")
    response.close.assert_called_once()
    response.release_conn.assert_called_once()


def test_read_table_miss_returns_none():
    client = mock.Mock()
    connector = MinIOConnector(CONFIG, client=client)
    with mock.patch.object(MinIOConnector, "object_exists", return_value=False):
        assert connector.read_table("data_raw") is None
    client.get_object.assert_not_called()
