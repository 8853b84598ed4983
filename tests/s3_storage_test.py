"""
Verification Scenarios for the S3 storage backend (botocore Stubber, no network)
"""

import unittest
from datetime import datetime, timezone

import boto3
from botocore.stub import Stubber

from imagestore.s3_storage import S3ImageStorage
from imagestore.storage import ObjectExistsError, StorageBackendError
from webshot.core import StorageConfig

EXPIRES = datetime(2035, 2, 1, tzinfo=timezone.utc)


class TestS3ImageStorage(unittest.TestCase):
    def setUp(self):
        self.client = boto3.client(
            "s3",
            region_name="us-east-1",
            aws_access_key_id="AKIDEXAMPLE",
            aws_secret_access_key="not-a-real-secret",
        )
        self.stubber = Stubber(self.client)
        self.storage = self._storage()

    def _storage(self, **overrides):
        settings = {"bucket": "webshots", "base_directory": "shots", "region": "us-east-1"}
        settings.update(overrides)
        return S3ImageStorage(StorageConfig(**settings), client=self.client)

    def test_requires_bucket(self):
        with self.assertRaises(ValueError):
            S3ImageStorage(StorageConfig(bucket=""), client=self.client)

    def test_key_layout(self):
        self.assertEqual(self.storage.key_for("site1"), "shots/site1")
        self.assertEqual(self._storage(base_directory="shots/").key_for("site1"), "shots/site1")
        self.assertEqual(self._storage(base_directory="").key_for("site1"), "site1")

    def test_exists_true(self):
        self.stubber.add_response(
            "head_object",
            {"ContentLength": 12, "ContentType": "image/jpeg"},
            {"Bucket": "webshots", "Key": "shots/site1"},
        )
        with self.stubber:
            self.assertTrue(self.storage.exists("site1"))
        self.stubber.assert_no_pending_responses()

    def test_exists_false_on_not_found(self):
        self.stubber.add_client_error(
            "head_object",
            service_error_code="404",
            http_status_code=404,
            expected_params={"Bucket": "webshots", "Key": "shots/never-stored"},
        )
        with self.stubber:
            self.assertFalse(self.storage.exists("never-stored"))

    def test_exists_false_on_no_such_key(self):
        self.stubber.add_client_error("head_object", service_error_code="NoSuchKey", http_status_code=404)
        with self.stubber:
            self.assertFalse(self.storage.exists("never-stored"))

    def test_exists_raises_on_other_errors(self):
        """Scenario: Access denied is an error, not 'missing'."""
        self.stubber.add_client_error("head_object", service_error_code="403", http_status_code=403)
        with self.stubber:
            with self.assertRaises(StorageBackendError):
                self.storage.exists("site1")

    def test_put_sends_cache_headers(self):
        self.stubber.add_response(
            "put_object",
            {"ETag": '"d41d8cd98f00b204e9800998ecf8427e"'},
            {
                "Bucket": "webshots",
                "Key": "shots/site1",
                "Body": b"png-bytes",
                "ContentType": "image/jpeg",
                "CacheControl": "max-age=315360000",
                "Expires": EXPIRES,
            },
        )
        with self.stubber:
            self.storage.put(
                "site1",
                b"png-bytes",
                content_type="image/jpeg",
                cache_control="max-age=315360000",
                expires=EXPIRES,
            )
        self.stubber.assert_no_pending_responses()

    def test_put_failure(self):
        self.stubber.add_client_error("put_object", service_error_code="SlowDown", http_status_code=503)
        with self.stubber:
            with self.assertRaises(StorageBackendError) as cm:
                self.storage.put("site1", b"png-bytes", content_type="image/jpeg")
        self.assertNotIsInstance(cm.exception, ObjectExistsError)

    def test_conditional_put(self):
        """Scenario: Create-if-absent write loses the race."""
        storage = self._storage(conditional_put=True)
        self.stubber.add_client_error(
            "put_object",
            service_error_code="PreconditionFailed",
            http_status_code=412,
            expected_params={
                "Bucket": "webshots",
                "Key": "shots/site1",
                "Body": b"png-bytes",
                "ContentType": "image/jpeg",
                "IfNoneMatch": "*",
            },
        )
        with self.stubber:
            with self.assertRaises(ObjectExistsError):
                storage.put("site1", b"png-bytes", content_type="image/jpeg")

    def test_signed_read_url(self):
        url = self.storage.signed_read_url("site1")

        self.assertTrue(url.startswith("https://"))
        self.assertIn("webshots", url)
        self.assertIn("shots/site1", url)


if __name__ == "__main__":
    unittest.main()
