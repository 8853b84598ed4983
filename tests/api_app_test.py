"""
Verification Scenarios for the HTTP routes (service mocked)
"""

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from api.app import app
from imagestore.storage import ImageStorage
from rendering.engine import RenderingEngine
from rendering.models import RenderOptions, RenderedImage
from webshot.errors import ConflictError, NotFoundError, RenderFailed, StorageError, ValidationError
from webshot.service import ImageStoreService


class TestApiRoutes(unittest.TestCase):
    def setUp(self):
        self.service = MagicMock(spec=ImageStoreService)
        app.config["TESTING"] = True
        app.config["IMAGE_STORE_SERVICE"] = self.service
        self.client = app.test_client()

    def tearDown(self):
        app.config.pop("IMAGE_STORE_SERVICE", None)

    def _rendered_image(self, url, data=b"\x89PNG-bytes"):
        fd, path = tempfile.mkstemp(suffix=".png")
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        return RenderedImage(path=Path(path), url=url)

    # --- store ---

    def test_store_success(self):
        self.service.store.return_value = "/f/site1"

        resp = self.client.post("/store", data={
            "name": "site1",
            "url": "http://example.com/about/",
            "width": "800",
            "height": "600",
        })

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json(), {"url": "/f/site1"})
        self.service.store.assert_called_once_with(
            "site1",
            "http://example.com/about/",
            RenderOptions(width=800, height=600, delay_ms=None, user_agent=None, full_page=False),
        )

    def test_store_via_query_string(self):
        self.service.store.return_value = "/f/site2"

        resp = self.client.get("/store?name=site2&url=https://example.com/&delay=20000&full=true&userAgent=Bot")

        self.assertEqual(resp.status_code, 200)
        options = self.service.store.call_args[0][2]
        self.assertEqual(options.delay_ms, 20000)
        self.assertTrue(options.full_page)
        self.assertEqual(options.user_agent, "Bot")

    def test_full_requires_literal_true(self):
        self.service.store.return_value = "/f/site3"

        self.client.get("/store?name=site3&url=https://example.com/&full=1")

        self.assertFalse(self.service.store.call_args[0][2].full_page)

    def test_store_conflict(self):
        self.service.store.side_effect = ConflictError("A URL by that name already exists")

        resp = self.client.post("/store", data={"name": "site1", "url": "http://example.com/"})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_data(as_text=True), "A URL by that name already exists")

    def test_store_missing_name(self):
        self.service.store.side_effect = ValidationError("Missing name")

        resp = self.client.post("/store", data={"url": "http://example.com/"})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.service.store.call_args[0][0], None)

    def test_store_non_numeric_width(self):
        resp = self.client.post("/store", data={"name": "site1", "url": "http://example.com/", "width": "wide"})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_data(as_text=True), "Invalid width")
        self.service.store.assert_not_called()

    def test_store_storage_failure(self):
        self.service.store.side_effect = StorageError("Unable to upload the rendered image of the website to storage")

        resp = self.client.post("/store", data={"name": "site1", "url": "http://example.com/"})

        self.assertEqual(resp.status_code, 500)

    # --- fetch ---

    def test_fetch_redirects(self):
        self.service.fetch_redirect_target.return_value = "https://webshots.s3.amazonaws.com/shots/site1?Signature=x"

        resp = self.client.get("/f/site1")

        self.assertEqual(resp.status_code, 302)
        self.assertEqual(resp.headers["Location"], "https://webshots.s3.amazonaws.com/shots/site1?Signature=x")
        self.service.fetch_redirect_target.assert_called_once_with("site1")

    def test_fetch_unknown(self):
        self.service.fetch_redirect_target.side_effect = NotFoundError("A URL by that name does not exist")

        resp = self.client.get("/f/never-stored")

        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.get_data(as_text=True), "A URL by that name does not exist")

    def test_fetch_storage_failure(self):
        self.service.fetch_redirect_target.side_effect = StorageError("Unable to check whether the image exists")

        resp = self.client.get("/f/site1")

        self.assertEqual(resp.status_code, 500)

    # --- name validation (real service, mocked collaborators) ---

    def _use_real_service(self):
        storage = MagicMock(spec=ImageStorage)
        storage.exists.return_value = True
        renderer = MagicMock(spec=RenderingEngine)
        app.config["IMAGE_STORE_SERVICE"] = ImageStoreService(renderer, storage)
        return storage, renderer

    def test_fetch_rejects_escaping_names(self):
        storage, _ = self._use_real_service()

        for path in ("/f/..%2Fprivate%2Fpayroll.pdf", "/f/a%2F..%2F..%2Fx"):
            resp = self.client.get(path)
            self.assertEqual(resp.status_code, 400)
            self.assertEqual(resp.get_data(as_text=True), "Invalid name")

        storage.signed_read_url.assert_not_called()

    def test_store_rejects_escaping_names(self):
        storage, renderer = self._use_real_service()

        for name in ("../x", "a/../../x"):
            resp = self.client.post("/store", data={"name": name, "url": "http://example.com/"})
            self.assertEqual(resp.status_code, 400)
            self.assertEqual(resp.get_data(as_text=True), "Invalid name")

        storage.put.assert_not_called()
        renderer.render.assert_not_called()

    # --- generate ---

    def test_generate_download(self):
        url = "http://okfn.org/about/how-we-can-help-you/"
        image = self._rendered_image(url)
        self.service.generate.return_value = image

        resp = self.client.get("/generate", query_string={"url": url})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.mimetype, "image/png")
        self.assertEqual(resp.data, b"\x89PNG-bytes")
        self.assertIn("okfn_org_about_how_we_can_help_you.png", resp.headers["Content-Disposition"])
        # The route owns cleanup for generated images
        self.assertFalse(Path(image.path).exists())

    def test_generate_invalid_url(self):
        self.service.generate.side_effect = ValidationError("Invalid url, missing protocol")

        resp = self.client.get("/generate", query_string={"url": "not-a-url"})

        self.assertEqual(resp.status_code, 400)

    def test_generate_render_failure(self):
        self.service.generate.side_effect = RenderFailed("Unable to take a screenshot")

        resp = self.client.get("/generate", query_string={"url": "http://example.com/"})

        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.get_data(as_text=True), "Unable to take a screenshot")


if __name__ == "__main__":
    unittest.main()
