"""Tests for the HTTP client and the browsing session built on it."""

from __future__ import annotations

import unittest
from unittest import mock

import httpx

from photo_browser.client import BrowserClient
from photo_browser.errors import AccessDenied, Internal, InvalidRequest, NotFound, ProcessingError
from photo_browser.viewer.browsing import BrowsingSession


def listing_body(path: str, names, parent=None) -> dict:
    return {
        "path": f"/srv/photos/{path}",
        "absolutePath": f"/srv/photos/{path}",
        "parent": parent,
        "items": [
            {"name": name, "type": "file", "path": f"{path}/{name}", "ext": "." + name.rsplit(".", 1)[-1]}
            for name in names
        ],
    }


class FakeServer:
    """Answers client requests from canned listings and counts hits."""

    def __init__(self) -> None:
        self.listings = {}
        self.list_failures = {}
        self.broken_thumbnails = set()
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.params.get("path")
        if request.url.path == "/api/fs/list":
            if path in self.list_failures:
                status, body = self.list_failures[path]
                return httpx.Response(status, json=body)
            if path not in self.listings:
                return httpx.Response(404, json={"error": "Directory not found", "kind": "not_found"})
            return httpx.Response(200, json=self.listings[path])
        if request.url.path == "/api/fs/thumbnail":
            if path in self.broken_thumbnails:
                return httpx.Response(500, json={"error": "Cannot decode", "kind": "processing_error"})
            return httpx.Response(200, content=b"thumb", headers={"Content-Type": "image/jpeg"})
        if request.url.path == "/api/fs/file":
            return httpx.Response(200, content=b"full:" + path.encode(), headers={"Content-Type": "image/png"})
        return httpx.Response(404, json={"error": "Not found", "kind": "not_found"})

    def hits(self, endpoint: str, path=None) -> int:
        return sum(
            1 for r in self.requests
            if r.url.path == endpoint and (path is None or r.url.params.get("path") == path)
        )


class BrowserClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.server = FakeServer()
        self.client = BrowserClient("http://photos.test/", transport=httpx.MockTransport(self.server))

    def tearDown(self) -> None:
        self.client.close()

    def test_list_directory_parses_listing(self) -> None:
        self.server.listings["trip"] = listing_body("trip", ["a.jpg", "b.png"], parent=".")
        listing = self.client.list_directory("trip")
        self.assertEqual(listing.requested_path, "trip")
        self.assertEqual([e.relative_path for e in listing.entries], ["trip/a.jpg", "trip/b.png"])
        self.assertEqual(listing.parent, ".")

    def test_list_without_path_omits_parameter(self) -> None:
        self.server.listings[None] = listing_body("", [])
        self.client.list_directory()
        self.assertNotIn("path", self.server.requests[0].url.params)

    def test_fetch_file_and_thumbnail(self) -> None:
        self.assertEqual(self.client.fetch_file("x.png"), (b"full:x.png", "image/png"))
        content, content_type = self.client.fetch_thumbnail("x.png", 256)
        self.assertEqual((content, content_type), (b"thumb", "image/jpeg"))
        self.assertEqual(self.server.requests[-1].url.params["size"], "256")

    def test_error_kind_is_rebuilt(self) -> None:
        self.server.list_failures["/etc"] = (
            403,
            {"error": "Access denied", "kind": "access_denied", "hint": "Restart with --unrestricted"},
        )
        with self.assertRaises(AccessDenied) as ctx:
            self.client.list_directory("/etc")
        self.assertEqual(ctx.exception.hint, "Restart with --unrestricted")

    def test_status_fallback_without_json_body(self) -> None:
        def handler(request):
            return httpx.Response(400, text="bad")

        with BrowserClient("http://photos.test", transport=httpx.MockTransport(handler)) as client:
            with self.assertRaises(InvalidRequest):
                client.fetch_file("x")

        def teapot(request):
            return httpx.Response(418, json={"error": "odd"})

        with BrowserClient("http://photos.test", transport=httpx.MockTransport(teapot)) as client:
            with self.assertRaises(Internal) as ctx:
                client.fetch_file("x")
        self.assertEqual(ctx.exception.message, "odd")

    def test_transport_failure_is_internal(self) -> None:
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with BrowserClient("http://photos.test", transport=httpx.MockTransport(handler)) as client:
            with self.assertRaises(Internal):
                client.list_directory("")


class BrowsingSessionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.server = FakeServer()
        self.server.listings["one"] = listing_body("one", ["a.jpg", "b.jpg", "notes.txt"], parent=".")
        self.server.listings["two"] = listing_body("two", ["c.gif"], parent=".")
        self.server.listings["."] = listing_body("", [])
        self.client = BrowserClient("http://photos.test", transport=httpx.MockTransport(self.server))
        self.scheduler = mock.Mock()
        self.session = BrowsingSession(self.client, self.scheduler)

    def tearDown(self) -> None:
        self.client.close()

    def test_navigate_replaces_listing(self) -> None:
        self.assertTrue(self.session.navigate("one"))
        self.assertEqual([e.name for e in self.session.image_set()], ["a.jpg", "b.jpg"])
        self.assertTrue(self.session.navigate("two"))
        self.assertEqual([e.name for e in self.session.listing.entries], ["c.gif"])
        self.assertEqual(self.scheduler.reset.call_count, 2)

    def test_failed_navigation_keeps_listing_and_can_retry(self) -> None:
        self.session.navigate("one")
        self.server.list_failures["flaky"] = (500, {"error": "boom", "kind": "internal"})
        self.assertFalse(self.session.navigate("flaky"))
        self.assertIsInstance(self.session.error, Internal)
        self.assertEqual(self.session.listing.entries[0].name, "a.jpg")
        self.assertEqual(self.scheduler.reset.call_count, 1)

        del self.server.list_failures["flaky"]
        self.server.listings["flaky"] = listing_body("flaky", ["z.jpg"])
        self.assertTrue(self.session.retry())
        self.assertIsNone(self.session.error)
        self.assertEqual(self.session.listing.entries[0].name, "z.jpg")

    def test_missing_directory_records_not_found(self) -> None:
        self.assertFalse(self.session.navigate("gone"))
        self.assertIsInstance(self.session.error, NotFound)
        self.assertEqual(self.session.image_set(), [])

    def test_go_up_follows_parent(self) -> None:
        self.assertFalse(self.session.go_up())
        self.session.navigate("one")
        self.assertTrue(self.session.go_up())
        self.assertEqual(self.session.listing.entries, [])
        self.assertIsNone(self.session.listing.parent)
        self.assertFalse(self.session.go_up())

    def test_failed_thumbnail_is_not_requested_again(self) -> None:
        self.session.navigate("one")
        self.server.broken_thumbnails.add("one/a.jpg")
        self.assertIsNone(self.session.thumbnail("one/a.jpg"))
        self.assertIsNone(self.session.thumbnail("one/a.jpg"))
        self.assertEqual(self.server.hits("/api/fs/thumbnail", "one/a.jpg"), 1)
        self.assertTrue(self.session.thumbnail_failed("one/a.jpg"))
        self.assertEqual(self.session.thumbnail("one/b.jpg"), b"thumb")

    def test_failures_are_forgotten_on_new_listing(self) -> None:
        self.session.navigate("one")
        self.session.mark_thumbnail_failed("one/a.jpg")
        self.session.navigate("one")
        self.assertFalse(self.session.thumbnail_failed("one/a.jpg"))

    def test_processing_error_surfaces_from_client(self) -> None:
        self.server.broken_thumbnails.add("two/c.gif")
        with self.assertRaises(ProcessingError):
            self.client.fetch_thumbnail("two/c.gif")


if __name__ == "__main__":
    unittest.main()
