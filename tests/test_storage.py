"""
Photo storage backends.
"""
import httpx
import pytest

from critwalk.errors import StorageIOError, StorageTimeoutError
from critwalk.services.storage import HttpBlobStore, LocalBlobStore, photo_filename, photo_path


class TestPaths:
    def test_photo_path_layout(self):
        assert photo_path(4, 17, "1700000000000_0.jpg") == "equipment/4/critwalks/17/1700000000000_0.jpg"

    def test_photo_filename(self):
        assert photo_filename(2, timestamp_ms=1700000000000) == "1700000000000_2.jpg"


# ── Local ─────────────────────────────────────────────────────────────────────

class TestLocalBlobStore:
    def test_put_writes_file_and_returns_url(self, tmp_path):
        store = LocalBlobStore(str(tmp_path), "http://cdn.local/photos/")
        url = store.put("equipment/1/critwalks/2/a.jpg", b"jpeg")
        assert url == "http://cdn.local/photos/equipment/1/critwalks/2/a.jpg"
        assert (tmp_path / "equipment/1/critwalks/2/a.jpg").read_bytes() == b"jpeg"

    def test_path_from_url_round_trip(self, tmp_path):
        store = LocalBlobStore(str(tmp_path), "http://cdn.local/photos")
        url = store.put("equipment/1/critwalks/2/a.jpg", b"x")
        assert store.path_from_url(url) == "equipment/1/critwalks/2/a.jpg"

    def test_foreign_url_not_parsed(self, tmp_path):
        store = LocalBlobStore(str(tmp_path), "http://cdn.local/photos")
        assert store.path_from_url("http://elsewhere/a.jpg") is None

    def test_delete_missing_is_quiet(self, tmp_path):
        store = LocalBlobStore(str(tmp_path), "http://cdn.local/photos")
        store.delete("equipment/1/critwalks/2/missing.jpg")

    def test_delete_removes_file(self, tmp_path):
        store = LocalBlobStore(str(tmp_path), "http://cdn.local/photos")
        store.put("equipment/1/critwalks/2/a.jpg", b"x")
        store.delete("equipment/1/critwalks/2/a.jpg")
        assert not (tmp_path / "equipment/1/critwalks/2/a.jpg").exists()

    def test_escaping_root_rejected(self, tmp_path):
        store = LocalBlobStore(str(tmp_path / "root"), "http://cdn.local/photos")
        with pytest.raises(StorageIOError):
            store.put("../outside.jpg", b"x")


# ── HTTP ──────────────────────────────────────────────────────────────────────

class TestHttpBlobStore:
    def _store(self, handler, **kwargs):
        return HttpBlobStore(
            "https://blob.example/",
            token="secret",
            transport=httpx.MockTransport(handler),
            **kwargs,
        )

    def test_put_returns_media_url(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.raw_path
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = request.content
            return httpx.Response(200)

        url = self._store(handler).put("equipment/1/critwalks/2/a.jpg", b"jpeg")
        assert url == "https://blob.example/o/equipment%2F1%2Fcritwalks%2F2%2Fa.jpg?alt=media"
        assert seen["method"] == "PUT"
        assert seen["path"].startswith(b"/o/equipment%2F1%2Fcritwalks%2F2%2Fa.jpg")
        assert seen["auth"] == "Bearer secret"
        assert seen["body"] == b"jpeg"

    def test_path_from_url(self):
        store = self._store(lambda request: httpx.Response(200))
        url = "https://blob.example/o/equipment%2F1%2Fcritwalks%2F2%2Fa.jpg?alt=media&token=x"
        assert store.path_from_url(url) == "equipment/1/critwalks/2/a.jpg"
        assert store.path_from_url("https://blob.example/other") is None

    def test_http_error_status(self):
        store = self._store(lambda request: httpx.Response(403))
        with pytest.raises(StorageIOError) as exc_info:
            store.put("a.jpg", b"x")
        assert exc_info.value.retryable is False

    def test_timeout_retried_then_succeeds(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200)

        self._store(handler, max_retries=2).put("a.jpg", b"x")
        assert len(calls) == 2

    def test_timeout_exhausts_retries(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectTimeout("slow", request=request)

        with pytest.raises(StorageTimeoutError) as exc_info:
            self._store(handler, max_retries=2).put("a.jpg", b"x")
        assert exc_info.value.retryable is True
        assert len(calls) == 3

    def test_connection_error_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(StorageIOError):
            self._store(handler).put("a.jpg", b"x")
        assert len(calls) == 1

    def test_delete_404_is_quiet(self):
        self._store(lambda request: httpx.Response(404)).delete("a.jpg")
