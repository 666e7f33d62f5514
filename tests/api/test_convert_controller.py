"""
tests/api/test_convert_controller.py

End-to-end tests for POST /convert.

The real ConversionService is wired to a temporary scratch directory and a
converter stub, then injected with ``app.dependency_overrides``.
"""

from __future__ import annotations

import io
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from conftest import CORRUPT_XLSX_BYTES, VALID_XLSX_BYTES, XLSX_CONTENT_TYPE, read_calls, scratch_leftovers
from docpipe.converter.libreoffice_converter import LibreOfficeConverter
from docpipe.core.config import settings
from docpipe.scratch.store import ScratchStore
from docpipe.services.conversion_service import (
    ConversionService,
    build_converter_limiter,
    get_conversion_service,
)


@pytest.fixture
def use_converter(scratch_root: Path, make_converter_stub, override_dependency):
    """Install a ConversionService backed by a stub in the given mode."""

    def _use(mode: str = "ok", timeout: float = 10.0, max_concurrency: int = 1, **kwargs) -> ConversionService:
        service = ConversionService(
            store=ScratchStore(root=scratch_root),
            converter=LibreOfficeConverter(
                executable=str(make_converter_stub(mode, **kwargs)), scratch_root=scratch_root
            ),
            limiter=build_converter_limiter(max_concurrency),
            timeout=timeout,
        )
        override_dependency(get_conversion_service, service)
        return service

    return _use


def _xlsx(content: bytes = VALID_XLSX_BYTES, name: str = "TP Certification List.xlsx") -> dict:
    return {"file": (name, io.BytesIO(content), XLSX_CONTENT_TYPE)}


# ── Success ────────────────────────────────────────────────────────────────────

class TestConvertSuccess:

    def test_returns_pdf(self, client: TestClient, use_converter, scratch_root: Path) -> None:
        use_converter("ok")

        response = client.post("/convert", files=_xlsx())

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF-")
        assert response.headers["x-page-count"] == "2"
        assert scratch_leftovers(scratch_root) == []

    def test_content_disposition_uses_upload_name(self, client: TestClient, use_converter) -> None:
        use_converter("ok")

        response = client.post("/convert", files=_xlsx(name="TP Certification List.xlsx"))

        assert response.headers["content-disposition"] == 'attachment; filename="TP_Certification_List.pdf"'

    def test_octet_stream_content_type_accepted(self, client: TestClient, use_converter) -> None:
        use_converter("ok")

        files = {"file": ("sheet.xlsx", io.BytesIO(VALID_XLSX_BYTES), "application/octet-stream")}
        assert client.post("/convert", files=files).status_code == 200

    def test_shell_metacharacters_in_filename(
        self, client: TestClient, use_converter, scratch_root: Path, tmp_path: Path
    ) -> None:
        """The declared name never reaches argv or the filesystem."""
        state = tmp_path / "calls.log"
        canary = tmp_path / "canary.txt"
        canary.write_text("still here")
        use_converter("ok", state=state)

        response = client.post("/convert", files=_xlsx(name='"; rm -rf /; .xlsx'))

        assert response.status_code == 200
        assert response.headers["content-disposition"] == 'attachment; filename="result.pdf"'
        argv = read_calls(state)[0]
        assert Path(argv[-1]).parent == scratch_root.resolve()
        assert all("rm -rf" not in arg for arg in argv)
        assert canary.read_text() == "still here"
        assert scratch_leftovers(scratch_root) == []


# ── Rejections (4xx) ───────────────────────────────────────────────────────────

class TestConvertRejections:

    def test_missing_file_returns_400_without_writes(
        self, client: TestClient, use_converter, scratch_root: Path
    ) -> None:
        use_converter("ok")

        response = client.post("/convert", data={"other": "value"})

        assert response.status_code == 400
        assert "file" in response.json()["error"]
        assert not scratch_root.exists()

    def test_no_body_returns_400(self, client: TestClient, use_converter, scratch_root: Path) -> None:
        use_converter("ok")

        response = client.post("/convert")

        assert response.status_code == 400
        assert not scratch_root.exists()

    def test_wrong_field_name_returns_400(self, client: TestClient, use_converter) -> None:
        use_converter("ok")

        files = {"upload": ("a.xlsx", io.BytesIO(VALID_XLSX_BYTES), XLSX_CONTENT_TYPE)}
        assert client.post("/convert", files=files).status_code == 400

    def test_two_files_returns_400(self, client: TestClient, use_converter) -> None:
        use_converter("ok")

        files = [
            ("file", ("a.xlsx", io.BytesIO(VALID_XLSX_BYTES), XLSX_CONTENT_TYPE)),
            ("file", ("b.xlsx", io.BytesIO(VALID_XLSX_BYTES), XLSX_CONTENT_TYPE)),
        ]
        assert client.post("/convert", files=files).status_code == 400

    @pytest.mark.parametrize(
        "name, content_type",
        [("report.pdf", "application/pdf"), ("notes.txt", "text/plain"), ("sheet.xlsx", "text/plain")],
    )
    def test_non_xlsx_returns_400(self, client: TestClient, use_converter, name: str, content_type: str) -> None:
        use_converter("ok")

        files = {"file": (name, io.BytesIO(b"data"), content_type)}
        response = client.post("/convert", files=files)

        assert response.status_code == 400
        assert "xlsx" in response.json()["error"]

    def test_empty_file_returns_400(self, client: TestClient, use_converter, scratch_root: Path) -> None:
        use_converter("ok")

        response = client.post("/convert", files=_xlsx(content=b""))

        assert response.status_code == 400
        assert not scratch_root.exists()

    def test_oversize_returns_413(
        self, client: TestClient, use_converter, scratch_root: Path, monkeypatch
    ) -> None:
        use_converter("ok")
        monkeypatch.setattr(settings, "max_upload_bytes", 1024)

        response = client.post("/convert", files=_xlsx(content=b"PK" + b"\x00" * 4096))

        assert response.status_code == 413
        assert "too large" in response.json()["error"]
        assert not scratch_root.exists()


# ── Failures (500) ─────────────────────────────────────────────────────────────

class TestConvertFailures:

    @pytest.mark.parametrize("mode", ["fail", "noop", "garbage"])
    def test_converter_problems_return_generic_500(
        self, client: TestClient, use_converter, scratch_root: Path, mode: str
    ) -> None:
        use_converter(mode)

        response = client.post("/convert", files=_xlsx())

        assert response.status_code == 500
        body = response.json()
        assert body == {"error": "Conversion failed."}
        assert str(scratch_root) not in response.text
        assert scratch_leftovers(scratch_root) == []

    def test_timeout_returns_500_promptly(self, client: TestClient, use_converter, scratch_root: Path) -> None:
        use_converter("sleep", timeout=0.5)

        started = time.monotonic()
        response = client.post("/convert", files=_xlsx())
        elapsed = time.monotonic() - started

        assert response.status_code == 500
        assert response.json() == {"error": "Conversion timed out."}
        assert elapsed < 0.5 + 3.0
        assert scratch_leftovers(scratch_root) == []


# ── Cleanup invariant ──────────────────────────────────────────────────────────

class TestCleanupInvariant:

    def test_concurrent_mixed_requests_leave_no_scratch_files(
        self, client: TestClient, use_converter, scratch_root: Path, monkeypatch
    ) -> None:
        """Valid, corrupt and oversized uploads in parallel → empty scratch dir."""
        use_converter("sniff", max_concurrency=0)
        monkeypatch.setattr(settings, "max_upload_bytes", 8 * 1024)

        payloads = []
        for i in range(12):
            if i % 3 == 0:
                payloads.append((VALID_XLSX_BYTES, 200))
            elif i % 3 == 1:
                payloads.append((CORRUPT_XLSX_BYTES, 500))
            else:
                payloads.append((b"PK" + b"\x00" * 16 * 1024, 413))

        def send(content: bytes) -> int:
            return client.post("/convert", files=_xlsx(content=content)).status_code

        with ThreadPoolExecutor(max_workers=6) as pool:
            statuses = list(pool.map(send, [content for content, _ in payloads]))

        assert statuses == [expected for _, expected in payloads]
        assert scratch_leftovers(scratch_root) == []
