"""
tests/conftest.py

Shared pytest fixtures available to all test modules.

Fixtures defined here are auto-discovered by pytest; no import needed.

The office suite is never invoked: ``make_converter_stub`` writes a tiny
executable script that accepts the same argument vector as
``libreoffice --headless --convert-to pdf`` and behaves according to a
mode (succeed, fail, hang, report "busy", ...).
"""

import io
import json
import os
import stat
import sys
from pathlib import Path
from typing import Callable, Optional

import fitz  # PyMuPDF
import pytest
from fastapi.testclient import TestClient

from docpipe.main import app

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Valid workbooks are zip archives; the "sniff" stub converts anything that
# starts with the zip signature and rejects the rest.
VALID_XLSX_BYTES = b"PK\x03\x04" + b"\x00" * 64
CORRUPT_XLSX_BYTES = b"this is not a workbook"

_STUB_TEMPLATE = '''#!{python}
import json, os, shutil, sys, time

MODE = {mode!r}
FIXTURE = {fixture!r}
STATE = {state!r}

args = sys.argv[1:]
outdir = args[args.index("--outdir") + 1]
src = args[-1]
target = os.path.join(outdir, os.path.splitext(os.path.basename(src))[0] + ".pdf")

if STATE:
    with open(STATE, "a") as fh:
        fh.write(json.dumps(args) + "\\n")

if MODE == "sleep":
    time.sleep(30)
elif MODE == "fail":
    sys.stderr.write("Error: source file could not be loaded\\n")
    sys.exit(1)
elif MODE == "noop":
    sys.exit(0)
elif MODE == "garbage":
    with open(target, "wb") as fh:
        fh.write(b"not a pdf at all")
elif MODE == "busy_once" and not os.path.exists(STATE + ".busy"):
    open(STATE + ".busy", "w").close()
    sys.stderr.write("[Java framework] Error: User installation could not be completed\\n")
    sys.exit(81)
elif MODE == "busy":
    sys.stderr.write("User installation could not be completed\\n")
    sys.exit(81)
elif MODE == "sniff":
    with open(src, "rb") as fh:
        head = fh.read(2)
    if head != b"PK":
        sys.stderr.write("Error: source file could not be loaded\\n")
        sys.exit(1)
    shutil.copyfile(FIXTURE, target)
else:
    shutil.copyfile(FIXTURE, target)
'''


def make_pdf(pages: list) -> bytes:
    """Create a minimal in-memory PDF with one text block per page."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text.strip():
            page.insert_text((72, 72), text, fontsize=12)
    data = doc.tobytes()
    doc.close()
    return data


# ── Core client fixture ────────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def client() -> TestClient:
    """
    A synchronous TestClient wrapping the FastAPI app.

    session-scoped so the app is instantiated once per test run.
    The lifespan context (startup/shutdown events) is entered automatically.
    """
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def override_dependency():
    """
    Override a FastAPI dependency for the duration of one test.

        override_dependency(get_conversion_service, service)
    """
    def _override(dependency: Callable, value) -> None:
        app.dependency_overrides[dependency] = lambda: value

    yield _override
    app.dependency_overrides.clear()


# ── Sample files ───────────────────────────────────────────────────────────────

@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """A real two-page PDF produced by PyMuPDF."""
    return make_pdf(["Certification list page one.", "Certification list page two."])


@pytest.fixture
def sample_xlsx_file() -> tuple:
    """
    A (field_name, (filename, file_obj, content_type)) tuple ready for
    use with TestClient's `files=` parameter.
    """
    return ("file", ("TP Certification List.xlsx", io.BytesIO(VALID_XLSX_BYTES), XLSX_CONTENT_TYPE))


# ── Scratch directory & converter stub ─────────────────────────────────────────

@pytest.fixture
def scratch_root(tmp_path: Path) -> Path:
    """Scratch directory for one test. Not created up front."""
    return tmp_path / "scratch"


@pytest.fixture
def fixture_pdf_path(tmp_path: Path, sample_pdf_bytes: bytes) -> Path:
    path = tmp_path / "fixture.pdf"
    path.write_bytes(sample_pdf_bytes)
    return path


@pytest.fixture
def make_converter_stub(tmp_path: Path, fixture_pdf_path: Path) -> Callable[..., Path]:
    """
    Return a factory that writes an executable converter stub.

        stub = make_converter_stub("fail")
        stub = make_converter_stub("ok", state=tmp_path / "calls.log")

    With ``state`` set, every invocation appends its argv (JSON) to that file.
    """
    stub_dir = tmp_path / "stubs"
    stub_dir.mkdir()

    def _make(mode: str = "ok", state: Optional[Path] = None) -> Path:
        path = stub_dir / f"soffice-{mode}"
        path.write_text(
            _STUB_TEMPLATE.format(
                python=sys.executable,
                mode=mode,
                fixture=str(fixture_pdf_path),
                state=str(state) if state else "",
            )
        )
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


def read_calls(state: Path) -> list:
    """Decode the argv log written by a converter stub."""
    if not state.exists():
        return []
    return [json.loads(line) for line in state.read_text().splitlines() if line.strip()]


def scratch_leftovers(root: Path) -> list:
    """Files left in a scratch directory (empty list if it was never created)."""
    if not root.exists():
        return []
    return sorted(os.listdir(root))
