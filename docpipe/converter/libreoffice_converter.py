"""
docpipe/converter/libreoffice_converter.py

LibreOffice implementation of the DocumentConverter interface.

The office suite runs headless as a child process. Arguments are passed as
a vector (``create_subprocess_exec``) so no path or filename is ever
interpreted by a shell.
"""

from __future__ import annotations

import asyncio
import os
import signal
from pathlib import Path
from typing import List, Optional, Tuple

from docpipe.core.config import settings
from docpipe.core.constants import STDERR_EXCERPT_CHARS
from docpipe.core.exceptions import (
    ConversionFailed,
    ConversionOutputMissing,
    ConversionTimeout,
)
from docpipe.core.logger import get_logger
from docpipe.converter.base import DocumentConverter

logger = get_logger(__name__)


class LibreOfficeConverter(DocumentConverter):
    """
    Converts spreadsheets to PDF with ``libreoffice --headless --convert-to pdf``.

    A LibreOffice instance whose user profile is locked by a concurrent run
    fails with a recognisable stderr message; such failures are retried up
    to ``busy_retries`` times before being surfaced.
    """

    def __init__(
        self,
        executable: str | None = None,
        busy_retries: int | None = None,
        scratch_root: str | Path | None = None,
    ) -> None:
        """
        Args:
            executable   : Path or name of the office binary.
                           Defaults to ``settings.converter_path``.
            busy_retries : Extra attempts on a "profile in use" failure.
                           Defaults to ``settings.converter_busy_retries``.
            scratch_root : The only directory the converter may read from or
                           write to. Defaults to ``settings.scratch_dir``.
        """
        self._executable: str = executable or settings.converter_path
        self._scratch_root: Path = Path(scratch_root or settings.scratch_dir).resolve()
        self._busy_retries: int = (
            busy_retries if busy_retries is not None else settings.converter_busy_retries
        )

    # ── DocumentConverter interface ────────────────────────────────────────────

    async def convert(self, input_path: Path, output_dir: Path, timeout: float) -> Path:
        if not input_path.is_absolute() or not output_dir.is_absolute():
            raise ConversionFailed("Converter paths must be absolute.")
        if input_path.resolve().parent != self._scratch_root or output_dir.resolve() != self._scratch_root:
            raise ConversionFailed(
                f"Converter paths must lie inside the scratch directory '{self._scratch_root}'."
            )

        expected = output_dir / f"{input_path.stem}.pdf"
        cmd = self._build_command(input_path, output_dir)

        attempt = 0
        while True:
            try:
                await self._run(cmd, timeout)
                break
            except ConversionFailed as exc:
                if exc.is_busy and attempt < self._busy_retries:
                    attempt += 1
                    logger.warning(
                        "Converter busy (attempt %d) — retrying: %s",
                        attempt,
                        exc.stderr_excerpt,
                    )
                    continue
                raise

        if not expected.is_file():
            raise ConversionOutputMissing(expected)
        return expected

    # ── Internals ──────────────────────────────────────────────────────────────

    def _build_command(self, input_path: Path, output_dir: Path) -> List[str]:
        return [
            self._executable,
            "--headless",
            "--norestore",
            "--convert-to",
            "pdf",
            "--outdir",
            str(output_dir),
            str(input_path),
        ]

    @staticmethod
    async def _run(cmd: List[str], timeout: float) -> Tuple[str, str]:
        """Run *cmd* to completion; return (stdout, stderr)."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as exc:
            raise ConversionFailed(f"Could not start converter '{cmd[0]}': {exc}") from exc

        try:
            stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise ConversionTimeout(timeout) from exc
        finally:
            # Reached on timeout and on cancellation (client disconnect).
            await _reap(proc)

        stdout = stdout_b.decode(errors="replace").strip()
        stderr = stderr_b.decode(errors="replace").strip()
        if proc.returncode != 0:
            raise ConversionFailed(
                f"Converter exited with status {proc.returncode}.",
                exit_code=proc.returncode,
                stderr_excerpt=stderr[-STDERR_EXCERPT_CHARS:],
            )
        logger.debug("Converter output: %s", stdout[:STDERR_EXCERPT_CHARS])
        return stdout, stderr


async def _reap(proc: asyncio.subprocess.Process) -> Optional[int]:
    """
    Kill *proc* and its process group if it is still running, then wait for it.

    The `libreoffice` launcher is a wrapper that spawns `soffice.bin`; killing
    only the wrapper would leave the real converter running.
    """
    if proc.returncode is None:
        try:
            if os.name == "posix":
                os.killpg(proc.pid, signal.SIGKILL)
            else:
                proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()
    return proc.returncode
