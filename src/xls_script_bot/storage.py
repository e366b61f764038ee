"""Download and local persistence of uploaded files."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import requests

from .exceptions import DownloadError, StorageError


LOGGER = logging.getLogger("xls_script_bot.storage")

CHUNK_SIZE = 64 * 1024


class UploadStore:
    """
    Keeps uploaded files under a single directory, one file per original name.

    A later upload with the same name replaces the earlier file.
    """

    def __init__(
        self,
        files_dir: Path,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ) -> None:
        self._files_dir = Path(files_dir)
        self._session = session or requests.Session()
        self._timeout = timeout

    @property
    def files_dir(self) -> Path:
        return self._files_dir

    def path_for(self, file_name: str) -> Path:
        # Only the final component is kept so an upload never lands outside files_dir.
        name = Path(file_name.replace("\\", "/")).name
        if not name or name in {".", ".."}:
            raise StorageError(f"Unusable file name: {file_name!r}")
        return self._files_dir / name

    def save_from_url(self, url: str, file_name: str) -> Path:
        """Download *url* with HTTP GET and store it as *file_name*."""
        target = self.path_for(file_name)
        try:
            self._files_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"failed to create files directory: {exc}") from exc

        try:
            response = self._session.get(url, stream=True, timeout=self._timeout)
        except requests.RequestException as exc:
            raise DownloadError(f"failed to download file: {type(exc).__name__}") from exc

        with response:
            if response.status_code != 200:
                raise DownloadError(f"bad status: {response.status_code} {response.reason or ''}".strip())
            try:
                with target.open("wb") as handle:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            handle.write(chunk)
            except requests.RequestException as exc:
                raise DownloadError(f"failed to download file: {type(exc).__name__}") from exc
            except OSError as exc:
                raise StorageError(f"failed to write file: {exc}") from exc

        LOGGER.info("File saved successfully: %s", target)
        return target

    def close(self) -> None:
        self._session.close()


__all__ = ["UploadStore"]
