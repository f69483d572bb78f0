"""Default download service.

Streams http(s) payloads to disk with httpx and copies file:// or plain
local paths. The destination is written through a temporary file so a
failed download never leaves a partial payload behind.
"""

import logging
import os
import shutil
from pathlib import Path
from tempfile import NamedTemporaryFile
from urllib.parse import unquote, urlparse

import httpx

logger = logging.getLogger(__name__)


class HttpDownloader:
    """Fetches payloads over HTTP(S) or from the local filesystem.

    Args:
        timeout: Request timeout in seconds.
        client: Optional preconfigured httpx client (closed by the caller).
    """

    _CHUNK_SIZE = 64 * 1024

    def __init__(self, *, timeout: float = 300.0, client: httpx.Client | None = None) -> None:
        self._timeout = timeout
        self._client = client

    def fetch(self, uri: str, destination: Path) -> None:
        """Download uri to destination.

        Errors are logged rather than raised: the orchestrator checks
        whether the destination exists afterwards.

        Args:
            uri: http(s) URL, file:// URL or local path.
            destination: File to create.
        """
        destination.parent.mkdir(parents=True, exist_ok=True)
        parsed = urlparse(uri)

        try:
            if parsed.scheme in ("http", "https"):
                self._fetch_http(uri, destination)
            elif parsed.scheme == "file":
                shutil.copyfile(unquote(parsed.path), destination)
            else:
                shutil.copyfile(uri, destination)
        except (httpx.HTTPError, OSError) as e:
            logger.warning("Download of %s failed: %s", uri, e)
            return

        logger.info("Downloaded %s -> %s", uri, destination)

    def _fetch_http(self, uri: str, destination: Path) -> None:
        client = self._client or httpx.Client(timeout=self._timeout, follow_redirects=True)
        tmp_path: Path | None = None
        try:
            with client.stream("GET", uri) as response:
                response.raise_for_status()
                with NamedTemporaryFile(
                    mode="wb",
                    dir=destination.parent,
                    delete=False,
                    suffix=".part",
                ) as f:
                    tmp_path = Path(f.name)
                    for chunk in response.iter_bytes(self._CHUNK_SIZE):
                        f.write(chunk)
            os.replace(str(tmp_path), str(destination))
            tmp_path = None
        finally:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            if self._client is None:
                client.close()
