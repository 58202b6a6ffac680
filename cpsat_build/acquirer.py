import io
import os

import requests

from .cli_logger import logger
from .errors import DownloadFailed
from .utils.file_manager import extract_tar_stream, extract_zip_bytes

CHUNK_SIZE = 1024 * 256


def archive_suffix(windows):
    return "zip" if windows else "tar.gz"


def expected_dir_name(settings, identifiers):
    """Name of the directory a release archive unpacks to."""
    return f"{settings.project}_{identifiers.dir_form}_cpp_v{settings.version}.{settings.patch}"


def release_url(settings, identifiers, windows):
    file_name = (
        f"{settings.project}_{identifiers.url_form}_cpp_v{settings.version}.{settings.patch}"
        f".{archive_suffix(windows)}"
    )
    return (
        f"https://{settings.host}/{settings.org}/{settings.project}"
        f"/releases/download/v{settings.version}/{file_name}"
    )


class _ChunkReader(io.RawIOBase):
    """Read-only file object over a response's chunk iterator."""

    def __init__(self, chunks, url):
        self._chunks = chunks
        self._url = url
        self._pending = b""

    def readable(self):
        return True

    def readinto(self, buffer):
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
            except requests.exceptions.RequestException as e:
                raise DownloadFailed(f"connection lost while streaming the archive: {e}", url=self._url)
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size


def acquire_archive(settings, identifiers, scratch_dir, windows, session=requests):
    """Download the release archive for ``identifiers`` and unpack it under ``scratch_dir``.

    Returns the path of the unpacked installation. Any non-200 answer is
    fatal and never retried.
    """
    url = release_url(settings, identifiers, windows)
    dir_name = expected_dir_name(settings, identifiers)
    prefix = f"{settings.project}_"
    timeout = settings.timeout or None

    logger.info(f"Downloading OR-Tools {settings.version}.{settings.patch} from {url}")
    try:
        with session.get(url, stream=True, timeout=timeout) as response:
            if response.status_code != 200:
                raise DownloadFailed(
                    "release archive could not be fetched",
                    url=url,
                    status=f"{response.status_code} {response.reason}",
                )
            chunks = _progress(response, url)
            if windows:
                # zipfile needs random access, so the whole body is buffered.
                payload = b"".join(chunks)
                extract_zip_bytes(payload, scratch_dir, prefix=prefix, expected_dir=dir_name)
            else:
                stream = io.BufferedReader(_ChunkReader(iter(chunks), url), buffer_size=CHUNK_SIZE)
                extract_tar_stream(stream, scratch_dir, prefix=prefix, expected_dir=dir_name)
    except requests.exceptions.RequestException as e:
        raise DownloadFailed(f"request failed: {e}", url=url)

    library = os.path.join(scratch_dir, dir_name)
    logger.success(f"OR-Tools unpacked to {library}")
    return library


def _progress(response, url):
    total = int(response.headers.get("content-length", 0) or 0)
    return logger.progress(
        response.iter_content(chunk_size=CHUNK_SIZE),
        description=f"Downloading {url.rsplit('/', 1)[-1]}",
        total=total,
    )
