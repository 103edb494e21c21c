"""
COURIER - Transfer Step

Performs the single HTTP exchange of a request: either a buffered
single-shot request or a multipart file upload.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple
from urllib.parse import quote

from requests import RequestException
from requests.structures import CaseInsensitiveDict

from courier.core.types import (
    BODY_METHODS,
    NO_FILE,
    BodyFormat,
    Header,
    TransferResult,
)
from courier.infrastructure.filesystem import FileSystemAdapter
from courier.infrastructure.http import HttpClient, Timeout

logger = logging.getLogger(__name__)

# Multipart framing
TWO_HYPHENS = "--"
BOUNDARY = "*****"
LINE_END = "\r\n"
UPLOAD_FIELD = "uploaded_file"


@dataclass(frozen=True)
class ProxySettings:
    """HTTP proxy used for a single request."""

    host: str
    port: int
    username: Optional[str] = None
    password: Optional[str] = None

    def as_proxies(self) -> Dict[str, str]:
        """
        Build a requests proxies mapping.

        Credentials are embedded in the proxy URL so they only apply to the
        request that carries this mapping.
        """
        auth = ""
        if self.username is not None:
            auth = f"{quote(self.username, safe='')}:{quote(self.password or '', safe='')}@"
        url = f"http://{auth}{self.host}:{self.port}"
        return {"http": url, "https": url}


@dataclass(frozen=True)
class TransferSpec:
    """Immutable snapshot of everything the transfer step needs."""

    method: str
    url: str
    headers: Tuple[Header, ...] = ()
    body_format: BodyFormat = BodyFormat.JSON
    body: Optional[bytes] = None
    connect_timeout: int = 0
    read_timeout: int = 0
    proxy: Optional[ProxySettings] = None
    file_path: Optional[str] = None
    file_name: Optional[str] = None
    max_buffer_size: int = 1024 * 1024
    trace: bool = field(default=False, compare=False)

    @property
    def timeout(self) -> Timeout:
        """(connect, read) in seconds, None meaning unbounded."""
        return (
            self.connect_timeout / 1000.0 if self.connect_timeout else None,
            self.read_timeout / 1000.0 if self.read_timeout else None,
        )

    @property
    def proxies(self) -> Optional[Dict[str, str]]:
        return self.proxy.as_proxies() if self.proxy else None


def add_headers(target: CaseInsensitiveDict, headers: Tuple[Header, ...]) -> None:
    """
    Add headers in insertion order.

    Repeated names are folded into one comma-separated value.
    """
    for header in headers:
        if header.key in target:
            target[header.key] = f"{target[header.key]}, {header.value}"
        else:
            target[header.key] = header.value


def flatten_lines(text: str) -> str:
    """Join response lines without re-inserting line separators."""
    return text.replace("\r", "").replace("\n", "")


def send_request(spec: TransferSpec, client: HttpClient) -> TransferResult:
    """
    Perform a buffered single-shot request.

    Args:
        spec: Transfer snapshot
        client: HTTP client used for the exchange

    Returns:
        Completed result with status and flattened body, or a dropped
        result when the transport failed before a response was read
    """
    headers: CaseInsensitiveDict = CaseInsensitiveDict()
    add_headers(headers, spec.headers)

    if spec.body_format is BodyFormat.JSON:
        headers["Content-Type"] = "application/json"
        headers["Accept"] = "application/json"
    else:
        # Legacy header name, kept for servers that rely on it
        headers["contentType"] = "application/x-www-form-urlencoded"

    data = spec.body if spec.method in BODY_METHODS else None

    try:
        response = client.request(
            spec.method,
            spec.url,
            headers=dict(headers),
            data=data,
            timeout=spec.timeout,
            proxies=spec.proxies,
        )
    except (RequestException, OSError, ValueError) as e:
        # ValueError covers header values http.client cannot encode
        logger.warning(f"Transport error for {spec.method} {spec.url}: {e}", exc_info=spec.trace)
        return TransferResult.dropped()

    body = flatten_lines(response.content.decode("utf-8", errors="replace"))
    return TransferResult(status=response.status_code, body=body, completed=True)


def multipart_body(
    fs: FileSystemAdapter, path: str, file_name: str, chunk_size: int
) -> Iterator[bytes]:
    """
    Stream a single-part multipart/form-data body.

    File bytes are read lazily in chunks of at most chunk_size bytes.
    """
    yield f"{TWO_HYPHENS}{BOUNDARY}{LINE_END}".encode("utf-8")
    yield (
        f'Content-Disposition: form-data; name="{UPLOAD_FIELD}";filename="{file_name}"{LINE_END}'
    ).encode("utf-8")
    yield LINE_END.encode("utf-8")

    for chunk in fs.read_chunks(path, chunk_size):
        yield chunk

    yield LINE_END.encode("utf-8")
    yield f"{TWO_HYPHENS}{BOUNDARY}{TWO_HYPHENS}{LINE_END}".encode("utf-8")


def send_file_request(
    spec: TransferSpec, client: HttpClient, fs: FileSystemAdapter
) -> TransferResult:
    """
    Upload the attached file as multipart/form-data.

    Args:
        spec: Transfer snapshot with file_path set
        client: HTTP client used for the exchange
        fs: Filesystem the file is read from

    Returns:
        (NO_FILE, "No file!") when the path is not a regular file, the
        completed response otherwise, or a dropped result with status 0 when
        anything fails during the upload
    """
    if not spec.file_path or not fs.is_file(spec.file_path):
        return TransferResult(status=NO_FILE, body="No file!", completed=True)

    file_name = spec.file_name or os.path.basename(spec.file_path)

    headers: CaseInsensitiveDict = CaseInsensitiveDict()
    headers["Connection"] = "Keep-Alive"
    headers["ENCTYPE"] = "multipart/form-data"
    headers["Content-Type"] = f"multipart/form-data;boundary={BOUNDARY}"
    headers[UPLOAD_FIELD] = file_name
    add_headers(headers, spec.headers)

    try:
        response = client.request(
            spec.method,
            spec.url,
            headers=dict(headers),
            data=multipart_body(fs, spec.file_path, file_name, spec.max_buffer_size),
            timeout=spec.timeout,
            proxies=spec.proxies,
        )
        body = flatten_lines(response.content.decode("utf-8", errors="replace"))
    except Exception as e:
        logger.error(f"Upload of {spec.file_path} to {spec.url} failed: {e}", exc_info=True)
        return TransferResult.dropped(status=0)

    return TransferResult(status=response.status_code, body=body, completed=True)
