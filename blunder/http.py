"""
Blunder - HTTP messaging collaborator.

Minimal request/response/stream abstraction the handlers emit through.
Hosts with their own HTTP stack pass a ``HttpMessaging`` built around their
objects; otherwise a default one is created from the process environment
(CGI-style variables), which also serves CLI programs.
"""

from __future__ import annotations

import io
import os
from http.cookies import SimpleCookie
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlsplit

from .exceptions import PreconditionError

HeaderWriter = Callable[[int, List[Tuple[str, str]]], None]


# ============================================================================
# Stream
# ============================================================================

class Stream:
    """
    Byte stream over a file or an in-memory buffer.

    ``Stream()`` opens a temporary in-memory buffer; ``Stream(path, "r")``
    opens a file; any binary file object is wrapped as-is.
    """

    def __init__(self, source: Any = None, mode: str = "r+"):
        if source is None:
            self._fh = io.BytesIO()
        elif isinstance(source, (str, os.PathLike)):
            if "b" not in mode:
                mode += "b"
            if mode.startswith("r+") and not os.path.exists(source):
                raise FileNotFoundError(source)
            self._fh = open(source, mode)
        else:
            self._fh = source
        self._closed = False

    def write(self, data: Union[str, bytes]) -> int:
        if isinstance(data, str):
            data = data.encode("utf-8")
        return self._fh.write(data)

    def read(self, size: int = -1) -> bytes:
        return self._fh.read(size)

    def readlines(self) -> List[str]:
        return self.get_contents().splitlines()

    def get_contents(self) -> str:
        """Whole stream decoded as UTF-8, from the beginning."""
        self.rewind()
        return self._fh.read().decode("utf-8", errors="replace")

    def rewind(self) -> None:
        self._fh.seek(0)

    def truncate(self) -> None:
        self._fh.seek(0)
        self._fh.truncate()

    def eof(self) -> bool:
        position = self._fh.tell()
        at_end = self._fh.read(1) == b""
        self._fh.seek(position)
        return at_end

    @property
    def size(self) -> int:
        position = self._fh.tell()
        self._fh.seek(0, os.SEEK_END)
        size = self._fh.tell()
        self._fh.seek(position)
        return size

    def close(self) -> None:
        if not self._closed:
            self._fh.close()
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> Stream:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


# ============================================================================
# Request
# ============================================================================

class Request:
    """Read-only view of the request a fault occurred in."""

    def __init__(
        self,
        method: str = "GET",
        uri: str = "",
        *,
        headers: Optional[Mapping[str, str]] = None,
        cookies: Optional[Mapping[str, str]] = None,
        body: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Any]] = None,
        server: Optional[Mapping[str, Any]] = None,
    ):
        self.method = method.upper()
        self.uri = uri
        self._parts = urlsplit(uri)
        self.headers: Dict[str, str] = dict(headers or {})
        self.cookies: Dict[str, str] = dict(cookies or {})
        self.body: Dict[str, Any] = dict(body or {})
        self.files: Dict[str, Any] = dict(files or {})
        self.server: Dict[str, Any] = dict(server or {})

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> Request:
        """Build a request from CGI/WSGI style environment variables."""
        env = os.environ if environ is None else environ

        scheme = "https" if str(env.get("HTTPS", "")).lower() in ("on", "1") else "http"
        host = env.get("HTTP_HOST") or env.get("SERVER_NAME") or ""
        port = env.get("SERVER_PORT", "")
        path = env.get("REQUEST_URI") or env.get("PATH_INFO") or ""
        query = env.get("QUERY_STRING", "")
        if query and "?" not in path:
            path = f"{path}?{query}"

        uri = ""
        if host:
            default_port = "443" if scheme == "https" else "80"
            netloc = host if not port or port == default_port or ":" in host else f"{host}:{port}"
            uri = f"{scheme}://{netloc}{path}"
        elif path:
            uri = path

        cookies = {}
        if env.get("HTTP_COOKIE"):
            jar = SimpleCookie()
            jar.load(env["HTTP_COOKIE"])
            cookies = {key: morsel.value for key, morsel in jar.items()}

        headers = {
            key[5:].replace("_", "-").title(): value
            for key, value in env.items()
            if key.startswith("HTTP_")
        }

        # Server params are only exposed for an explicitly passed environ
        return cls(
            method=env.get("REQUEST_METHOD", "GET"),
            uri=uri,
            headers=headers,
            cookies=cookies,
            server={key: value for key, value in env.items() if key.isupper()} if environ is not None else {},
        )

    @property
    def scheme(self) -> str:
        return self._parts.scheme

    @property
    def port(self) -> Optional[int]:
        try:
            return self._parts.port
        except ValueError:
            return None

    @property
    def path(self) -> str:
        return self._parts.path

    @property
    def query(self) -> str:
        return self._parts.query

    @property
    def query_params(self) -> Dict[str, str]:
        return dict(parse_qsl(self._parts.query))


# ============================================================================
# Response
# ============================================================================

class Response:
    """
    Response the fault body is written into.

    Headers are finalized once through ``send_headers``; after that
    ``headers_sent`` is true and the status line can no longer change.
    """

    def __init__(
        self,
        body: Optional[Stream] = None,
        status: int = 200,
        headers: Optional[Mapping[str, str]] = None,
        *,
        header_writer: Optional[HeaderWriter] = None,
    ):
        self.body = body if body is not None else Stream()
        self.status = status
        self._headers: Dict[str, str] = {}
        for name, value in (headers or {}).items():
            self.with_header(name, value)
        self.header_writer = header_writer
        self.headers_sent = False

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    def get_header(self, name: str) -> Optional[str]:
        return self._headers.get(name.lower())

    def with_header(self, name: str, value: str) -> Response:
        if "\n" in value or "\r" in value:
            raise ValueError(f"Header value for '{name}' contains a line break")
        self._headers[name.lower()] = value
        return self

    def without_header(self, name: str) -> Response:
        self._headers.pop(name.lower(), None)
        return self

    def with_status(self, status: int) -> Response:
        self.status = status
        return self

    def header_list(self) -> List[Tuple[str, str]]:
        return [(name.title(), value) for name, value in self._headers.items()]

    def send_headers(self) -> None:
        """Finalize headers and hand them to the host's writer, once."""
        if self.headers_sent:
            return
        if self.header_writer is not None:
            self.header_writer(self.status, self.header_list())
        self.headers_sent = True


# ============================================================================
# HttpMessaging
# ============================================================================

class HttpMessaging:
    """
    Access point to the request, the response and file streams.

    Pass your own ``Request``/``Response`` to reuse the host's objects,
    otherwise defaults are created lazily.
    """

    def __init__(self, response: Optional[Response] = None, request: Optional[Request] = None):
        self._response = response
        self._request = request

    def response(self) -> Response:
        if self._response is None:
            self._response = Response(Stream())
        return self._response

    def request(self) -> Request:
        if self._request is None:
            self._request = Request.from_environ()
        return self._request

    def stream(self, source: Any = None, mode: str = "r+") -> Stream:
        """Open ``source`` as a stream, or return the response body."""
        if source is not None:
            return Stream(source, mode)
        body = self.response().body
        if body is None:
            raise PreconditionError("The response body stream has not been initialized")
        return body
