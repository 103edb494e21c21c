"""
COURIER - Parameter & Body Encoding

Encodes request parameters into a query string, a JSON object or a
form-urlencoded body depending on the HTTP method, and provides the two
path-append rules used by requests.
"""

import base64
import json
import logging
from typing import Any, Dict, Iterable, Optional, Tuple
from urllib.parse import quote, unquote_plus

from courier.core.types import BODY_METHODS, METHODS

logger = logging.getLogger(__name__)

AND_CHAR = "&"
EQUAL_CHAR = "="
QUESTION_MARK = "?"


def url_encode(value: Optional[str]) -> str:
    """
    Percent-encode a value using UTF-8.

    Values that cannot be encoded degrade to an empty string instead of
    aborting the request.

    Args:
        value: Text to encode (None encodes as "")

    Returns:
        Encoded text, or "" on error
    """
    if value is None:
        return ""
    try:
        return quote(str(value), safe="", encoding="utf-8", errors="strict")
    except UnicodeEncodeError as e:
        logger.warning(f"Could not URL-encode value, sending empty field: {e}")
        return ""


def _json_value(value: Optional[str]) -> str:
    """Stripped JSON field value; values that cannot be encoded as UTF-8 degrade to ""."""
    if value is None:
        return ""
    stripped = value.strip()
    try:
        stripped.encode("utf-8")
    except UnicodeEncodeError as e:
        logger.warning(f"Could not encode JSON value, sending empty field: {e}")
        return ""
    return stripped


def append_to_path(path: str, segment: str) -> str:
    """
    Append a segment, inserting a "/" separator.

    The separator is inserted regardless of slashes already at the end of
    the path and consumes one leading "/" of the segment. A segment that
    ends with "/" is concatenated as-is.

        append_to_path("/users/", "/1") == "/users//1"
        append_to_path("/users", "1") == "/users/1"
    """
    if segment and not segment.endswith("/"):
        if segment.startswith("/"):
            segment = segment[1:]
        return path + "/" + segment
    return path + segment


def append_path_segment(path: str, segment: str) -> str:
    """
    Append a segment by plain concatenation after dropping one trailing "/".

        append_path_segment("/users/", "/1") == "/users/1"
    """
    if path.endswith("/"):
        path = path[:-1]
    return path + segment


class ParameterEncoder:
    """
    Accumulates key/value parameters for one request method.

    POST/PUT parameters build a JSON object (values stripped of whitespace)
    and, in parallel, a form-urlencoded string. GET/DELETE parameters build
    a query string whose first pair is prefixed with "?". The two
    representations are never mixed for a single method.
    """

    def __init__(self, method: str):
        if method not in METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}. Available: {list(METHODS)}")
        self._method = method
        self._json: Dict[str, Any] = {}
        self._form: Optional[str] = None
        self._query: Optional[str] = None

    @property
    def method(self) -> str:
        return self._method

    @property
    def has_body(self) -> bool:
        return self._method in BODY_METHODS

    def add(self, key: str, value: Optional[str]) -> None:
        """
        Add one parameter.

        Args:
            key: Parameter name
            value: Parameter value
        """
        pair = url_encode(key) + EQUAL_CHAR + url_encode(value)

        if self.has_body:
            self._json[key] = _json_value(value)
            if not self._form:
                self._form = pair
            else:
                self._form = self._form + AND_CHAR + pair
        else:
            if not self._query:
                self._query = QUESTION_MARK + pair
            else:
                self._query = self._query + AND_CHAR + pair

    @property
    def json_data(self) -> Dict[str, Any]:
        """Mutable JSON object sent as the POST/PUT body in JSON mode."""
        return self._json

    @property
    def form(self) -> Optional[str]:
        """Form-urlencoded body, None until a POST/PUT parameter is added."""
        return self._form

    @property
    def query(self) -> str:
        """Query string including the leading "?", "" for body methods or no parameters."""
        return self._query or ""

    @property
    def encoded_data(self) -> Optional[str]:
        """The accumulated encoded string for this method (form or query)."""
        return self._form if self.has_body else self._query

    def json_bytes(self) -> bytes:
        """Serialize the JSON object compactly as UTF-8."""
        return json.dumps(self._json, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    def form_bytes(self) -> bytes:
        return (self._form or "").encode("utf-8")


def encode_parameters(method: str, pairs: Iterable[Tuple[str, Optional[str]]]) -> ParameterEncoder:
    """
    Encode an ordered sequence of parameters for a method.

    Args:
        method: One of GET, POST, PUT, DELETE
        pairs: (key, value) pairs in insertion order

    Returns:
        ParameterEncoder holding every representation for the method
    """
    encoder = ParameterEncoder(method)
    for key, value in pairs:
        encoder.add(key, value)
    return encoder


def data_as_base64(encoded: Optional[str]) -> str:
    """
    URL-decode an encoded parameter string and re-encode it as Base64.

    Returns:
        Standard Base64 without line breaks, "" when nothing was encoded
    """
    if encoded is None:
        return ""
    decoded = unquote_plus(encoded, encoding="utf-8")
    return base64.b64encode(decoded.encode("utf-8")).decode("ascii").replace("\n", "")
