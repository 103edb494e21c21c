"""
COURIER - Request

A chainable HTTP request that runs once on a background thread and reports
exactly one outcome through its callbacks.
"""

import logging
from typing import Any, Dict, List, Optional

from courier.config.settings import RequestDefaults
from courier.core.callbacks import Callbacks, dispatch, run_init
from courier.core.encoding import (
    ParameterEncoder,
    append_path_segment,
    append_to_path,
    data_as_base64,
)
from courier.core.errors import RequestStateError
from courier.core.lifecycle import LifecycleExecutor, UiExecutor
from courier.core.transfer import ProxySettings, TransferSpec, send_file_request, send_request
from courier.core.types import (
    DEFAULT_MAX_BUFFER_SIZE,
    RESPONSE_CODE_UNSET,
    BodyFormat,
    Header,
    LifecycleState,
    TransferResult,
    response_category,
)
from courier.crypto.hashing import basic_authentication
from courier.infrastructure.filesystem import FileSystemAdapter, RealFileSystem
from courier.infrastructure.http import HttpClient, RequestsHttpClient

logger = logging.getLogger(__name__)

_MUTABLE_STATES = (LifecycleState.CREATED, LifecycleState.INITIALIZING)


class Request:
    """
    One HTTP exchange: GET, POST, PUT or DELETE.

    Parameters, headers, timeouts, proxy and upload settings are configured
    through chainable setters until the transfer begins (the init callback
    may still use them). start() runs the lifecycle on a worker thread and
    exactly one of on_response / on_failure / on_connection_dropped fires.

    Example:
        Request("https://api.example.com", "/posts", POST, callbacks) \\
            .add_parameter("title", "Hello") \\
            .set_connect_timeout(5000) \\
            .start()
    """

    def __init__(
        self,
        end_point: str,
        path: str,
        method: str,
        callbacks: Optional[Callbacks] = None,
        ui_executor: Optional[UiExecutor] = None,
        http_client: Optional[HttpClient] = None,
        file_system: Optional[FileSystemAdapter] = None,
        defaults: Optional[RequestDefaults] = None,
    ):
        """
        Initialize request.

        Args:
            end_point: Base URL (e.g., https://api.example.com)
            path: Path appended to the endpoint (e.g., /users)
            method: GET, POST, PUT or DELETE
            callbacks: Lifecycle callbacks (no-ops by default)
            ui_executor: Optional submit(work) hook for init and completion
            http_client: HTTP client (requests by default)
            file_system: Filesystem used for uploads
            defaults: Request defaults applied before any builder call

        Raises:
            ValueError: If method is not supported
        """
        self._url = end_point + path
        self._encoder = ParameterEncoder(method)
        self._method = method
        self.callbacks = callbacks or Callbacks()
        self._http = http_client or RequestsHttpClient()
        self._fs = file_system or RealFileSystem()

        self._headers: List[Header] = []
        self._proxy_host: Optional[str] = None
        self._proxy_port = 0
        self._proxy_username: Optional[str] = None
        self._proxy_password: Optional[str] = None
        self._connect_timeout = 0
        self._read_timeout = 0

        self._file: Optional[str] = None
        self._file_name: Optional[str] = None
        self._max_buffer_size = DEFAULT_MAX_BUFFER_SIZE
        self._is_async = False
        self._body_format = BodyFormat.JSON
        self._logging_enabled = False

        self._response_code = RESPONSE_CODE_UNSET
        self._response: Optional[str] = None

        if defaults is not None:
            self._apply_defaults(defaults)

        self._executor = LifecycleExecutor(
            init=self._on_pre_execute,
            transfer=self._do_in_background,
            complete=self._on_post_execute,
            ui_executor=ui_executor,
            name=f"courier-{method.lower()}",
        )

    def _apply_defaults(self, defaults: RequestDefaults) -> None:
        self._connect_timeout = defaults.connect_timeout
        self._read_timeout = defaults.read_timeout
        self._max_buffer_size = defaults.max_buffer_size
        self._body_format = BodyFormat(defaults.body_format)
        self._is_async = defaults.async_process
        self._logging_enabled = defaults.logging_enabled
        if defaults.proxy_host:
            self._proxy_host = defaults.proxy_host
            self._proxy_port = defaults.proxy_port
        if defaults.proxy_username is not None:
            self._proxy_username = defaults.proxy_username
            self._proxy_password = defaults.proxy_password or ""

    def _check_mutable(self) -> None:
        if self._executor.state not in _MUTABLE_STATES:
            raise RequestStateError(
                f"Request to {self._url} can no longer be modified "
                f"(state: {self._executor.state.value})"
            )

    def _trace(self, message: str) -> None:
        level = logging.INFO if self._logging_enabled else logging.DEBUG
        logger.log(level, message)

    # Builder API

    def add_parameter(self, key: str, value: Optional[str]) -> "Request":
        """
        Add a parameter to the query string (GET/DELETE) or body (POST/PUT).

        Args:
            key: Parameter name
            value: Parameter value

        Returns:
            self for chaining
        """
        self._check_mutable()
        self._encoder.add(key, value)
        return self

    def add_header(self, key: str, value: str) -> "Request":
        """
        Add a request header. Repeated keys are all sent, in insertion order.

        Returns:
            self for chaining
        """
        self._check_mutable()
        self._headers.append(Header(key, value))
        return self

    def add_basic_authentication(self, key: str, secret: str) -> "Request":
        """Add an Authorization: Basic header for key/secret."""
        header = basic_authentication(key, secret)
        return self.add_header(header.key, header.value)

    def append_to_path(self, segment: str) -> "Request":
        """Append a segment with a "/" separator (see encoding.append_to_path)."""
        self._check_mutable()
        self._url = append_to_path(self._url, segment)
        return self

    def append_path_segment(self, segment: str) -> "Request":
        """Append a segment after dropping one trailing "/" (see encoding.append_path_segment)."""
        self._check_mutable()
        self._url = append_path_segment(self._url, segment)
        return self

    def set_connect_timeout(self, connect_timeout: int) -> "Request":
        """Connection timeout in milliseconds (0 means no timeout)."""
        self._check_mutable()
        self._connect_timeout = connect_timeout
        return self

    def set_read_timeout(self, read_timeout: int) -> "Request":
        """Read timeout in milliseconds (0 means no timeout)."""
        self._check_mutable()
        self._read_timeout = read_timeout
        return self

    def set_proxy(self, host: str, port: int) -> "Request":
        self._check_mutable()
        self._proxy_host = host
        self._proxy_port = port
        return self

    def set_proxy_auth(self, username: str, password: str) -> "Request":
        """
        Set proxy credentials.

        Credentials apply to this request only; other requests running at
        the same time are not affected.
        """
        self._check_mutable()
        self._proxy_username = username
        self._proxy_password = password
        return self

    def set_file(self, path: str) -> "Request":
        """Attach a file; the request becomes a multipart upload."""
        self._check_mutable()
        self._file = path
        return self

    def set_file_name(self, file_name: str) -> "Request":
        self._check_mutable()
        self._file_name = file_name
        return self

    def set_max_buffer_size(self, max_buffer_size: int) -> "Request":
        """Largest chunk, in bytes, read from the upload file at once (default 1 MiB)."""
        self._check_mutable()
        if max_buffer_size <= 0:
            raise ValueError("max_buffer_size must be positive")
        self._max_buffer_size = max_buffer_size
        return self

    def enable_async_process(self) -> "Request":
        """
        Enable the early *_async callbacks.

        They fire on the worker thread as soon as the response is read,
        before the terminal callback.
        """
        self._check_mutable()
        self._is_async = True
        return self

    def enable_form_body(self) -> "Request":
        """Send POST/PUT parameters form-urlencoded instead of as JSON."""
        self._check_mutable()
        self._body_format = BodyFormat.FORM
        return self

    def set_logging_enabled(self, enabled: bool) -> "Request":
        """Log lifecycle tracing for this request at INFO instead of DEBUG."""
        self._logging_enabled = enabled
        return self

    def set_callbacks(self, callbacks: Callbacks) -> "Request":
        self._check_mutable()
        self.callbacks = callbacks
        return self

    def set_ui_executor(self, ui_executor: Optional[UiExecutor]) -> "Request":
        self._executor.set_ui_executor(ui_executor)
        return self

    # Lifecycle

    def start(self) -> "Request":
        """
        Start the request.

        Raises:
            RequestStateError: If the request was already started
        """
        self._executor.start()
        return self

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the terminal callback.

        Returns:
            True if the request is done, False if timeout occurred
        """
        return self._executor.join(timeout)

    def _on_pre_execute(self) -> None:
        self._trace(f"onInit: {self.method} {self._url}")
        run_init(self.callbacks, self)

    def _do_in_background(self) -> TransferResult:
        self._trace(f"doInBackground: {self.full_url}")

        if self._file is not None:
            self._is_async = True

        try:
            if self._file is None:
                result = send_request(self._transfer_spec(), self._http)
            else:
                result = send_file_request(self._transfer_spec(), self._http, self._fs)
        except Exception as e:
            logger.error(f"Transfer of {self.full_url} failed: {e}", exc_info=True)
            status = 0 if self._file is not None else RESPONSE_CODE_UNSET
            result = TransferResult.dropped(status=status)

        self._response_code = result.status
        if result.body is not None:
            self._response = result.body

        if self._is_async:
            dispatch(self.callbacks, result, early=True)

        return result

    def _on_post_execute(self, result: TransferResult) -> None:
        self._trace(
            f"onPostExecute: ({result.status}) {self.full_url}\nResponse: {result.body}"
        )
        outcome = dispatch(self.callbacks, result)
        self._trace(f"Dispatched {outcome.value} for {self.full_url}")

    def _transfer_spec(self) -> TransferSpec:
        proxy = None
        if self._proxy_host:
            proxy = ProxySettings(
                host=self._proxy_host,
                port=self._proxy_port,
                username=self._proxy_username,
                password=self._proxy_password,
            )

        body = None
        if self._encoder.has_body:
            if self._body_format is BodyFormat.JSON:
                if self._encoder.form is not None or self._encoder.json_data:
                    body = self._encoder.json_bytes()
            elif self._encoder.form is not None:
                body = self._encoder.form_bytes()

        return TransferSpec(
            method=self._method,
            url=self.full_url,
            headers=tuple(self._headers),
            body_format=self._body_format,
            body=body,
            connect_timeout=self._connect_timeout,
            read_timeout=self._read_timeout,
            proxy=proxy,
            file_path=self._file,
            file_name=self._file_name,
            max_buffer_size=self._max_buffer_size,
            trace=self._logging_enabled,
        )

    # Accessors

    @property
    def method(self) -> str:
        return self._method

    @property
    def url(self) -> str:
        """Endpoint plus path, without the query string."""
        return self._url

    @property
    def full_url(self) -> str:
        """URL including the accumulated query string for GET/DELETE."""
        return self._url + self._encoder.query

    @property
    def state(self) -> LifecycleState:
        return self._executor.state

    @property
    def headers(self) -> List[Header]:
        return list(self._headers)

    @property
    def body_format(self) -> BodyFormat:
        return self._body_format

    @property
    def is_async(self) -> bool:
        return self._is_async

    @property
    def response_code(self) -> int:
        """HTTP status, or -1 while no response was read."""
        return self._response_code

    @property
    def response(self) -> Optional[str]:
        """Response body, or None while no response was read."""
        return self._response

    @property
    def http_response_type(self) -> int:
        """Status category, one of the HTTP_RESPONSE_* constants (0 while unset)."""
        return response_category(self._response_code)

    @property
    def json_data(self) -> Dict[str, Any]:
        """Mutable JSON body for POST/PUT; extra fields may be added directly."""
        return self._encoder.json_data

    @property
    def post_data(self) -> Optional[str]:
        """Form-urlencoded POST/PUT body, None until a parameter is added."""
        return self._encoder.form

    @property
    def encoded_data(self) -> Optional[str]:
        return self._encoder.encoded_data

    def get_data(self) -> str:
        """All parameters URL-decoded and Base64-encoded, "" if none."""
        return data_as_base64(self._encoder.encoded_data)

    def __repr__(self) -> str:
        return f"Request({self._method} {self.full_url}, state={self.state.value})"
