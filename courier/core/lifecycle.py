"""
COURIER - Lifecycle Executor

Runs the three-phase request lifecycle (init -> transfer -> completion) on a
dedicated worker thread, optionally marshaling init and completion onto a
caller-supplied UI executor.
"""

import logging
import threading
from typing import Callable, Optional

from courier.core.errors import RequestStateError
from courier.core.types import LifecycleState, TransferResult

logger = logging.getLogger(__name__)

Work = Callable[[], None]
UiExecutor = Callable[[Work], None]


class LifecycleExecutor:
    """
    Drives one request through CREATED -> INITIALIZING -> TRANSFERRING ->
    COMPLETING -> DONE. Each state is reached exactly once.

    Ordering contract:
    - Without a UI executor, init runs synchronously on the thread calling
      start(), before the worker thread is spawned. Completion runs on the
      worker thread.
    - With a UI executor, the worker thread submits init to it and waits
      until it has run before transferring. Completion is submitted to it
      without waiting.
    - Transfer always runs on the worker thread.
    - If the UI executor raises on submit, completion runs on the worker
      thread instead (with a dropped result when init never ran).
    """

    def __init__(
        self,
        init: Work,
        transfer: Callable[[], TransferResult],
        complete: Callable[[TransferResult], None],
        ui_executor: Optional[UiExecutor] = None,
        name: str = "courier-request",
    ):
        """
        Initialize executor.

        Args:
            init: Init phase
            transfer: Transfer phase, returns the transfer result
            complete: Completion phase, receives the transfer result
            ui_executor: Optional submit(work) hook for init and completion
            name: Worker thread name
        """
        self._init = init
        self._transfer = transfer
        self._complete = complete
        self._ui_executor = ui_executor
        self._name = name

        self._lock = threading.Lock()
        self._state = LifecycleState.CREATED
        self._done = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> LifecycleState:
        with self._lock:
            return self._state

    def set_ui_executor(self, ui_executor: Optional[UiExecutor]) -> None:
        """Set the UI executor; only allowed before start()."""
        with self._lock:
            if self._state is not LifecycleState.CREATED:
                raise RequestStateError("UI executor must be set before the request starts")
            self._ui_executor = ui_executor

    def _transition(self, state: LifecycleState) -> None:
        with self._lock:
            self._state = state
        logger.debug(f"{self._name}: {state.value}")

    def start(self) -> None:
        """
        Start the lifecycle.

        Raises:
            RequestStateError: If the lifecycle was already started
        """
        with self._lock:
            if self._state is not LifecycleState.CREATED:
                raise RequestStateError("A request can only be started once")
            self._state = LifecycleState.INITIALIZING

        if self._ui_executor is None:
            self._init()

        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        """Worker thread body."""
        if self._ui_executor is not None:
            try:
                self._run_on_ui_and_wait(self._init)
            except Exception as e:
                logger.error(f"{self._name}: UI executor rejected init: {e}", exc_info=True)
                self._transition(LifecycleState.COMPLETING)
                self._finish(TransferResult.dropped())
                return

        self._transition(LifecycleState.TRANSFERRING)
        try:
            result = self._transfer()
        except Exception as e:
            logger.error(f"{self._name}: transfer failed unexpectedly: {e}", exc_info=True)
            result = TransferResult.dropped()

        self._transition(LifecycleState.COMPLETING)
        if self._ui_executor is None:
            self._finish(result)
            return

        try:
            self._ui_executor(lambda: self._finish(result))
        except Exception as e:
            # Completion still runs once, on the worker thread
            logger.error(f"{self._name}: UI executor rejected completion: {e}", exc_info=True)
            self._finish(result)

    def _run_on_ui_and_wait(self, work: Work) -> None:
        executed = threading.Event()

        def wrapped() -> None:
            try:
                work()
            finally:
                executed.set()

        self._ui_executor(wrapped)
        executed.wait()

    def _finish(self, result: TransferResult) -> None:
        try:
            self._complete(result)
        finally:
            self._transition(LifecycleState.DONE)
            self._done.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the terminal callback has run.

        Args:
            timeout: Maximum time to wait in seconds (None = wait forever)

        Returns:
            True if the lifecycle is done, False if timeout occurred
        """
        return self._done.wait(timeout)
