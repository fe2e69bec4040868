"""
infrastructure/oracle_runtime.py

Process-wide execution context shared by all oracle handles.

Oracles may run inside a runtime with its own exclusivity requirement (an
embedded interpreter, a GPU model, a non-reentrant native library). This
module models that runtime explicitly:

- Lazily initialized on the first acquire()
- Reference counted: every bound oracle handle holds one reference
- Scoped exclusivity: every call into an oracle runs inside session(),
  which holds the runtime lock and releases it on every exit path
- Owns the sys.path entries it added for oracle imports and removes
  them again when the last reference is released

Usage:
    from infrastructure.oracle_runtime import get_oracle_runtime

    runtime = get_oracle_runtime()
    runtime.acquire(search_paths=["./models"])
    try:
        with runtime.session():
            value = cost_fn(snapshot)
    finally:
        runtime.release()

Thread Safety:
    session() uses a reentrant lock, so an oracle may call back into code
    that opens a nested session.
"""

import sys
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from common.constants import DEFAULT_SEARCH_PATH
from component_10_logging_config import get_logger

logger = get_logger(__name__)


class OracleRuntime:
    """
    Reference-counted, lazily initialized oracle runtime.

    Attributes:
        ref_count: Number of oracle handles currently bound
        initialized: Whether the runtime has been brought up
        session_count: Total number of sessions opened (statistics)
    """

    def __init__(self):
        self._state_lock = threading.Lock()
        self._session_lock = threading.RLock()
        self.ref_count: int = 0
        self.initialized: bool = False
        self.session_count: int = 0
        self._added_paths: List[str] = []
        self._holder: Optional[int] = None
        self._depth: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def acquire(self, search_paths: Sequence[str] = ()) -> None:
        """
        Take one reference; initializes the runtime on first use.

        Args:
            search_paths: Extra import paths needed by the caller's oracle
        """
        with self._state_lock:
            if not self.initialized:
                self._initialize()
            for path in search_paths:
                self._add_search_path(path)
            self.ref_count += 1

            logger.debug(
                "Oracle runtime acquired", extra={"ref_count": self.ref_count}
            )

    def release(self) -> None:
        """Drop one reference; tears the runtime down when none remain."""
        with self._state_lock:
            if self.ref_count == 0:
                logger.warning("Oracle runtime released more often than acquired")
                return
            self.ref_count -= 1
            if self.ref_count == 0:
                self._shutdown()

    def _initialize(self) -> None:
        self._add_search_path(DEFAULT_SEARCH_PATH)
        self.initialized = True
        logger.info("Oracle runtime initialized")

    def _shutdown(self) -> None:
        for path in self._added_paths:
            try:
                sys.path.remove(path)
            except ValueError:
                pass  # removed by someone else
        removed = len(self._added_paths)
        self._added_paths = []
        self.initialized = False
        logger.info("Oracle runtime shut down", extra={"paths_removed": removed})

    def _add_search_path(self, path: str) -> None:
        # Only insert once; never grow sys.path on repeated binds
        if path in sys.path:
            return
        sys.path.insert(0, path)
        self._added_paths.append(path)

    # ------------------------------------------------------------------
    # Scoped exclusivity
    # ------------------------------------------------------------------

    @contextmanager
    def session(self) -> Iterator["OracleRuntime"]:
        """
        Hold the runtime's exclusivity for the duration of one oracle call.

        Raises:
            RuntimeError: If the runtime has no bound handle
        """
        if not self.initialized:
            raise RuntimeError("Oracle runtime used before acquire()")

        self._session_lock.acquire()
        self._holder = threading.get_ident()
        self._depth += 1
        self.session_count += 1
        try:
            yield self
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._holder = None
            self._session_lock.release()

    def is_held(self) -> bool:
        """True while the calling thread is inside session()."""
        return self._holder == threading.get_ident() and self._depth > 0


# ============================================================================
# Module-level Functions (Convenience API)
# ============================================================================

_runtime_instance: Optional[OracleRuntime] = None
_instance_lock = threading.RLock()


def get_oracle_runtime() -> OracleRuntime:
    """
    Get the process-wide OracleRuntime.

    Thread-safe lazy initialization with double-checked locking.
    """
    global _runtime_instance

    if _runtime_instance is None:
        with _instance_lock:
            if _runtime_instance is None:
                _runtime_instance = OracleRuntime()

    return _runtime_instance


def reset_oracle_runtime() -> None:
    """
    Discard the process-wide runtime.

    WARNING: Only use for testing! Bound oracle handles keep their old
    runtime reference.
    """
    global _runtime_instance

    with _instance_lock:
        if _runtime_instance is not None:
            with _runtime_instance._state_lock:
                if _runtime_instance.initialized:
                    _runtime_instance._shutdown()
                _runtime_instance.ref_count = 0
            _runtime_instance = None
            logger.warning("Oracle runtime reset (should only be used in tests)")
