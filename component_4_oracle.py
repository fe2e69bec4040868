"""
Component 4: Oracle Interface

External scoring delegate consulted for state evaluation.

- Oracle: abstract delegate (ready / initialize / score / close)
- CallableOracle: wraps any Python callable
- PythonFunctionOracle: binds an entry point from a module or .py file
- SymbolTable: interned variable/fact names, built lazily per task
- OracleScorer: serializes calls through the shared runtime, normalizes
  scores and applies the failure policy

Snapshot wire format: {variable name: name of the fact currently holding it}

Author: AntPlan Development Team
Date: 2026-10-19
"""

import importlib
import importlib.util
import inspect
import math
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from antplan_config import OracleFailurePolicy
from antplan_exceptions import (
    AntPlanException,
    OracleEvaluationError,
    OracleInitializationError,
    OracleNotReadyError,
    wrap_exception,
)
from common.constants import DEFAULT_ENTRY_POINT
from component_10_logging_config import PerformanceLogger, get_logger
from component_1_task_model import PlanningTask, State
from infrastructure.oracle_runtime import OracleRuntime, get_oracle_runtime

logger = get_logger(__name__)

Snapshot = Mapping[str, str]


# ============================================================================
# Score normalization
# ============================================================================


def scalar_to_float(result: Any) -> float:
    """
    Convert an oracle return value to float.

    numpy / torch scalars (anything with .item()) are unwrapped first.

    Raises:
        TypeError: If the value is not numeric
    """
    if hasattr(result, "item") and callable(result.item):
        result = result.item()
    if isinstance(result, bool) or not isinstance(result, (int, float)):
        raise TypeError(f"oracle returned non-numeric {type(result).__name__}")
    return float(result)


def normalize_score(value: float) -> float:
    """NaN/Inf become 0, negative scores are clamped to 0."""
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return max(0.0, value)


# ============================================================================
# Oracle Interface
# ============================================================================


class Oracle(ABC):
    """
    Abstract scoring delegate.

    Implementations bind to the shared OracleRuntime when they become ready
    and release it in close().
    """

    def __init__(
        self,
        runtime: Optional[OracleRuntime] = None,
        search_paths: Sequence[str] = (),
    ):
        self.runtime: OracleRuntime = runtime or get_oracle_runtime()
        self.search_paths: List[str] = list(search_paths)
        self._runtime_bound: bool = False

    def _bind_runtime(self) -> None:
        if not self._runtime_bound:
            self.runtime.acquire(self.search_paths)
            self._runtime_bound = True

    @abstractmethod
    def ready(self) -> bool:
        """Whether initialization has completed."""

    @abstractmethod
    def initialize(self, identifier: str) -> None:
        """
        Bind the delegate to a named resource.

        Raises:
            OracleInitializationError: Resource or entry point unavailable
        """

    @abstractmethod
    def score(self, snapshot: Snapshot) -> float:
        """
        Score one snapshot. Must not mutate engine state.

        Raises:
            OracleEvaluationError: The delegate faulted
        """

    def close(self) -> None:
        """Release the runtime reference."""
        if self._runtime_bound:
            self._runtime_bound = False
            self.runtime.release()

    @property
    def description(self) -> str:
        return type(self).__name__


class CallableOracle(Oracle):
    """
    Oracle backed by a plain Python callable.

    Ready immediately; initialize() only records a display name.

    Example:
        oracle = CallableOracle(lambda snapshot: len(snapshot))
    """

    def __init__(
        self,
        fn: Callable[[Dict[str, str]], Any],
        name: Optional[str] = None,
        runtime: Optional[OracleRuntime] = None,
    ):
        super().__init__(runtime=runtime)
        if not callable(fn):
            raise OracleInitializationError(
                "CallableOracle needs a callable", entry_point=repr(fn)
            )
        self.fn = fn
        self.name = name or getattr(fn, "__name__", "callable")
        self._bind_runtime()

    def ready(self) -> bool:
        return self._runtime_bound

    def initialize(self, identifier: str) -> None:
        self.name = identifier
        self._bind_runtime()

    def score(self, snapshot: Snapshot) -> float:
        try:
            return scalar_to_float(self.fn(dict(snapshot)))
        except Exception as e:
            raise wrap_exception(
                e,
                OracleEvaluationError,
                f"Oracle '{self.name}' failed",
                snapshot_size=len(snapshot),
            ) from e

    @property
    def description(self) -> str:
        return f"callable:{self.name}"


class PythonFunctionOracle(Oracle):
    """
    Oracle bound to an entry point inside a Python module or .py file.

    Identifier forms:
        "pkg.subpkg.module"        imported by name (search paths apply)
        "path/to/cost_model.py"    loaded from the file

    Example:
        oracle = PythonFunctionOracle(entry_point="anticipatory_cost_fn")
        oracle.initialize("antplan.scripts.eval_gripper")
    """

    def __init__(
        self,
        entry_point: str = DEFAULT_ENTRY_POINT,
        search_paths: Sequence[str] = (),
        runtime: Optional[OracleRuntime] = None,
    ):
        super().__init__(runtime=runtime, search_paths=search_paths)
        self.entry_point = entry_point
        self.resource: Optional[str] = None
        self._fn: Optional[Callable[..., Any]] = None

    def ready(self) -> bool:
        return self._fn is not None

    def initialize(self, identifier: str) -> None:
        self._fn = None
        self.resource = identifier

        if not identifier:
            raise OracleInitializationError(
                "No oracle resource provided", entry_point=self.entry_point
            )

        # The runtime provides the import paths
        self._bind_runtime()
        try:
            with PerformanceLogger(
                logger.logger, "Oracle initialization", resource=identifier
            ):
                module = self._load_module(identifier)
                self._fn = self._resolve_entry_point(module, identifier)
        except OracleInitializationError:
            self.close()
            raise

        logger.info(
            "Oracle ready",
            extra={"resource": identifier, "entry_point": self.entry_point},
        )

    def _load_module(self, identifier: str):
        is_file = identifier.endswith(".py") or Path(identifier).is_file()
        try:
            if is_file:
                return self._load_file(Path(identifier))
            return importlib.import_module(identifier)
        except OracleInitializationError:
            raise
        except Exception as e:
            raise OracleInitializationError(
                f"Could not import oracle resource '{identifier}'",
                resource=identifier,
                entry_point=self.entry_point,
                original_exception=e,
            ) from e

    def _load_file(self, path: Path):
        if not path.is_file():
            raise OracleInitializationError(
                f"Oracle file '{path}' does not exist",
                resource=str(path),
                entry_point=self.entry_point,
            )
        module_name = f"antplan_oracle_{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise OracleInitializationError(
                f"Oracle file '{path}' is not a loadable Python module",
                resource=str(path),
                entry_point=self.entry_point,
            )
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise
        return module

    def _resolve_entry_point(self, module, identifier: str) -> Callable[..., Any]:
        available = available_entry_points(module)

        if not hasattr(module, self.entry_point):
            raise OracleInitializationError(
                f"Entry point '{self.entry_point}' not found in '{identifier}'",
                resource=identifier,
                entry_point=self.entry_point,
                available_entry_points=available,
            )

        fn = getattr(module, self.entry_point)
        if not callable(fn):
            raise OracleInitializationError(
                f"'{self.entry_point}' in '{identifier}' is not callable",
                resource=identifier,
                entry_point=self.entry_point,
                available_entry_points=available,
            )
        return fn

    def score(self, snapshot: Snapshot) -> float:
        if self._fn is None:
            raise OracleNotReadyError(
                "Oracle scored before initialize()",
                context={"entry_point": self.entry_point},
            )
        try:
            return scalar_to_float(self._fn(snapshot))
        except Exception as e:
            raise wrap_exception(
                e,
                OracleEvaluationError,
                f"Oracle '{self.entry_point}' failed",
                snapshot_size=len(snapshot),
            ) from e

    def close(self) -> None:
        self._fn = None
        super().close()

    @property
    def description(self) -> str:
        return f"{self.resource}:{self.entry_point}"


def available_entry_points(module) -> List[str]:
    """Public functions of a module (remediation hint for binding errors)."""
    return sorted(
        name
        for name, obj in vars(module).items()
        if not name.startswith("_")
        and callable(obj)
        and not inspect.isclass(obj)
        and not inspect.ismodule(obj)
    )


# ============================================================================
# Symbol Table
# ============================================================================


class SymbolTable:
    """
    Interned variable and fact names for building snapshots.

    Built once, lazily, on first use; rebuilt only when bound to another task.
    """

    def __init__(self, task: Optional[PlanningTask] = None):
        self._task = task
        self._var_names: List[str] = []
        self._fact_names: List[List[str]] = []
        self._ready = False
        self.builds = 0

    @property
    def is_built(self) -> bool:
        return self._ready

    def bind(self, task: PlanningTask) -> None:
        """Use another task; invalidates the tables if it differs."""
        if task is not self._task:
            self._task = task
            self._ready = False
            self._var_names = []
            self._fact_names = []

    def ensure_built(self) -> None:
        if self._ready:
            return
        if self._task is None:
            raise ValueError("SymbolTable has no task bound")

        self._var_names = [sys.intern(var.name) for var in self._task.variables]
        self._fact_names = [
            [sys.intern(name) for name in var.fact_names]
            for var in self._task.variables
        ]
        self._ready = True
        self.builds += 1
        logger.debug(
            "Built oracle string tables", extra={"variables": len(self._var_names)}
        )

    def snapshot(
        self, state: State, override: Optional[Tuple[int, int]] = None
    ) -> Dict[str, str]:
        """
        Snapshot of a state, optionally with one (var, value) replaced.
        """
        self.ensure_built()
        var_names = self._var_names
        fact_names = self._fact_names
        snapshot = {
            var_names[var]: fact_names[var][value] for var, value in enumerate(state)
        }
        if override is not None:
            var, value = override
            snapshot[var_names[var]] = fact_names[var][value]
        return snapshot


# ============================================================================
# Oracle Scorer
# ============================================================================


@dataclass
class ScoreOutcome:
    """
    Result of one scoring request.

    Attributes:
        value: Normalized score (fallback value on failure)
        failed: The oracle faulted
        dead_end: Failure mapped to DEAD-END by policy
    """

    value: float
    failed: bool = False
    dead_end: bool = False


class OracleScorer:
    """
    Gateway for every call into an oracle.

    - Fails fast when the oracle is not ready
    - Holds the runtime session for the duration of each call
    - Normalizes non-finite and negative scores
    - Applies the failure policy to any fault raised by the oracle

    Attributes:
        calls: Oracle invocations
        failures: Invocations that faulted
    """

    def __init__(
        self,
        oracle: Oracle,
        task: PlanningTask,
        failure_policy: OracleFailurePolicy = OracleFailurePolicy.ZERO,
        debug: bool = False,
    ):
        self.oracle = oracle
        self.symbols = SymbolTable(task)
        self.failure_policy = failure_policy
        self.debug = debug
        self.calls = 0
        self.failures = 0

    def bind_task(self, task: PlanningTask) -> None:
        self.symbols.bind(task)

    def ensure_ready(self) -> None:
        """
        Raises:
            OracleNotReadyError: Refuse to evaluate with an unbound oracle
        """
        if not self.oracle.ready():
            raise OracleNotReadyError(
                "Oracle not ready; refusing to produce estimates",
                context={"oracle": self.oracle.description},
            )

    def _call(self, snapshot: Snapshot) -> float:
        self.ensure_ready()
        self.calls += 1
        with self.oracle.runtime.session():
            try:
                raw = scalar_to_float(self.oracle.score(snapshot))
            except AntPlanException:
                raise
            except Exception as e:
                # Oracle subclasses may raise anything; treat it as a scoring fault
                raise wrap_exception(
                    e,
                    OracleEvaluationError,
                    f"Oracle '{self.oracle.description}' failed",
                    snapshot_size=len(snapshot),
                ) from e
        return normalize_score(raw)

    def _record_failure(self, error: OracleEvaluationError) -> None:
        self.failures += 1
        if self.debug:
            logger.log_exception(
                error, message="Oracle evaluation failed", failures=self.failures
            )
        else:
            logger.warning(
                "Oracle evaluation failed",
                extra={"error": str(error), "failures": self.failures},
            )

    def score_snapshot(self, snapshot: Snapshot) -> ScoreOutcome:
        """Score a snapshot, substituting the policy fallback on faults."""
        try:
            return ScoreOutcome(self._call(snapshot))
        except OracleEvaluationError as e:
            self._record_failure(e)
            if self.failure_policy is OracleFailurePolicy.DEAD_END:
                return ScoreOutcome(0.0, failed=True, dead_end=True)
            return ScoreOutcome(0.0, failed=True)

    def score_state(
        self, state: State, override: Optional[Tuple[int, int]] = None
    ) -> ScoreOutcome:
        self.ensure_ready()
        return self.score_snapshot(self.symbols.snapshot(state, override))

    def try_score(self, state: State) -> Optional[float]:
        """Score a state; None on faults (no fallback substituted)."""
        snapshot = self.symbols.snapshot(state)
        try:
            return self._call(snapshot)
        except OracleEvaluationError as e:
            self._record_failure(e)
            return None
