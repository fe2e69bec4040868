"""
antplan_config.py

Evaluator configuration for the AntPlan heuristic.

Every option recognized by the evaluator lives on EvaluatorConfig. Options
can be given as keyword arguments, as a plain dict (e.g. from the host's
option parser) or as a JSON file.

Usage:
    from antplan_config import EvaluatorConfig, load_config

    config = EvaluatorConfig.from_dict({
        "oracle_resource": "antplan.scripts.eval_gripper",
        "composition": "sum",
        "compute_relaxed_distance_variant": "max",
    })
    config = load_config("configs/gripper.json")

    config.cache_capacity           # attribute access
    config.get("lookahead_depth")   # dict-style access
"""

import json
import threading
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from antplan_exceptions import InvalidConfigError
from common.constants import (
    DEFAULT_CACHE_CAPACITY,
    DEFAULT_ENTRY_POINT,
    DEFAULT_FRONTIER_LIMIT,
    DEFAULT_IMPROVEMENT_THRESHOLD,
    DEFAULT_LOOKAHEAD_BUDGET,
    DEFAULT_LOOKAHEAD_DEPTH,
    DEFAULT_LOOKAHEAD_FREQUENCY,
    DEFAULT_LOOKAHEAD_TOP_K,
)
from component_10_logging_config import get_logger

logger = get_logger(__name__)


# ============================================================================
# Enums
# ============================================================================


class RelaxedDistanceVariant(Enum):
    """How the relaxed reachability pass aggregates costs."""

    NONE = "none"
    MAX = "max"  # h_max: max over preconditions and goals
    ADDITIVE = "additive"  # h_add: sum over preconditions and goals
    FF = "ff"  # additive propagation, cost of the extracted relaxed plan


class CompositionStrategy(Enum):
    """How relaxed distance and oracle score form the returned value."""

    RELAXED = "relaxed"
    ORACLE = "oracle"
    SUM = "sum"
    FRONTIER_MIN = "frontier_min"

    @property
    def needs_relaxed_distance(self) -> bool:
        return self is not CompositionStrategy.ORACLE

    @property
    def needs_oracle(self) -> bool:
        return self is not CompositionStrategy.RELAXED


class OracleFailurePolicy(Enum):
    """
    Substitute used when the oracle faults on one snapshot.

    ZERO is optimistic: the search keeps going but may expand states the
    oracle would have rejected. DEAD_END is pessimistic: the state is pruned,
    which can make a solvable task fail.
    """

    ZERO = "zero"
    DEAD_END = "dead_end"


class CacheScope(Enum):
    """Whether memoized values belong to one evaluator or to the process."""

    INSTANCE = "instance"
    SHARED = "shared"


_ENUM_OPTIONS = {
    "compute_relaxed_distance_variant": RelaxedDistanceVariant,
    "composition": CompositionStrategy,
    "oracle_failure_policy": OracleFailurePolicy,
    "cache_scope": CacheScope,
}

# Accepted spellings from the host option parser
_VARIANT_ALIASES = {
    "max-propagation": "max",
    "additive-propagation": "additive",
    "hmax": "max",
    "hadd": "additive",
}


# ============================================================================
# Configuration
# ============================================================================


@dataclass
class EvaluatorConfig:
    """
    Options of one AntPlan evaluator instance.

    Attributes:
        oracle_resource: Module name or .py path of the oracle (None: no oracle bound)
        entry_point: Callable name inside the oracle resource
        oracle_search_paths: Extra sys.path entries for the oracle import
        oracle_failure_policy: Fallback on oracle faults (zero | dead_end)
        enable_cache: Memoize results by state fingerprint
        cache_capacity: Entries before the whole cache is cleared
        cache_scope: instance (default) or shared process-wide cache
        enable_lookahead: Run the bounded lookahead probe periodically
        lookahead_frequency: Base period (in evaluations) of the probe
        lookahead_depth: Maximum recursion depth of one probe
        lookahead_budget: Maximum successor evaluations per probe
        lookahead_top_k: Successors marked/recursed into per probe level
        improvement_threshold: Successor must score below cost * threshold
        compute_relaxed_distance_variant: none | max | additive | ff
        composition: relaxed | oracle | sum | frontier_min
        frontier_limit: Maximum frontier snapshots scored per evaluation
        debug: Log oracle tracebacks (slow)
        log_states: Log every evaluated state's facts (very slow)
    """

    oracle_resource: Optional[str] = None
    entry_point: str = DEFAULT_ENTRY_POINT
    oracle_search_paths: List[str] = field(default_factory=list)
    oracle_failure_policy: OracleFailurePolicy = OracleFailurePolicy.ZERO
    enable_cache: bool = True
    cache_capacity: int = DEFAULT_CACHE_CAPACITY
    cache_scope: CacheScope = CacheScope.INSTANCE
    enable_lookahead: bool = False
    lookahead_frequency: int = DEFAULT_LOOKAHEAD_FREQUENCY
    lookahead_depth: int = DEFAULT_LOOKAHEAD_DEPTH
    lookahead_budget: int = DEFAULT_LOOKAHEAD_BUDGET
    lookahead_top_k: int = DEFAULT_LOOKAHEAD_TOP_K
    improvement_threshold: float = DEFAULT_IMPROVEMENT_THRESHOLD
    compute_relaxed_distance_variant: RelaxedDistanceVariant = (
        RelaxedDistanceVariant.ADDITIVE
    )
    composition: CompositionStrategy = CompositionStrategy.ORACLE
    frontier_limit: int = DEFAULT_FRONTIER_LIMIT
    debug: bool = False
    log_states: bool = False

    def __post_init__(self):
        for name, enum_cls in _ENUM_OPTIONS.items():
            setattr(self, name, _coerce_enum(name, enum_cls, getattr(self, name)))
        self.validate()

    def validate(self) -> None:
        """
        Check ranges and option combinations.

        Raises:
            InvalidConfigError: On the first invalid option
        """
        for name in ("enable_cache", "enable_lookahead", "debug", "log_states"):
            if not isinstance(getattr(self, name), bool):
                raise InvalidConfigError(
                    f"{name} must be a boolean, got {getattr(self, name)!r}",
                    option=name,
                )

        positive_ints = (
            "cache_capacity",
            "lookahead_frequency",
            "lookahead_top_k",
            "frontier_limit",
        )
        for name in positive_ints:
            value = getattr(self, name)
            if not _is_int(value) or value < 1:
                raise InvalidConfigError(
                    f"{name} must be a positive integer, got {value!r}", option=name
                )

        for name in ("lookahead_depth", "lookahead_budget"):
            value = getattr(self, name)
            if not _is_int(value) or value < 0:
                raise InvalidConfigError(
                    f"{name} must be a non-negative integer, got {value!r}",
                    option=name,
                )

        threshold = self.improvement_threshold
        if (
            isinstance(threshold, bool)
            or not isinstance(threshold, (int, float))
            or not 0.0 < threshold <= 1.0
        ):
            raise InvalidConfigError(
                f"improvement_threshold must be in (0, 1], got {threshold!r}",
                option="improvement_threshold",
            )

        if not self.entry_point or not isinstance(self.entry_point, str):
            raise InvalidConfigError(
                "entry_point must be a non-empty string", option="entry_point"
            )

        if self.oracle_resource is not None and not isinstance(
            self.oracle_resource, str
        ):
            raise InvalidConfigError(
                "oracle_resource must be a string", option="oracle_resource"
            )

        if not isinstance(self.oracle_search_paths, (list, tuple)) or not all(
            isinstance(p, str) for p in self.oracle_search_paths
        ):
            raise InvalidConfigError(
                "oracle_search_paths must be a list of strings",
                option="oracle_search_paths",
            )
        self.oracle_search_paths = list(self.oracle_search_paths)

        if (
            self.composition.needs_relaxed_distance
            and self.compute_relaxed_distance_variant is RelaxedDistanceVariant.NONE
        ):
            raise InvalidConfigError(
                f"composition '{self.composition.value}' needs a relaxed distance variant",
                option="compute_relaxed_distance_variant",
                context={"composition": self.composition.value},
            )

    # ------------------------------------------------------------------
    # Access helpers
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Dict-style access to an option."""
        return getattr(self, key, default)

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict with enum values as strings (JSON serializable)."""
        data = asdict(self)
        for name in _ENUM_OPTIONS:
            data[name] = data[name].value
        return data

    def namespace_key(self) -> str:
        """
        Key identifying configurations that produce identical values.

        Shared caches are namespaced by this key, so evaluators with different
        value semantics never read each other's entries.
        """
        return "|".join(
            [
                self.composition.value,
                self.compute_relaxed_distance_variant.value,
                self.oracle_failure_policy.value,
                self.oracle_resource or "<none>",
                self.entry_point,
                str(self.frontier_limit),
            ]
        )

    @classmethod
    def from_dict(cls, options: Dict[str, Any]) -> "EvaluatorConfig":
        """
        Build a config from a dict of options.

        Raises:
            InvalidConfigError: Unknown option or invalid value
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise InvalidConfigError(
                f"Unknown option(s): {', '.join(unknown)}",
                option=unknown[0],
                context={"known_options": sorted(known)},
            )
        return cls(**options)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _coerce_enum(name: str, enum_cls: type, value: Any) -> Enum:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower().replace("-", "_")
        if enum_cls is RelaxedDistanceVariant:
            normalized = _VARIANT_ALIASES.get(value.strip().lower(), normalized)
        for member in enum_cls:
            if member.value == normalized:
                return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise InvalidConfigError(
        f"{name} must be one of: {allowed}; got {value!r}", option=name
    )


def load_config(path: Union[str, Path]) -> EvaluatorConfig:
    """
    Load an EvaluatorConfig from a JSON file.

    Raises:
        InvalidConfigError: File missing, not JSON, not an object, or invalid options
    """
    file_path = Path(path)
    if not file_path.exists():
        raise InvalidConfigError(
            f"Config file '{file_path}' does not exist",
            context={"path": str(file_path)},
        )

    try:
        with file_path.open("r", encoding="utf-8") as handle:
            options = json.load(handle)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(
            f"Config file '{file_path}' is not valid JSON",
            context={"path": str(file_path)},
            original_exception=e,
        ) from e

    if not isinstance(options, dict):
        raise InvalidConfigError(
            f"Config file '{file_path}' must contain a JSON object",
            context={"path": str(file_path)},
        )

    config = EvaluatorConfig.from_dict(options)
    logger.info("Config loaded", extra={"path": str(file_path)})
    return config


# ============================================================================
# Process default
# ============================================================================

_default_config: Optional[EvaluatorConfig] = None
_config_lock = threading.Lock()


def get_config() -> EvaluatorConfig:
    """Process-wide default configuration (created lazily)."""
    global _default_config

    if _default_config is None:
        with _config_lock:
            if _default_config is None:
                _default_config = EvaluatorConfig()

    return _default_config


def set_config(config: Optional[EvaluatorConfig]) -> None:
    """Replace the process default (None restores the built-in defaults)."""
    global _default_config

    with _config_lock:
        _default_config = config
