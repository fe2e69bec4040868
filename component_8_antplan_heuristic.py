"""
Component 8: AntPlan Heuristic Evaluator

Facade consumed by the outer search. One evaluation runs:

    validate -> cache lookup -> compose (relaxed pass + oracle)
    -> relaxed plan preferred operators -> lookahead probe -> cache store

The evaluator owns its proposition arena, symbol table, probe and (by
default) its cache. Calls are sequential; the instance is not re-entrant.

Usage:
    from antplan_config import EvaluatorConfig
    from component_8_antplan_heuristic import AntPlanHeuristic

    config = EvaluatorConfig(oracle_resource="models/gripper_cost.py")
    heuristic = AntPlanHeuristic(task, config)
    result = heuristic.evaluate(task.initial_state())
    print(result.value, sorted(result.preferred))

Author: AntPlan Development Team
Date: 2026-10-19
"""

import itertools
from typing import Any, Dict, Optional

from antplan_config import (
    CacheScope,
    EvaluatorConfig,
    RelaxedDistanceVariant,
    get_config,
)
from antplan_exceptions import InvalidConfigError, OracleInitializationError
from component_10_logging_config import get_logger
from component_1_task_model import PlanningTask, State
from component_3_relaxed_reachability import RelaxedReachabilityEngine
from component_4_oracle import Oracle, OracleScorer, PythonFunctionOracle
from component_5_state_cache import HeuristicCache
from component_6_lookahead_probe import LookaheadProbe, ProbeSchedule
from component_7_heuristic_composer import HeuristicComposer
from infrastructure.cache_manager import get_cache_manager
from infrastructure.interfaces import BaseHeuristicEvaluator, HeuristicResult

logger = get_logger(__name__)

_instance_ids = itertools.count(1)


class AntPlanHeuristic(BaseHeuristicEvaluator):
    """
    Relaxed reachability + oracle heuristic with memoization and lookahead.

    Args:
        task: Planning task the states belong to
        config: Evaluator options (process default when None)
        oracle: Ready oracle handle; when None and config.oracle_resource is
            set, a PythonFunctionOracle is bound from the configuration

    Raises:
        OracleInitializationError: The configured oracle could not be bound
        InvalidConfigError: The configuration needs an oracle but has none
    """

    def __init__(
        self,
        task: PlanningTask,
        config: Optional[EvaluatorConfig] = None,
        oracle: Optional[Oracle] = None,
    ):
        self.task = task
        self.config = config or get_config()
        self.instance_id = next(_instance_ids)
        self._owns_oracle = False

        if oracle is None and self.config.oracle_resource:
            oracle = self._bind_configured_oracle()
            self._owns_oracle = True

        composition = self.config.composition
        if composition.needs_oracle and oracle is None:
            raise InvalidConfigError(
                f"composition '{composition.value}' needs an oracle",
                option="oracle_resource",
            )
        if self.config.enable_lookahead and oracle is None:
            raise InvalidConfigError(
                "enable_lookahead needs an oracle", option="enable_lookahead"
            )

        self.oracle = oracle
        self.scorer: Optional[OracleScorer] = None
        if oracle is not None:
            self.scorer = OracleScorer(
                oracle,
                task,
                failure_policy=self.config.oracle_failure_policy,
                debug=self.config.debug,
            )

        variant = self.config.compute_relaxed_distance_variant
        self.engine: Optional[RelaxedReachabilityEngine] = None
        if variant is not RelaxedDistanceVariant.NONE:
            self.engine = RelaxedReachabilityEngine(task, variant)

        self.composer = HeuristicComposer(
            composition, self.engine, self.scorer, self.config.frontier_limit
        )
        self.cache = self._create_cache()

        self.schedule: Optional[ProbeSchedule] = None
        self.probe: Optional[LookaheadProbe] = None
        if self.config.enable_lookahead:
            self.schedule = ProbeSchedule(self.config.lookahead_frequency)
            self.probe = LookaheadProbe(
                task,
                self.scorer,
                depth=self.config.lookahead_depth,
                budget=self.config.lookahead_budget,
                improvement_threshold=self.config.improvement_threshold,
                top_k=self.config.lookahead_top_k,
            )

        self.stats: Dict[str, int] = {
            "calls": 0,
            "cache_hits": 0,
            "cache_misses": 0,
            "dead_ends": 0,
            "probes": 0,
            "probe_candidates": 0,
            "probe_preferred": 0,
            "preferred_marked": 0,
        }

        logger.info(
            "AntPlanHeuristic created",
            extra={
                "composition": composition.value,
                "variant": variant.value,
                "oracle": oracle.description if oracle is not None else None,
                "cache": self.cache.name if self.cache is not None else None,
                "lookahead": self.config.enable_lookahead,
            },
        )

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    def _bind_configured_oracle(self) -> Oracle:
        oracle = PythonFunctionOracle(
            entry_point=self.config.entry_point,
            search_paths=self.config.oracle_search_paths,
        )
        try:
            oracle.initialize(self.config.oracle_resource)
        except OracleInitializationError as e:
            logger.error(
                "Oracle initialization failed; evaluator refuses to start",
                extra={
                    "resource": self.config.oracle_resource,
                    "entry_point": self.config.entry_point,
                    "available": ", ".join(e.available_entry_points),
                },
            )
            raise
        return oracle

    def _create_cache(self) -> Optional[HeuristicCache]:
        if not self.config.enable_cache:
            return None
        if self.config.cache_scope is CacheScope.SHARED:
            return get_cache_manager().get_or_register(
                self.config.namespace_key(), self.config.cache_capacity
            )
        return HeuristicCache(
            f"antplan-{self.instance_id}", self.config.cache_capacity
        )

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, state: State) -> HeuristicResult:
        """
        Evaluate one state.

        Raises:
            StateMismatchError: State does not fit the task
            OracleNotReadyError: The oracle lost its binding (e.g. closed)
        """
        self.task.validate_state(state)
        if self.scorer is not None:
            self.scorer.ensure_ready()

        self.stats["calls"] += 1
        if self.config.log_states:
            logger.debug(
                "Evaluating state",
                extra={
                    "facts": ", ".join(
                        self.task.fact_name(var, value)
                        for var, value in enumerate(state)
                    )
                },
            )

        fingerprint = state.fingerprint()
        if self.cache is not None:
            cached = self.cache.get(fingerprint)
            if cached is not None:
                self.stats["cache_hits"] += 1
                return HeuristicResult(cached, cache_hit=True)
            self.stats["cache_misses"] += 1

        composition = self.composer.compose(state)
        value = composition.value

        preferred = set()
        if composition.dead_end:
            self.stats["dead_ends"] += 1
        elif self.engine is not None:
            preferred.update(self.engine.extract_relaxed_plan(state).preferred)

        probed = False
        if self.probe is not None and self.schedule.tick():
            if not composition.dead_end and value > 0:
                report = self.probe.run(state, value)
                probed = True
                self.stats["probes"] += 1
                self.stats["probe_candidates"] += report.candidates_considered
                self.stats["probe_preferred"] += len(report.preferred)
                preferred.update(report.preferred)

        self.stats["preferred_marked"] += len(preferred)

        if self.cache is not None:
            self.cache.put(fingerprint, value)

        if self.config.log_states:
            logger.debug(
                "State evaluated",
                extra={"value": value, "preferred": sorted(preferred)},
            )

        return HeuristicResult(value, frozenset(preferred), probed=probed)

    # ------------------------------------------------------------------
    # Lifecycle / statistics
    # ------------------------------------------------------------------

    def clear_cache(self) -> int:
        """Drop memoized values. Returns the number removed."""
        if self.cache is None:
            return 0
        return self.cache.clear()

    def close(self) -> None:
        """Release the oracle if this evaluator bound it."""
        if self._owns_oracle and self.oracle is not None:
            self.oracle.close()
            self._owns_oracle = False

    def __enter__(self) -> "AntPlanHeuristic":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def get_stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = dict(self.stats)
        if self.scorer is not None:
            stats["oracle_calls"] = self.scorer.calls
            stats["oracle_failures"] = self.scorer.failures
        else:
            stats["oracle_calls"] = 0
            stats["oracle_failures"] = 0
        stats["cache"] = self.cache.get_stats() if self.cache is not None else None
        return stats
