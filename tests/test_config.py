"""
Tests for evaluator configuration (antplan_config).
"""

import json

import pytest

from antplan_config import (
    CacheScope,
    CompositionStrategy,
    EvaluatorConfig,
    OracleFailurePolicy,
    RelaxedDistanceVariant,
    get_config,
    load_config,
    set_config,
)
from antplan_exceptions import InvalidConfigError
from common.constants import DEFAULT_CACHE_CAPACITY, DEFAULT_ENTRY_POINT


class TestDefaults:
    """Tests for default option values"""

    def test_defaults(self):
        """Test: Documented defaults"""
        config = EvaluatorConfig()

        assert config.entry_point == DEFAULT_ENTRY_POINT == "anticipatory_cost_fn"
        assert config.enable_cache is True
        assert config.cache_capacity == DEFAULT_CACHE_CAPACITY == 500000
        assert config.enable_lookahead is False
        assert config.lookahead_frequency == 10
        assert config.lookahead_depth == 2
        assert config.lookahead_budget == 50
        assert config.improvement_threshold == 0.9
        assert config.compute_relaxed_distance_variant is RelaxedDistanceVariant.ADDITIVE
        assert config.composition is CompositionStrategy.ORACLE
        assert config.oracle_failure_policy is OracleFailurePolicy.ZERO
        assert config.cache_scope is CacheScope.INSTANCE

    def test_dict_style_access(self):
        """Test: get() mirrors attribute access"""
        config = EvaluatorConfig(lookahead_depth=4)

        assert config.get("lookahead_depth") == 4
        assert config.get("no_such_option", "fallback") == "fallback"


class TestEnumCoercion:
    """Tests for string -> enum coercion"""

    @pytest.mark.parametrize(
        "spelling, expected",
        [
            ("none", RelaxedDistanceVariant.NONE),
            ("max", RelaxedDistanceVariant.MAX),
            ("max-propagation", RelaxedDistanceVariant.MAX),
            ("additive-propagation", RelaxedDistanceVariant.ADDITIVE),
            ("hadd", RelaxedDistanceVariant.ADDITIVE),
            ("FF", RelaxedDistanceVariant.FF),
        ],
    )
    def test_variant_spellings(self, spelling, expected):
        """Test: Host spellings of the relaxed variant are accepted"""
        config = EvaluatorConfig(compute_relaxed_distance_variant=spelling)

        assert config.compute_relaxed_distance_variant is expected

    def test_hyphenated_composition(self):
        """Test: 'frontier-min' maps to FRONTIER_MIN"""
        config = EvaluatorConfig(composition="frontier-min")

        assert config.composition is CompositionStrategy.FRONTIER_MIN

    def test_unknown_enum_value(self):
        """Test: Unknown spellings are rejected with the option name"""
        with pytest.raises(InvalidConfigError) as exc_info:
            EvaluatorConfig(oracle_failure_policy="panic")

        assert exc_info.value.context["option"] == "oracle_failure_policy"


class TestValidation:
    """Tests for option validation"""

    @pytest.mark.parametrize(
        "option, value",
        [
            ("cache_capacity", 0),
            ("cache_capacity", "big"),
            ("lookahead_frequency", 0),
            ("lookahead_depth", -1),
            ("lookahead_budget", 2.5),
            ("lookahead_top_k", 0),
            ("frontier_limit", 0),
            ("improvement_threshold", 0.0),
            ("improvement_threshold", 1.5),
            ("enable_cache", "yes"),
            ("entry_point", ""),
            ("oracle_search_paths", "models"),
        ],
    )
    def test_invalid_values(self, option, value):
        """Test: Out-of-range or mistyped options raise"""
        with pytest.raises(InvalidConfigError) as exc_info:
            EvaluatorConfig(**{option: value})

        assert exc_info.value.context["option"] == option

    def test_threshold_one_allowed(self):
        """Test: improvement_threshold=1 is the inclusive upper bound"""
        assert EvaluatorConfig(improvement_threshold=1.0).improvement_threshold == 1.0

    @pytest.mark.parametrize("composition", ["relaxed", "sum", "frontier_min"])
    def test_relaxed_compositions_need_variant(self, composition):
        """Test: Relaxed-based compositions reject variant none"""
        with pytest.raises(InvalidConfigError) as exc_info:
            EvaluatorConfig(composition=composition, compute_relaxed_distance_variant="none")

        assert exc_info.value.context["option"] == "compute_relaxed_distance_variant"


class TestLoading:
    """Tests for dict / JSON loading"""

    def test_from_dict(self):
        config = EvaluatorConfig.from_dict(
            {"composition": "sum", "cache_capacity": 1000, "oracle_search_paths": ["lib"]}
        )

        assert config.composition is CompositionStrategy.SUM
        assert config.cache_capacity == 1000
        assert config.oracle_search_paths == ["lib"]

    def test_from_dict_rejects_unknown(self):
        """Test: Typos in option names are reported"""
        with pytest.raises(InvalidConfigError) as exc_info:
            EvaluatorConfig.from_dict({"enable_cahce": False})

        assert exc_info.value.context["option"] == "enable_cahce"

    def test_to_dict_round_trip(self):
        """Test: to_dict() is JSON serializable and reloadable"""
        config = EvaluatorConfig(composition="frontier_min", cache_scope="shared")

        data = json.loads(json.dumps(config.to_dict()))

        assert data["composition"] == "frontier_min"
        assert EvaluatorConfig.from_dict(data) == config

    def test_load_config(self, tmp_path):
        """Test: JSON files load into a config"""
        path = tmp_path / "gripper.json"
        path.write_text(
            json.dumps({"oracle_resource": "models.gripper", "lookahead_depth": 3}),
            encoding="utf-8",
        )

        config = load_config(path)

        assert config.oracle_resource == "models.gripper"
        assert config.lookahead_depth == 3

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(InvalidConfigError):
            load_config(tmp_path / "missing.json")

    def test_load_invalid_json(self, tmp_path):
        """Test: Broken JSON chains the decoder error"""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(InvalidConfigError) as exc_info:
            load_config(path)

        assert isinstance(exc_info.value.original_exception, json.JSONDecodeError)

    def test_load_non_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(InvalidConfigError):
            load_config(path)


class TestNamespaceAndDefaults:
    """Tests for namespace keys and the process default"""

    def test_namespace_key_separates_semantics(self):
        """Test: Value-relevant options change the namespace"""
        base = EvaluatorConfig()

        assert base.namespace_key() == EvaluatorConfig(lookahead_depth=5).namespace_key()
        assert base.namespace_key() != EvaluatorConfig(composition="sum").namespace_key()
        assert (
            base.namespace_key()
            != EvaluatorConfig(oracle_failure_policy="dead_end").namespace_key()
        )

    def test_process_default(self):
        """Test: get_config() is lazy and replaceable"""
        assert get_config() is get_config()

        custom = EvaluatorConfig(debug=True)
        set_config(custom)
        assert get_config() is custom

        set_config(None)
        assert get_config() is not custom
