"""
Tests for the exception hierarchy and logging helpers
(antplan_exceptions, component_10_logging_config).
"""

import logging

import pytest

from antplan_exceptions import (
    AntPlanException,
    ConfigurationException,
    InvalidConfigError,
    InvalidTaskError,
    OracleEvaluationError,
    OracleException,
    OracleInitializationError,
    OracleNotReadyError,
    StateMismatchError,
    TaskModelException,
    get_user_friendly_message,
    wrap_exception,
)
from component_10_logging_config import (
    PERFORMANCE_LOGGER_NAME,
    AntPlanLogFormatter,
    PerformanceLogger,
    get_logger,
    setup_logging,
)


class TestHierarchy:
    """Tests for the exception tree"""

    @pytest.mark.parametrize(
        "exc_class, parent",
        [
            (OracleInitializationError, OracleException),
            (OracleNotReadyError, OracleException),
            (OracleEvaluationError, OracleException),
            (InvalidTaskError, TaskModelException),
            (StateMismatchError, TaskModelException),
            (InvalidConfigError, ConfigurationException),
            (OracleException, AntPlanException),
            (TaskModelException, AntPlanException),
            (ConfigurationException, AntPlanException),
        ],
    )
    def test_parents(self, exc_class, parent):
        assert issubclass(exc_class, parent)

    def test_str_includes_context_and_cause(self):
        """Test: __str__ renders context and the original exception"""
        exc = AntPlanException(
            "Oracle failed", context={"state": 3}, original_exception=KeyError("x")
        )

        text = str(exc)

        assert "Oracle failed" in text
        assert "state=3" in text
        assert "KeyError" in text

    def test_initialization_error_fields(self):
        """Test: Binding errors carry resource, entry point and hint"""
        exc = OracleInitializationError(
            "missing",
            resource="models.gripper",
            entry_point="h",
            available_entry_points=["h_add"],
        )

        assert exc.context["resource"] == "models.gripper"
        assert exc.context["available_entry_points"] == ["h_add"]
        assert exc.available_entry_points == ["h_add"]

    def test_initialization_error_without_hint(self):
        exc = OracleInitializationError("missing", resource="m")

        assert exc.available_entry_points == []
        assert "available_entry_points" not in exc.context


class TestWrapException:
    """Tests for wrap_exception"""

    def test_wraps_and_chains(self):
        """Test: Foreign exceptions become AntPlan exceptions with context"""
        original = ZeroDivisionError("division by zero")

        wrapped = wrap_exception(
            original, OracleEvaluationError, "Oracle failed", snapshot_size=4
        )

        assert isinstance(wrapped, OracleEvaluationError)
        assert wrapped.original_exception is original
        assert wrapped.context["snapshot_size"] == 4


class TestFriendlyMessages:
    """Tests for get_user_friendly_message"""

    def test_initialization_message_lists_entry_points(self):
        exc = OracleInitializationError(
            "missing",
            resource="models.gripper",
            entry_point="h",
            available_entry_points=["h_add", "h_max"],
        )

        message = get_user_friendly_message(exc)

        assert "'h'" in message
        assert "models.gripper" in message
        assert "h_add, h_max" in message

    def test_config_message_names_option(self):
        message = get_user_friendly_message(InvalidConfigError("bad", option="cache_capacity"))

        assert "cache_capacity" in message

    def test_details(self):
        """Test: include_details appends message and context"""
        message = get_user_friendly_message(
            OracleNotReadyError("not bound", context={"oracle": "x"}), include_details=True
        )

        assert "not bound" in message
        assert "oracle" in message

    def test_unknown_exception(self):
        assert "unexpected" in get_user_friendly_message(ValueError("x"))


class TestLogging:
    """Tests for the logging helpers"""

    def test_structured_extra(self, caplog):
        """Test: extra dicts are stored as extra_info"""
        logger = get_logger("antplan.test")

        with caplog.at_level(logging.INFO, logger="antplan.test"):
            logger.info("Cache cleared", extra={"entries": 3})

        assert caplog.records[-1].extra_info == {"entries": 3}

    def test_formatter_renders_extra(self):
        """Test: Formatter appends key=value pairs"""
        record = logging.LogRecord(
            "antplan.test", logging.INFO, __file__, 1, "hello", None, None
        )
        record.extra_info = {"a": 1, "b": "x"}

        text = AntPlanLogFormatter().format(record)

        assert text.endswith("hello | a=1 | b=x")

    def test_performance_logger(self, caplog):
        """Test: Successful operations report their duration"""
        with caplog.at_level(logging.INFO, logger=PERFORMANCE_LOGGER_NAME):
            with PerformanceLogger(logging.getLogger("antplan.test"), "Probe", depth=2):
                pass

        perf = [r for r in caplog.records if r.name == PERFORMANCE_LOGGER_NAME]
        assert perf
        assert perf[-1].extra_info["depth"] == 2
        assert "duration_ms" in perf[-1].extra_info

    def test_performance_logger_propagates(self, caplog):
        """Test: Failures are logged and re-raised"""
        with pytest.raises(RuntimeError):
            with PerformanceLogger(logging.getLogger("antplan.test"), "Probe"):
                raise RuntimeError("boom")

        assert any("FAILED: Probe" in r.getMessage() for r in caplog.records)

    def test_setup_logging_with_files(self, tmp_path):
        """Test: log_dir enables rotating file handlers"""
        root = logging.getLogger()
        saved = list(root.handlers)
        try:
            setup_logging(log_dir=tmp_path)
            logging.getLogger("antplan.test").error("written")
            for handler in root.handlers:
                handler.flush()

            assert (tmp_path / "antplan.log").exists()
            assert "written" in (tmp_path / "antplan_errors.log").read_text(
                encoding="utf-8"
            )
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved
            perf_logger = logging.getLogger(PERFORMANCE_LOGGER_NAME)
            for handler in perf_logger.handlers:
                handler.close()
            perf_logger.handlers.clear()
            perf_logger.propagate = True
