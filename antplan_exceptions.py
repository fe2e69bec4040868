"""
antplan_exceptions.py

Central exception hierarchy for the AntPlan heuristic evaluator.

Exception hierarchy:
    AntPlanException (base)
    ├── OracleException
    │   ├── OracleInitializationError
    │   ├── OracleNotReadyError
    │   └── OracleEvaluationError
    ├── TaskModelException
    │   ├── InvalidTaskError
    │   └── StateMismatchError
    └── ConfigurationException
        └── InvalidConfigError

Dead ends are not errors: they are reported through the DEAD_END sentinel
(common.constants).

Usage:
    from antplan_exceptions import OracleInitializationError

    try:
        oracle.initialize("my_pkg.cost_model")
    except OracleInitializationError as e:
        logger.error(f"Oracle binding failed: {e}")
        logger.error(f"Available: {e.context.get('available_entry_points')}")
"""

from typing import Any, Dict, List, Optional


class AntPlanException(Exception):
    """
    Base exception for all AntPlan errors.

    All AntPlan exceptions support:
    - A detailed message
    - Contextual information (dict)
    - Chaining of the original exception (also via 'from')
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception

    def __str__(self) -> str:
        base_msg = self.message

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, context={self.context!r})"


# ============================================================================
# ORACLE EXCEPTIONS
# ============================================================================


class OracleException(AntPlanException):
    """Base exception for failures of the external scoring delegate."""


class OracleInitializationError(OracleException):
    """
    The oracle resource or its entry point could not be bound.

    Causes:
    - Module not importable / file does not exist
    - Entry point missing in the module
    - Entry point is not callable

    Fatal for the evaluator instance: it refuses to produce estimates
    instead of silently degrading to zero.
    """

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        entry_point: Optional[str] = None,
        available_entry_points: Optional[List[str]] = None,
        **kwargs,
    ):
        context = kwargs.get("context", {})
        context["resource"] = resource
        context["entry_point"] = entry_point
        if available_entry_points is not None:
            context["available_entry_points"] = available_entry_points
        kwargs["context"] = context
        super().__init__(message, **kwargs)
        self.available_entry_points = available_entry_points or []


class OracleNotReadyError(OracleException):
    """Evaluation was requested before the oracle finished initializing."""


class OracleEvaluationError(OracleException):
    """
    The oracle faulted while scoring one snapshot.

    Recoverable per call: the scorer substitutes the configured fallback.
    """

    def __init__(self, message: str, snapshot_size: Optional[int] = None, **kwargs):
        context = kwargs.get("context", {})
        if snapshot_size is not None:
            context["snapshot_size"] = snapshot_size
        kwargs["context"] = context
        super().__init__(message, **kwargs)


# ============================================================================
# TASK MODEL EXCEPTIONS
# ============================================================================


class TaskModelException(AntPlanException):
    """Base exception for malformed planning tasks and states."""


class InvalidTaskError(TaskModelException):
    """
    The planning task references values outside the variable domains,
    or an action was applied where it is not applicable.
    """


class StateMismatchError(TaskModelException):
    """
    A state does not fit the task it is evaluated against.

    Causes:
    - Wrong number of values
    - Value outside a variable's domain
    """

    def __init__(
        self,
        message: str,
        expected_variables: Optional[int] = None,
        actual_variables: Optional[int] = None,
        **kwargs,
    ):
        context = kwargs.get("context", {})
        context["expected_variables"] = expected_variables
        context["actual_variables"] = actual_variables
        kwargs["context"] = context
        super().__init__(message, **kwargs)


# ============================================================================
# CONFIGURATION EXCEPTIONS
# ============================================================================


class ConfigurationException(AntPlanException):
    """Base exception for configuration errors."""


class InvalidConfigError(ConfigurationException):
    """
    Invalid evaluator configuration.

    Causes:
    - Unknown option name
    - Value out of range / wrong type
    - Inconsistent combination (e.g. relaxed composition without relaxed variant)
    """

    def __init__(self, message: str, option: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        context["option"] = option
        kwargs["context"] = context
        super().__init__(message, **kwargs)


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def wrap_exception(
    exc: Exception,
    antplan_exception_class: type[AntPlanException],
    message: str,
    **context,
) -> AntPlanException:
    """
    Convert a foreign exception into an AntPlan exception.

    Args:
        exc: Original exception
        antplan_exception_class: Target class (e.g. OracleEvaluationError)
        message: Custom message
        **context: Additional context

    Returns:
        AntPlan exception chained to the original

    Example:
        try:
            value = fn(snapshot)
        except Exception as e:
            raise wrap_exception(e, OracleEvaluationError, "Oracle failed") from e
    """
    return antplan_exception_class(
        message=message, context=context, original_exception=exc
    )


def get_user_friendly_message(exc: Exception, include_details: bool = False) -> str:
    """
    Build an operator-facing message for an exception.

    Args:
        exc: Exception object
        include_details: Append technical details (debug mode)

    Returns:
        Human readable message
    """
    friendly_messages = {
        OracleInitializationError: "[ERROR] The cost oracle could not be loaded. Check the module path and entry point name.",
        OracleNotReadyError: "[ERROR] The cost oracle is not initialized. Heuristic evaluation was refused.",
        OracleEvaluationError: "[WARN] The cost oracle failed on a state. A fallback value was used.",
        InvalidTaskError: "[ERROR] The planning task is malformed.",
        StateMismatchError: "[ERROR] The state does not match the planning task.",
        InvalidConfigError: "[ERROR] Invalid heuristic configuration. Please check the options.",
    }

    default_message = "[ERROR] An unexpected error occurred."

    user_message = friendly_messages.get(type(exc), default_message)

    if isinstance(exc, OracleInitializationError):
        resource = exc.context.get("resource") or "?"
        entry_point = exc.context.get("entry_point") or "?"
        user_message = (
            f"[ERROR] Could not bind oracle '{entry_point}' from '{resource}'."
        )
        if exc.available_entry_points:
            user_message += (
                f" Available entry points: {', '.join(exc.available_entry_points)}"
            )

    elif isinstance(exc, InvalidConfigError) and exc.context.get("option"):
        user_message = (
            f"[ERROR] Invalid value for option '{exc.context['option']}'."
        )

    if include_details and isinstance(exc, AntPlanException):
        user_message += f"\n\nTechnical details: {exc.message}"
        if exc.context:
            user_message += f"\n   Context: {exc.context}"

    return user_message
