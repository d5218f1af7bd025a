"""Error taxonomy and the structured error payload returned by public entry points."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ErrorInfo:
    """Machine-readable failure: a stable code, a message and suggested fixes."""

    code: str
    message: str
    solutions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "solutions": list(self.solutions)}


class WasitError(Exception):
    """Base class for every error raised inside Wasit."""

    default_code = "WASIT_ERROR"
    default_solutions: tuple[str, ...] = ()

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        solutions: tuple[str, ...] | list[str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.solutions = tuple(solutions) if solutions is not None else self.default_solutions

    def to_info(self) -> ErrorInfo:
        return ErrorInfo(code=self.code, message=self.message, solutions=self.solutions)


class InvalidRequestError(WasitError, ValueError):
    """Synchronous input validation failure at the command boundary."""

    default_code = "INVALID_REQUEST"
    default_solutions = ("Check the command arguments and try again",)


class DiscoveryError(WasitError):
    """The process did not answer an Info request with a usable document."""

    default_code = "DISCOVERY_FAILED"
    default_solutions = (
        "Verify the process ID is correct",
        "Check that the process is running and reachable",
    )

    KINDS = ("no-response", "empty-data", "parse-failure", "timeout")

    def __init__(self, message: str, *, kind: str = "parse-failure", **kwargs: Any):
        if kind not in self.KINDS:
            raise ValueError(f"unknown discovery failure kind: {kind}")
        kwargs.setdefault("code", f"DISCOVERY_{kind.upper().replace('-', '_')}")
        super().__init__(message, **kwargs)
        self.kind = kind


class MatchError(WasitError):
    default_code = "HANDLER_NOT_FOUND"
    default_solutions = (
        "Check available handlers with the discover command",
        "Use a different request phrasing",
    )


class ParameterError(WasitError):
    default_code = "INVALID_PARAMETERS"
    default_solutions = (
        "Check parameter format",
        "Provide required parameters",
    )

    def __init__(self, message: str, *, problems: list[str] | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.problems = list(problems or [])


class ExecutionError(WasitError):
    default_code = "EXECUTION_FAILED"
    default_solutions = (
        "Try again in a few moments",
        "Check if the process is responsive",
    )


class BatchItemError(WasitError):
    default_code = "BATCH_ITEM_FAILED"

    def __init__(self, message: str, *, sequence_number: int, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.sequence_number = sequence_number


class RollbackError(WasitError):
    default_code = "ROLLBACK_FAILED"
    default_solutions = ("Review the successful operations and reverse them manually",)


class TemplateError(InvalidRequestError):
    default_code = "UNKNOWN_TEMPLATE"
    default_solutions = ("List the available templates with the templates command",)


_MESSAGE_SOLUTIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("timeout", ("Try again in a few moments", "Check if the process is responsive")),
    ("handler not found", ("Check available handlers", "Use a different request phrasing")),
    ("invalid parameters", ("Check parameter format", "Provide required parameters")),
    ("insufficient balance", ("Check your token balance", "Reduce the transfer amount")),
)


def solutions_for_message(message: str) -> tuple[str, ...]:
    """Suggest fixes for an error message coming back from a remote process."""
    lowered = (message or "").lower()
    for needle, solutions in _MESSAGE_SOLUTIONS:
        if needle in lowered:
            return solutions
    return ()


def error_info(exc: BaseException, *, code: str = "UNEXPECTED_ERROR") -> ErrorInfo:
    """Convert any exception into an ErrorInfo, keeping Wasit codes intact."""
    if isinstance(exc, WasitError):
        return exc.to_info()
    message = str(exc) or exc.__class__.__name__
    return ErrorInfo(code=code, message=message, solutions=solutions_for_message(message))

