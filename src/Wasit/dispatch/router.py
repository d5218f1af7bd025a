"""Route a free-text request to a process handler and execute it."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from Wasit.capabilities.cache import CapabilityCache
from Wasit.capabilities.schema import HandlerDescriptor
from Wasit.config import Settings
from Wasit.errors import (
    ErrorInfo,
    ExecutionError,
    MatchError,
    ParameterError,
    WasitError,
    error_info,
    solutions_for_message,
)
from Wasit.intent.classifier import OperationClassification, classify
from Wasit.intent.extraction import extract_parameters
from Wasit.intent.matcher import MatchResult, match_request
from Wasit.intent.request import ExecutionRequest
from Wasit.intent.risk import RiskAssessment, RiskAssessor
from Wasit.intent.simulation import SimulationResult, simulate
from Wasit.intent.validation import validate_parameters
from Wasit.transport.base import ProcessTransport
from Wasit.transport.message import build_message, first_message_data

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[RiskAssessment], Awaitable[str | None]]


@dataclass
class DispatchResult:
    """Structured result contract for one request."""

    success: bool
    process_id: str
    request: str
    status: str  # executed | simulated | confirmation_required | declined | failed
    handler: str | None = None
    operation: str = "unknown"
    provenance: str = ""
    confidence: float = 0.0
    parameters: dict[str, Any] = field(default_factory=dict)
    classification: OperationClassification | None = None
    risk: RiskAssessment | None = None
    simulation: SimulationResult | None = None
    data: Any = None
    raw_response: dict[str, Any] | None = None
    message_id: str | None = None
    summary: str = ""
    error: ErrorInfo | None = None
    execution_time_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "status": self.status,
            "processId": self.process_id,
            "request": self.request,
            "handlerUsed": self.handler,
            "operation": self.operation,
            "processingMode": self.provenance,
            "confidence": round(self.confidence, 3),
            "parameters": dict(self.parameters),
            "result": {"summary": self.summary, "details": self.data, "rawResponse": self.raw_response},
            "executionTime": round(self.execution_time_ms, 1),
        }
        if self.operation == "write" and self.message_id:
            payload["transaction"] = {"status": "pending", "messageId": self.message_id}
        if self.risk is not None:
            payload["risk"] = self.risk.to_dict()
        if self.simulation is not None:
            payload["simulation"] = self.simulation.to_dict()
        if self.error is not None:
            payload["error"] = self.error.to_dict()
        return payload


def format_dispatch_summary(result: DispatchResult) -> str:
    """One-line text summary for terminals and logs."""
    target = result.handler or result.request or "request"
    if result.status == "executed":
        return f"✅ {target} succeeded" + (f" | {result.summary}" if result.summary else "")
    if result.status == "simulated":
        verdict = "can proceed" if result.success else "would fail"
        return f"🧪 {target} simulated: {verdict}"
    if result.error is not None:
        return f"❌ {target} failed [{result.error.code}]: {result.error.message}"
    return f"❌ {target} failed"


def _decode_data(data: Any) -> Any:
    if isinstance(data, str):
        try:
            return json.loads(data)
        except ValueError:
            return data
    return data


def _error_tag(result: dict[str, Any]) -> str | None:
    for message in result.get("Messages") or []:
        for tag in (message or {}).get("Tags") or []:
            if not isinstance(tag, dict):
                continue
            if tag.get("name") == "Error":
                return str(tag.get("value") or "Process reported an error")
            if tag.get("name") == "Action" and tag.get("value") == "Error":
                return str(message.get("Data") or "Process reported an error")
    return None


class RequestRouter:
    """Resolve requests against cached capabilities and send them through a transport."""

    def __init__(
        self,
        cache: CapabilityCache,
        transport: ProcessTransport,
        settings: Settings | None = None,
        *,
        assessor: RiskAssessor | None = None,
        confirm: ConfirmCallback | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.cache = cache
        self._transport = transport
        self._assessor = assessor or RiskAssessor(self.settings)
        self._confirm = confirm

    async def execute(self, request: ExecutionRequest) -> DispatchResult:
        started = time.perf_counter()
        try:
            result = await self._execute(request)
        except WasitError as exc:
            logger.warning("Request %r on %s failed: %s", request.label, request.process_id, exc.message)
            result = self._failure(request, exc.to_info())
        except Exception as exc:
            logger.exception("Unexpected error while dispatching %r", request.label)
            result = self._failure(request, error_info(exc))
        result.execution_time_ms = (time.perf_counter() - started) * 1000
        return result

    @staticmethod
    def _failure(request: ExecutionRequest, error: ErrorInfo) -> DispatchResult:
        return DispatchResult(
            success=False,
            process_id=request.process_id,
            request=request.label,
            status="failed",
            error=error,
        )

    async def _resolve(self, request: ExecutionRequest) -> MatchResult:
        discovery = await self.cache.get_or_discover(request.process_id)
        if not discovery.success or discovery.snapshot is None:
            info = discovery.error or ErrorInfo("DISCOVERY_FAILED", "Discovery failed")
            raise WasitError(info.message, code=info.code, solutions=info.solutions)
        snapshot = discovery.snapshot

        if request.action:
            handler = snapshot.find_handler(request.action)
            if handler is None:
                raise MatchError(
                    f"Handler '{request.action}' not found on process {request.process_id}",
                    solutions=(f"Available handlers: {', '.join(snapshot.actions) or 'none'}",),
                )
            params = extract_parameters(request.request, handler) if request.request else {}
            return MatchResult(handler, 1.0, params, handler.provenance, ["explicit-action"])

        match = match_request(request.request, snapshot.handlers, threshold=self.settings.match_threshold)
        if not match.matched:
            raise MatchError(
                f"No handler found for request: {request.request}",
                solutions=(
                    f"Available handlers: {', '.join(snapshot.actions) or 'none'}",
                    "Use a different request phrasing",
                ),
            )
        return match

    async def _execute(self, request: ExecutionRequest) -> DispatchResult:
        match = await self._resolve(request)
        handler = match.handler
        if handler is None:
            raise MatchError(f"No handler found for request: {request.request}")

        classification = classify(request.request, handler, request.mode)
        parameters = {**match.parameters, **request.parameters}
        base = dict(
            process_id=request.process_id,
            request=request.label,
            handler=handler.action,
            provenance=match.provenance,
            confidence=match.confidence,
            parameters=parameters,
            classification=classification,
        )

        if classification.operation_type == "validate":
            underlying = classify(request.request, handler, "auto")
            assessment = self._assessor.assess(request, underlying, handler, parameters)
            sim = simulate(request, underlying, handler, parameters, assessment)
            return DispatchResult(
                success=sim.can_proceed,
                status="simulated",
                operation=underlying.operation_type,
                risk=assessment,
                simulation=sim,
                summary="Simulation passed" if sim.can_proceed else "; ".join(sim.errors),
                **base,
            )

        problems = validate_parameters(handler, parameters)
        if problems:
            raise ParameterError("Invalid parameters: " + "; ".join(problems), problems=problems)

        assessment = self._assessor.assess(request, classification, handler, parameters)
        base["operation"] = classification.operation_type
        base["risk"] = assessment

        if assessment.confirmation_required and not request.confirmed:
            decision = await self._confirm(assessment) if self._confirm else None
            if decision == "simulate":
                sim = simulate(request, classification, handler, parameters, assessment)
                return DispatchResult(success=sim.can_proceed, status="simulated", simulation=sim, **base)
            if decision != "proceed":
                if self._confirm is None:
                    error = ErrorInfo(
                        "CONFIRMATION_REQUIRED",
                        assessment.title,
                        ("Review the risk assessment and re-run with confirmation",),
                    )
                    return DispatchResult(success=False, status="confirmation_required", error=error, **base)
                error = ErrorInfo("CONFIRMATION_DECLINED", f"Operation {handler.action} was not confirmed")
                return DispatchResult(success=False, status="declined", error=error, **base)

        return await self._send(request, handler, classification, parameters, base)

    async def _send(
        self,
        request: ExecutionRequest,
        handler: HandlerDescriptor,
        classification: OperationClassification,
        parameters: dict[str, Any],
        base: dict[str, Any],
    ) -> DispatchResult:
        message = build_message(request.process_id, handler.action, parameters)
        timeout = self.settings.execution_timeout_ms / 1000
        message_id: str | None = None
        try:
            if classification.is_write:
                message_id = await self._transport.send(message)
                response = await asyncio.wait_for(
                    self._transport.result(request.process_id, message_id), timeout=timeout
                )
            else:
                response = await asyncio.wait_for(self._transport.dry_run(message), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise ExecutionError(
                f"Timeout waiting for {handler.action} response", code="EXECUTION_TIMEOUT"
            ) from exc

        response = response or {}
        failure = response.get("Error") or _error_tag(response)
        if failure:
            message_text = str(failure)
            raise ExecutionError(message_text, code="PROCESS_ERROR", solutions=solutions_for_message(message_text))
        has_messages, data = first_message_data(response)
        if not has_messages:
            raise ExecutionError("No response received from process", code="NO_RESPONSE")

        details = _decode_data(data)
        logger.info("Executed %s on %s (%s)", handler.action, request.process_id, classification.operation_type)
        return DispatchResult(
            success=True,
            status="executed",
            data=details,
            raw_response=response,
            message_id=message_id,
            summary=f"{handler.action} completed" + (" (transaction submitted)" if classification.is_write else ""),
            **base,
        )
