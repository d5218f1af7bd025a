"""Strictly ordered batch execution with best-effort rollback."""

from __future__ import annotations

import logging
import secrets
import string
import time
from dataclasses import dataclass, field
from typing import Any

from Wasit.dispatch.router import DispatchResult, RequestRouter
from Wasit.dispatch.templates import BatchRequest, WorkflowTemplateName, expand_template
from Wasit.errors import BatchItemError, ErrorInfo, RollbackError, error_info
from Wasit.intent.request import BatchContext, ExecutionRequest

logger = logging.getLogger(__name__)

ROLLBACK_REQUEST = "ROLLBACK_BATCH"
BATCH_ERROR_REQUEST = "BATCH_EXECUTION_ERROR"
_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_batch_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"batch_{int(time.time() * 1000)}_{suffix}"


@dataclass
class BatchItemResult:
    sequence_number: int
    request: str
    success: bool
    result: DispatchResult | None = None
    error: ErrorInfo | None = None
    summary: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequenceNumber": self.sequence_number,
            "request": self.request,
            "success": self.success,
            "summary": self.summary,
            "details": dict(self.details),
            "result": self.result.to_dict() if self.result else None,
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class BatchResult:
    batch_id: str
    success: bool
    total_operations: int
    successful_operations: int = 0
    failed_operations: int = 0
    results: list[BatchItemResult] = field(default_factory=list)
    execution_time_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "batchId": self.batch_id,
            "success": self.success,
            "totalOperations": self.total_operations,
            "successfulOperations": self.successful_operations,
            "failedOperations": self.failed_operations,
            "executionTime": round(self.execution_time_ms, 1),
            "results": [r.to_dict() for r in self.results],
        }


class BatchOrchestrator:
    """Run requests one after another against a single process."""

    def __init__(self, router: RequestRouter) -> None:
        self._router = router

    async def execute_batch(
        self,
        process_id: str,
        requests: list[BatchRequest],
        *,
        rollback_on_error: bool = False,
    ) -> BatchResult:
        started = time.perf_counter()
        batch_id = new_batch_id()
        total = len(requests)
        results: list[BatchItemResult] = []
        successful = failed = 0
        logger.info("Starting batch %s with %d request(s) on %s", batch_id, total, process_id)

        try:
            for index, item in enumerate(requests):
                context = BatchContext(
                    batch_id=batch_id,
                    sequence_number=index + 1,
                    total_operations=total,
                    rollback_on_error=rollback_on_error,
                )
                outcome = await self._run_item(process_id, item, context)
                results.append(outcome)
                if outcome.success:
                    successful += 1
                    continue

                failed += 1
                if rollback_on_error:
                    logger.warning("Batch %s item %d failed, rolling back", batch_id, index + 1)
                    results.append(await self._rollback(process_id, results[:index], context, index + 2))
                    break
        except Exception as exc:
            logger.exception("Batch %s aborted", batch_id)
            results.append(
                BatchItemResult(
                    sequence_number=len(results) + 1,
                    request=BATCH_ERROR_REQUEST,
                    success=False,
                    error=error_info(exc, code="BATCH_EXECUTION_ERROR"),
                )
            )
            failed += 1

        return BatchResult(
            batch_id=batch_id,
            success=failed == 0 or not rollback_on_error,
            total_operations=total,
            successful_operations=successful,
            failed_operations=failed,
            results=results,
            execution_time_ms=(time.perf_counter() - started) * 1000,
        )

    async def execute_template(
        self,
        process_id: str,
        name: str | WorkflowTemplateName,
        values: dict[str, Any],
        *,
        confirmed: bool = False,
    ) -> BatchResult:
        template, requests = expand_template(name, values, confirmed=confirmed)
        return await self.execute_batch(process_id, requests, rollback_on_error=template.rollback_on_error)

    async def _run_item(self, process_id: str, item: BatchRequest, context: BatchContext) -> BatchItemResult:
        request = ExecutionRequest(
            process_id=process_id,
            request=item.request,
            parameters=dict(item.parameters),
            mode=item.mode,
            require_confirmation=item.require_confirmation,
            batch=context,
            action=item.action,
            confirmed=item.confirmed,
        )
        try:
            dispatched = await self._router.execute(request)
        except Exception as exc:
            err = BatchItemError(
                f"Item {context.sequence_number} raised: {exc}",
                sequence_number=context.sequence_number,
            )
            return BatchItemResult(context.sequence_number, item.label, False, error=err.to_info())
        return BatchItemResult(
            sequence_number=context.sequence_number,
            request=item.label,
            success=dispatched.success,
            result=dispatched,
            error=dispatched.error,
            summary=dispatched.summary,
        )

    async def _rollback(
        self,
        process_id: str,
        completed: list[BatchItemResult],
        context: BatchContext,
        sequence_number: int,
    ) -> BatchItemResult:
        """Best-effort reversal of earlier successful writes, newest first."""
        writes = [r for r in completed if r.success and r.result is not None and r.result.operation == "write"]
        entry = self._router.cache.get_cached(process_id)
        reversed_ops: list[str] = []
        notified: list[str] = []
        errors: list[str] = []

        for item in reversed(writes):
            dispatched = item.result
            handler = entry.snapshot.find_handler(dispatched.handler or "") if entry else None
            if handler is None or not handler.compensating_action:
                notified.append(item.request)
                continue
            compensation = ExecutionRequest(
                process_id=process_id,
                request=f"rollback {item.request}",
                parameters=dict(dispatched.parameters),
                mode="write",
                batch=context,
                action=handler.compensating_action,
                confirmed=True,
            )
            try:
                undo = await self._router.execute(compensation)
                if not undo.success:
                    message = undo.error.message if undo.error else "compensation failed"
                    raise RollbackError(f"{handler.compensating_action} for item {item.sequence_number}: {message}")
                reversed_ops.append(item.request)
            except RollbackError as exc:
                errors.append(exc.message)
            except Exception as exc:
                errors.append(f"{handler.compensating_action} for item {item.sequence_number}: {exc}")

        error = None
        if errors:
            error = RollbackError("Rollback incomplete: " + "; ".join(errors)).to_info()
        return BatchItemResult(
            sequence_number=sequence_number,
            request=ROLLBACK_REQUEST,
            success=not errors,
            error=error,
            summary="Batch rollback completed" if not errors else "Batch rollback incomplete",
            details={
                "rolledBackOperations": len(writes),
                "compensated": reversed_ops,
                "notified": notified,
                "errors": errors,
            },
        )
