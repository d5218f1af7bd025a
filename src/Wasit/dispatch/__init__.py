"""Request routing, ordered batches and workflow templates."""

from Wasit.dispatch.batch import BatchItemResult, BatchOrchestrator, BatchResult
from Wasit.dispatch.router import DispatchResult, RequestRouter, format_dispatch_summary
from Wasit.dispatch.templates import (
    BatchRequest,
    WorkflowTemplateName,
    expand_template,
    get_template,
    list_templates,
)

__all__ = [
    "BatchItemResult",
    "BatchOrchestrator",
    "BatchRequest",
    "BatchResult",
    "DispatchResult",
    "RequestRouter",
    "WorkflowTemplateName",
    "expand_template",
    "format_dispatch_summary",
    "get_template",
    "list_templates",
]
