"""Process capability discovery, parsing and caching."""

from Wasit.capabilities.cache import CachedEntry, CapabilityCache
from Wasit.capabilities.discovery import Discovery, DiscoveryResult, build_snapshot, infer_process_category
from Wasit.capabilities.documentation import render_documentation
from Wasit.capabilities.schema import (
    HandlerDescriptor,
    ParameterDescriptor,
    ParameterValidation,
    ProcessCapabilitySnapshot,
)

__all__ = [
    "CachedEntry",
    "CapabilityCache",
    "Discovery",
    "DiscoveryResult",
    "HandlerDescriptor",
    "ParameterDescriptor",
    "ParameterValidation",
    "ProcessCapabilitySnapshot",
    "build_snapshot",
    "infer_process_category",
    "render_documentation",
]
