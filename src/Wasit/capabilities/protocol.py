"""Registry document format (protocol version 1.0) returned by ``Action=Info``."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from Wasit.capabilities.schema import (
    HANDLER_CATEGORIES,
    PARAMETER_TYPES,
    HandlerDescriptor,
    ParameterDescriptor,
    ParameterValidation,
)
from Wasit.intent.keywords import action_implies_write

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "1.0"


class _ValidationModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    pattern: str | None = None
    min: float | None = None
    max: float | None = None
    enum: list[str] | None = None


class ParameterModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    type: str = "string"
    required: bool = False
    description: str = ""
    examples: list[str] = Field(default_factory=list)
    validation: _ValidationModel | None = None

    @field_validator("type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        lowered = (value or "string").lower()
        if lowered not in PARAMETER_TYPES:
            raise ValueError(f"unsupported parameter type: {value}")
        return lowered

    @field_validator("examples", mode="before")
    @classmethod
    def _stringify_examples(cls, value: Any) -> list[str]:
        return [str(v) for v in (value or [])]


class HandlerModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    action: str = Field(min_length=1)
    description: str = ""
    category: str = "custom"
    examples: list[str] = Field(default_factory=list)
    parameters: list[ParameterModel] = Field(default_factory=list)
    pattern: list[str] = Field(default_factory=list)
    version: str | None = None
    is_write: bool | None = Field(default=None, alias="isWrite")
    compensating_action: str | None = Field(default=None, alias="compensatingAction")

    @field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, value: Any) -> str:
        lowered = str(value or "").lower()
        return lowered if lowered in HANDLER_CATEGORIES else "custom"

    def to_descriptor(self) -> HandlerDescriptor:
        declared = self.is_write is not None
        return HandlerDescriptor(
            action=self.action,
            description=self.description,
            is_write=self.is_write if declared else action_implies_write(self.action),
            write_declared=declared,
            parameters=tuple(_to_parameter(p) for p in self.parameters),
            examples=tuple(self.examples),
            category=self.category,
            pattern=tuple(self.pattern),
            provenance="registry",
            compensating_action=self.compensating_action,
        )


class RegistryDocument(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = Field(default="", alias="Name")
    description: str = Field(default="", alias="Description")
    owner: str | None = Field(default=None, alias="Owner")
    process_id: str | None = Field(default=None, alias="ProcessId")
    ticker: str | None = Field(default=None, alias="Ticker")
    total_supply: str | None = Field(default=None, alias="TotalSupply")
    denomination: str | None = Field(default=None, alias="Denomination")
    logo: str | None = Field(default=None, alias="Logo")
    protocol_version: str = Field(alias="protocolVersion")
    last_updated: str | None = Field(default=None, alias="lastUpdated")
    handlers: list[HandlerModel]
    capabilities: dict[str, Any] = Field(default_factory=dict)

    @field_validator("total_supply", "denomination", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str | None:
        return None if value is None else str(value)


def _to_parameter(model: ParameterModel) -> ParameterDescriptor:
    validation = ParameterValidation()
    if model.validation is not None:
        validation = ParameterValidation(
            pattern=model.validation.pattern,
            min=model.validation.min,
            max=model.validation.max,
            enum=tuple(model.validation.enum or ()),
        )
    return ParameterDescriptor(
        name=model.name,
        type=model.type,
        required=model.required,
        description=model.description,
        examples=tuple(model.examples),
        validation=validation,
    )


def parse_registry_document(payload: Any) -> RegistryDocument | None:
    """Return the parsed document, or None when ``payload`` is not a 1.0 registry."""
    if not isinstance(payload, dict):
        return None
    if payload.get("protocolVersion") != PROTOCOL_VERSION or not isinstance(payload.get("handlers"), list):
        return None
    try:
        return RegistryDocument.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Registry document failed validation: %s", exc.errors()[:3])
        return None
