"""Pydantic configuration models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from manifest_producer.config.defaults import (
    DEFAULT_JSON_INDENT,
    DEFAULT_MAX_BACKTRACK,
    DEFAULT_OUTPUT_DIR,
)


class AnalysisConfig(BaseModel):
    mode: Literal["auto", "all", "requested"] = "auto"
    match: Literal["substring", "exact"] = "substring"
    max_backtrack: int = Field(default=DEFAULT_MAX_BACKTRACK, ge=1)
    follow_tail_calls: bool = True
    load_bias: int = Field(default=0, ge=0)
    extra_wrappers: dict[str, list[str]] = Field(default_factory=dict)


class OutputConfig(BaseModel):
    directory: str = DEFAULT_OUTPUT_DIR
    indent: int = DEFAULT_JSON_INDENT


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = Field(default=False, alias="json")

    model_config = {"populate_by_name": True}


class ManifestConfig(BaseModel):
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
