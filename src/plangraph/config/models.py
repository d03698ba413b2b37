"""Pydantic configuration models for plan normalization and execution."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from plangraph.config.defaults import (
    DEFAULT_AUTO_INSERT_CONTENT,
    DEFAULT_CONTENT_FIELDS,
    DEFAULT_CONTENT_GENERATOR_TOOL,
    DEFAULT_CONTENT_TOOLS,
    DEFAULT_MAX_CONCURRENCY,
    MAX_CONCURRENCY_LIMIT,
)
from plangraph.config.enums import ExecutionMode
from plangraph.config.env_vars import EnvVar, get_env, get_env_bool, get_env_list


class PlannerConfig(BaseModel):
    """Planner behaviour configuration.

    Immutable after creation. Build it directly, or from the
    PLANGRAPH_* environment variables with ``from_env``.
    """

    execution_mode: ExecutionMode = Field(
        default=ExecutionMode.SEQUENTIAL,
        description="sequential chains every step to its predecessor",
    )
    content_tools: tuple[str, ...] = Field(
        default=DEFAULT_CONTENT_TOOLS,
        description="Tools that consume generated content",
    )
    content_fields: tuple[str, ...] = Field(
        default=DEFAULT_CONTENT_FIELDS,
        description="Input fields rewritten to the generated content",
    )
    content_generator_tool: str = Field(
        default=DEFAULT_CONTENT_GENERATOR_TOOL,
        min_length=1,
        description="Tool name of content generation steps",
    )
    auto_insert_content_steps: bool = Field(
        default=DEFAULT_AUTO_INSERT_CONTENT,
        description="Insert missing content generation steps",
    )
    max_concurrency: int = Field(
        default=DEFAULT_MAX_CONCURRENCY,
        gt=0,
        le=MAX_CONCURRENCY_LIMIT,
        description="Max concurrently executing steps per layer",
    )

    model_config = {"frozen": True}

    @field_validator("content_tools", "content_fields")
    @classmethod
    def validate_names(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Drop blanks and duplicates, keep order."""
        seen: dict[str, None] = {}
        for name in v:
            name = name.strip()
            if name:
                seen.setdefault(name, None)
        return tuple(seen)

    @property
    def is_sequential(self) -> bool:
        return self.execution_mode == ExecutionMode.SEQUENTIAL

    @classmethod
    def from_env(cls, **overrides: Any) -> PlannerConfig:
        """Build config from environment variables, then apply overrides.

        Unset variables fall back to the field defaults. Values that do
        not validate raise pydantic.ValidationError.
        """
        values: dict[str, Any] = {}

        mode = get_env(EnvVar.EXECUTION_MODE)
        if mode:
            values["execution_mode"] = mode.strip().lower()

        tools = get_env_list(EnvVar.CONTENT_TOOLS)
        if tools:
            values["content_tools"] = tuple(tools)

        fields = get_env_list(EnvVar.CONTENT_FIELDS)
        if fields:
            values["content_fields"] = tuple(fields)

        generator = get_env(EnvVar.CONTENT_GENERATOR_TOOL)
        if generator:
            values["content_generator_tool"] = generator.strip()

        if get_env(EnvVar.AUTO_INSERT_CONTENT) is not None:
            values["auto_insert_content_steps"] = get_env_bool(
                EnvVar.AUTO_INSERT_CONTENT
            )

        concurrency = get_env(EnvVar.MAX_CONCURRENCY)
        if concurrency:
            values["max_concurrency"] = concurrency.strip()

        values.update(overrides)
        return cls(**values)
