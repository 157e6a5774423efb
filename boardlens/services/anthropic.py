"""Anthropic Claude SDK wrapper for structured generation.

Structured output is obtained by forcing a single tool call whose input
schema is the pydantic model's JSON schema. The streamed variant yields
progressively complete partial objects as the tool input arrives.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any, TypeVar

import anthropic
from anthropic import AsyncAnthropic
from pydantic import BaseModel, ValidationError
from pydantic_core import from_json

from boardlens.config import Settings
from boardlens.exceptions import AnalysisError

logger = logging.getLogger(__name__)

TOOL_NAME = "submit_result"

ModelT = TypeVar("ModelT", bound=BaseModel)


def create_client(settings: Settings) -> AsyncAnthropic:
    """Create the AsyncAnthropic client. Construct once per process and inject it."""
    return AsyncAnthropic(api_key=settings.anthropic_api_key)


def _tool_for(schema: type[BaseModel]) -> dict[str, Any]:
    return {
        "name": TOOL_NAME,
        "description": f"Submit the {schema.__name__} result.",
        "input_schema": schema.model_json_schema(),
    }


class StructuredGenerator:
    """Generate schema-conforming objects from Claude."""

    def __init__(self, client: AsyncAnthropic, model: str, max_tokens: int = 8192):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings, client: AsyncAnthropic | None = None) -> "StructuredGenerator":
        return cls(
            client=client or create_client(settings),
            model=settings.claude_model,
            max_tokens=settings.analysis_max_tokens,
        )

    def _request(
        self,
        schema: type[BaseModel],
        messages: list[dict],
        system: str | None,
        model: str | None,
    ) -> dict[str, Any]:
        return {
            "model": model or self.model,
            "max_tokens": self.max_tokens,
            "system": system or "",
            "messages": messages,
            "tools": [_tool_for(schema)],
            "tool_choice": {"type": "tool", "name": TOOL_NAME},
        }

    async def generate(
        self,
        schema: type[ModelT],
        messages: list[dict],
        system: str | None = None,
        model: str | None = None,
    ) -> ModelT:
        """
        Generate one structured object.

        Args:
            schema: Pydantic model describing the expected output
            messages: Message dicts with 'role' and 'content' keys
            system: Optional system prompt
            model: Override the default model

        Returns:
            Validated instance of `schema`

        Raises:
            AnalysisError: If the API call fails or the output fails validation
        """
        try:
            response = await self.client.messages.create(**self._request(schema, messages, system, model))
        except anthropic.APIError as e:
            logger.error(f"Structured generation failed ({schema.__name__}): {e}")
            raise AnalysisError(f"Model call failed: {type(e).__name__}") from e

        tool_input = next(
            (block.input for block in response.content if block.type == "tool_use"),
            None,
        )
        if tool_input is None:
            raise AnalysisError(f"Model returned no structured {schema.__name__}")
        return validate_output(schema, tool_input)

    async def stream(
        self,
        schema: type[BaseModel],
        messages: list[dict],
        system: str | None = None,
        model: str | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Stream progressively complete partial objects.

        Each yielded dict is the tool input parsed so far; fields appear in
        the order the model writes them. The last yielded dict is the full
        object but is not validated here; pass it to validate_output().

        Raises:
            AnalysisError: If the API call fails
        """
        buffer = ""
        last: dict[str, Any] | None = None
        try:
            async with self.client.messages.stream(**self._request(schema, messages, system, model)) as stream:
                async for event in stream:
                    if event.type != "input_json" or not event.partial_json:
                        continue
                    buffer += event.partial_json
                    try:
                        partial = from_json(buffer, allow_partial="trailing-strings")
                    except ValueError:
                        continue
                    if isinstance(partial, dict) and partial and partial != last:
                        last = partial
                        yield partial
        except anthropic.APIError as e:
            logger.error(f"Structured stream failed ({schema.__name__}): {e}")
            raise AnalysisError(f"Model call failed: {type(e).__name__}") from e

        if last is None:
            raise AnalysisError(f"Model returned no structured {schema.__name__}")


def validate_output(schema: type[ModelT], payload: Any) -> ModelT:
    """Validate a model payload against its schema.

    Raises:
        AnalysisError: If the payload does not conform
    """
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"{schema.__name__} failed validation: {e.error_count()} errors")
        raise AnalysisError(f"Model output failed {schema.__name__} validation") from e
