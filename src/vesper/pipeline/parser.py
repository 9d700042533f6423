"""LLM response parsing."""

import json
import re

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from vesper.models.errors import ProviderError, ProviderErrorKind


def parse_llm_response(response_text: str) -> dict:
    """Parse LLM response, handling markdown-wrapped JSON."""
    text = (response_text or "").strip()

    # Try to extract JSON from markdown code blocks
    json_match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if json_match:
        text = json_match.group(1).strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        # Try to find JSON object in text
        brace_match = re.search(r"\{.*\}", text, re.DOTALL)
        data = None
        if brace_match:
            try:
                data = json.loads(brace_match.group())
            except json.JSONDecodeError:
                data = None
        if data is None:
            raise ProviderError(
                f"Failed to parse LLM response as JSON: {e}",
                kind=ProviderErrorKind.UNKNOWN,
                details={"response_preview": text[:200]},
            ) from e

    if not isinstance(data, dict):
        raise ProviderError(
            "LLM response is not a JSON object",
            kind=ProviderErrorKind.UNKNOWN,
            details={"response_preview": text[:200]},
        )
    return data


def validate_output(model_class: type[BaseModel], data: dict) -> dict:
    """Validate ``data`` against an output model and return its dump."""
    try:
        return model_class.model_validate(data).model_dump(mode="json")
    except PydanticValidationError as e:
        raise ProviderError(
            f"Reply does not match {model_class.__name__}: {e.error_count()} error(s)",
            kind=ProviderErrorKind.UNKNOWN,
            details={"errors": [err["msg"] for err in e.errors()][:5]},
        ) from e


def strip_script(text: str) -> str:
    """Drop a wrapping code fence or preamble line from a generated script."""
    text = (text or "").strip()
    fence = re.match(r"^```[a-zA-Z]*\n(.*?)\n?```$", text, re.DOTALL)
    if fence:
        text = fence.group(1).strip()
    first_stamp = re.search(r"\[\d{2}:\d{2}", text)
    if first_stamp and first_stamp.start() > 0:
        preamble = text[: first_stamp.start()]
        # A single short line before the first timestamp is a chatty preamble.
        if "\n\n" not in preamble.strip() and len(preamble) < 200:
            text = text[first_stamp.start() :]
    return text
