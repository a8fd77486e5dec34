"""Structured LLM calls with validation-aware retries.

Only the optional ``LLMDialogue`` generator talks to a model; the simulation
core itself is fully deterministic.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, Sequence, TypeVar

from mirascope import llm
from pydantic import BaseModel, ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from .logging_utils import LOG_TAG_ERROR, LOG_TAG_LLM, log_error, log_llm


ModelT = TypeVar("ModelT", bound=BaseModel)
LLM_TIMEOUT_SECONDS = 60.0


@dataclass(slots=True)
class ValidationFeedback:
    """Correction text appended to the prompt after a schema failure."""

    llm_text: str
    issues: Sequence[str]


def describe_validation_error(error: ValidationError) -> ValidationFeedback:
    """Summarise a pydantic ``ValidationError`` as retry guidance."""

    issues: list[str] = []
    for err in error.errors(include_url=False):
        loc = ".".join(str(part) for part in err.get("loc", [])) or "root"
        issue = f"{loc}: {err.get('msg', 'validation error')}"
        if err.get("type"):
            issue += f" [type={err['type']}]"
        issues.append(issue)

    if not issues:
        issues.append("root: response did not match the expected schema")

    lines = [
        "Your previous JSON response did not match the required schema.",
        "Return only corrected JSON with no commentary.",
        "Problems:",
    ]
    lines.extend(f"- {issue}" for issue in issues)
    return ValidationFeedback(llm_text="\n".join(lines), issues=issues)


async def call_llm_with_retries(
    *,
    system_prompt: str,
    user_prompt: str,
    llm_provider: str,
    llm_model: str,
    response_model: type[ModelT],
    max_attempts: int = 3,
    feedback_builder: Callable[[ValidationError], ValidationFeedback] = describe_validation_error,
) -> ModelT:
    """Call ``llm_provider``/``llm_model`` and parse into ``response_model``.

    Only schema failures are retried; network, auth and timeout errors
    propagate to the caller immediately. After ``max_attempts`` the last
    ``ValidationError`` is re-raised.
    """

    base_prompt = "\n\n".join(part for part in (system_prompt.strip(), user_prompt.strip()) if part)
    feedback: ValidationFeedback | None = None

    @llm.call(provider=llm_provider, model=llm_model, response_model=response_model)
    async def _invoke(prompt: str) -> str:
        return prompt

    attempt_number = 0
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(ValidationError),
        stop=stop_after_attempt(max_attempts),
        reraise=True,
    ):
        with attempt:
            attempt_number += 1
            if attempt_number > 1:
                log_llm(
                    f"{LOG_TAG_LLM} Retry {attempt_number}/{max_attempts} for {response_model.__name__}"
                )
            prompt = base_prompt if feedback is None else f"{base_prompt}\n\n{feedback.llm_text}"
            try:
                return await asyncio.wait_for(_invoke(prompt), timeout=LLM_TIMEOUT_SECONDS)
            except ValidationError as exc:
                feedback = feedback_builder(exc)
                log_error(
                    f"{LOG_TAG_ERROR} {response_model.__name__} failed validation "
                    f"(attempt {attempt_number}/{max_attempts})"
                )
                for issue in feedback.issues:
                    log_error(f"    - {issue}")
                raise

    raise RuntimeError("LLM retry loop exited without a result")
