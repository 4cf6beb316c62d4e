"""AI completion providers: a static templated one and an OpenAI adapter."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from advisor.config import Settings
from advisor.exceptions import CompletionServiceError
from advisor.models import Recommendation

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You help non-technical users choose an ESRI ArcGIS app template. "
    "Recommend only from the candidate apps you are given, explain the choice "
    "in plain language and keep the answer under 150 words."
)


@dataclass(frozen=True)
class CompletionContext:
    message: str
    recommendations: tuple[Recommendation, ...] = ()
    selected_datasets: tuple[str, ...] = ()
    previous_recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class Completion:
    text: str
    model: str
    tokens_used: int = 0


class CompletionProvider(Protocol):
    async def complete(self, prompt: str, context: CompletionContext) -> Completion:
        """Produce assistant text for ``prompt``."""
        ...


class StaticCompletionProvider:
    """Compose a reply from the ranked catalog without calling a model."""

    model = "static-catalog"

    async def complete(self, prompt: str, context: CompletionContext) -> Completion:
        if not context.recommendations:
            text = (
                "I couldn't match your request to a specific app yet. "
                "Tell me a bit more about what you want to do with your map, "
                "for example share it, collect data in the field or tell a story, "
                "or browse the app catalog directly."
            )
            return Completion(text=text, model=self.model)

        top, *others = context.recommendations
        lines = [
            f"I'd recommend **{top.app.name}**. {top.app.description}",
            "",
            top.reasoning,
        ]
        if others:
            lines += ["", "You could also consider:"]
            lines += [f"- {rec.app.name}: {rec.app.description}" for rec in others]
        if context.selected_datasets:
            lines += [
                "",
                f"It works well with the {len(context.selected_datasets)} dataset(s) you selected.",
            ]
        else:
            lines += ["", "Would you like me to find datasets from Living Atlas to go with it?"]
        return Completion(text="\n".join(lines), model=self.model)


def build_user_prompt(context: CompletionContext) -> str:
    """Render the candidate apps and the user's message as a single prompt."""

    candidates = "\n".join(
        f"- {rec.app.name} (score {rec.score:.2f}): {rec.app.description}"
        for rec in context.recommendations
    ) or "- none matched; ask a clarifying question"
    datasets = ", ".join(context.selected_datasets) or "none"
    previous = ", ".join(context.previous_recommendations) or "none"
    return (
        f"Candidate apps:\n{candidates}\n\n"
        f"Apps suggested earlier in this conversation: {previous}\n"
        f"Datasets already selected: {datasets}\n\n"
        f"User message: {context.message}"
    )


class OpenAICompletionProvider:
    """Wrapper around OpenAI's chat completions endpoint."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings
        self._endpoint = f"{settings.openai_base_url.rstrip('/')}/chat/completions"

    async def complete(self, prompt: str, context: CompletionContext) -> Completion:
        """Generate a chat completion from OpenAI."""

        payload = {
            "model": self._settings.chat_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        }

        headers = {
            "Authorization": f"Bearer {self._settings.openai_api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = await self._client.post(
                self._endpoint,
                headers=headers,
                json=payload,
                timeout=self._settings.upstream_timeout,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("Chat completion timed out", exc_info=exc)
            raise CompletionServiceError("Chat service timed out", timed_out=True) from exc
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Chat completion failed",
                extra={
                    "status_code": exc.response.status_code,
                    "response_text": exc.response.text,
                },
            )
            raise CompletionServiceError(
                "Chat service returned an error",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.TransportError as exc:
            logger.warning("Chat service unreachable", exc_info=exc)
            raise CompletionServiceError("Chat service unreachable", unreachable=True) from exc
        except httpx.HTTPError as exc:
            logger.exception("Unexpected chat HTTP error")
            raise CompletionServiceError("Chat service request failed") from exc

        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Chat response is not JSON", extra={"response_text": response.text})
            raise CompletionServiceError("Invalid chat response payload") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            logger.error("Malformed chat response", extra={"raw_response": data})
            raise CompletionServiceError("Invalid chat response payload") from exc

        if not isinstance(content, str):
            logger.error("Chat content is not text", extra={"raw_response": data})
            raise CompletionServiceError("Invalid chat response payload")
        if not content.strip():
            raise CompletionServiceError("Chat service returned empty content")

        model = data.get("model")
        return Completion(
            text=content.strip(),
            model=model if isinstance(model, str) and model else self._settings.chat_model,
            tokens_used=_total_tokens(data.get("usage")),
        )


def _total_tokens(usage: Any) -> int:
    """Token count from an OpenAI ``usage`` block; 0 when absent or not a number."""

    if not isinstance(usage, dict):
        return 0
    total = usage.get("total_tokens")
    if isinstance(total, bool) or not isinstance(total, (int, float)):
        return 0
    return max(int(total), 0)
