from __future__ import annotations

import asyncio
from enum import Enum

import openai


class CompletionFailure(str, Enum):
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    UNAUTHORIZED = "unauthorized"
    SERVER_ERROR = "server_error"
    OTHER = "other"


class CompletionError(RuntimeError):
    def __init__(self, kind: CompletionFailure, message: str):
        super().__init__(message)
        self.kind = CompletionFailure(kind)
        self.message = str(message)


def classify_openai_error(exc: BaseException) -> CompletionError:
    if isinstance(exc, openai.APIStatusError):
        status = int(exc.status_code)
        code = str(getattr(exc, "code", None) or "")
        if status == 429:
            if code == "insufficient_quota":
                return CompletionError(CompletionFailure.QUOTA_EXCEEDED, exc.message)
            return CompletionError(CompletionFailure.RATE_LIMITED, exc.message)
        if status == 401:
            return CompletionError(CompletionFailure.UNAUTHORIZED, exc.message)
        if status >= 500:
            return CompletionError(CompletionFailure.SERVER_ERROR, exc.message)
        return CompletionError(CompletionFailure.OTHER, f"OpenAI API error: {exc.message}")
    if isinstance(exc, openai.APIError):
        return CompletionError(CompletionFailure.OTHER, f"OpenAI API error: {exc.message}")
    return CompletionError(CompletionFailure.OTHER, str(exc) or exc.__class__.__name__)


class CompletionClient:
    """Thin adapter over the OpenAI chat completions endpoint."""

    def __init__(self, *, client, model: str) -> None:
        self.client = client
        self.model = model

    @classmethod
    def from_api_key(cls, api_key: str | None, *, model: str) -> CompletionClient | None:
        if not api_key:
            return None
        return cls(client=openai.OpenAI(api_key=api_key), model=model)

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        kwargs = {}
        if max_tokens is not None:
            kwargs["max_tokens"] = int(max_tokens)
        if temperature is not None:
            kwargs["temperature"] = float(temperature)
        try:
            resp = await asyncio.to_thread(
                self.client.chat.completions.create,
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                **kwargs,
            )
        except Exception as e:
            raise classify_openai_error(e) from e
        if not resp.choices:
            return ""
        return (resp.choices[0].message.content or "").strip()
