"""
Gemini client.

Every call goes through the shared rate limiter and the resilient call
combinator; the client never raises to its callers. A failed call returns
None and the caller falls back to deterministic scoring.
"""
import asyncio
import base64
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx

from ..core.config import settings
from ..core.logging import logger
from ..utils.rate_limit import CallRateLimiter, get_ai_rate_limiter
from ..utils.retry import (
    CallOutcome,
    OutcomeKind,
    RetryPolicy,
    exponential_backoff,
    resilient_call,
)
from .json_repair import repair_json

BLOCKING_FINISH_REASONS = frozenset({"SAFETY", "RECITATION"})
VALIDATION_PROMPT = 'Reply with exactly: {"status":"ok"}'
VALIDATION_TIMEOUT = 15.0


def gemini_backoff(
    cooldown: float = settings.AI_RATE_LIMIT_COOLDOWN,
    step: float = settings.AI_RATE_LIMIT_STEP,
    base: float = settings.AI_BACKOFF_BASE,
    maximum: float = settings.AI_BACKOFF_MAX,
):
    """
    Wait schedule for Gemini retries.

    Rate limits wait a cooldown that grows with each prior attempt; an
    overloaded model (503) is retried straight away; everything else backs
    off exponentially.
    """
    exponential = exponential_backoff(base, maximum)

    def schedule(attempt_number: int, outcome: Optional[CallOutcome]) -> float:
        if outcome is not None and outcome.kind == OutcomeKind.RATE_LIMITED:
            return cooldown + step * (attempt_number - 1)
        if outcome is not None and outcome.kind == OutcomeKind.UNAVAILABLE:
            return 0.0
        return exponential(attempt_number, outcome)

    return schedule


def default_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.AI_MAX_ATTEMPTS,
        backoff=gemini_backoff(),
        retry_exceptions=(httpx.HTTPError,),
    )


def extract_text(data: Dict[str, Any]) -> str:
    """Last non-thought text part of the first candidate, else its first text part."""
    candidates = data.get("candidates") or [{}]
    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = ""
    for part in parts:
        if part.get("text") and not part.get("thought"):
            text = part["text"]
    if not text:
        text = next((p["text"] for p in parts if p.get("text")), "")
    return text


def finish_reason(data: Dict[str, Any]) -> Optional[str]:
    candidates = data.get("candidates") or [{}]
    return candidates[0].get("finishReason")


def encode_images(paths: Sequence[str]) -> List[Dict[str, Any]]:
    """Inline JPEG parts for the given screenshot paths; unreadable files are skipped."""
    parts = []
    for path in paths:
        if not path:
            continue
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            logger.error(f"Failed to read image {path}: {e}")
            continue
        parts.append({
            "inlineData": {
                "mimeType": "image/jpeg",
                "data": base64.b64encode(data).decode("ascii"),
            }
        })
    return parts


class GeminiClient:
    """Rate-limited, retrying client for the Gemini generateContent endpoint."""

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        rate_limiter: Optional[CallRateLimiter] = None,
        policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.rate_limiter = rate_limiter or get_ai_rate_limiter()
        self.policy = policy or default_policy()
        self.transport = transport
        self.sleep = sleep
        self.timeout = timeout or settings.AI_TIMEOUT

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_payload(
        self,
        system_prompt: str,
        content: str,
        images: Optional[Sequence[str]] = None,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = [{"text": content}]
        if images:
            parts.extend(encode_images(images))
        return {
            "system_instruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"parts": parts}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "temperature": settings.AI_TEMPERATURE,
                "maxOutputTokens": max_tokens or settings.AI_MAX_OUTPUT_TOKENS,
            },
        }

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self.transport)

    async def _attempt(self, client: httpx.AsyncClient, payload: Dict[str, Any]) -> CallOutcome:
        await self.rate_limiter.wait()
        response = await client.post(self.endpoint, params={"key": self.api_key}, json=payload)

        if response.status_code == 429:
            return CallOutcome(OutcomeKind.RATE_LIMITED, status_code=429, detail="rate limited")
        if response.status_code == 503:
            return CallOutcome(OutcomeKind.UNAVAILABLE, status_code=503, detail="model overloaded")
        if response.status_code >= 400:
            logger.error(f"Gemini HTTP {response.status_code}: {response.text[:200]}")
            return CallOutcome(
                OutcomeKind.FAILED,
                status_code=response.status_code,
                detail=response.text[:200],
            )

        try:
            data = response.json()
        except ValueError:
            return CallOutcome(OutcomeKind.MALFORMED, status_code=response.status_code, detail="non-JSON body")

        text = extract_text(data)
        if not text:
            reason = finish_reason(data)
            logger.error(f"Gemini returned no text, finishReason: {reason}")
            if reason in BLOCKING_FINISH_REASONS:
                return CallOutcome(OutcomeKind.TERMINAL, detail=f"blocked: {reason}")
            return CallOutcome(OutcomeKind.TRANSIENT, detail=f"empty response: {reason}")

        parsed = repair_json(text)
        if not isinstance(parsed, dict):
            logger.error(f"Gemini JSON parse failed, preview: {text[:300]}")
            return CallOutcome(OutcomeKind.MALFORMED, detail="unparseable JSON")
        return CallOutcome(OutcomeKind.OK, value=parsed, status_code=response.status_code)

    async def call(
        self,
        system_prompt: str,
        content: str,
        images: Optional[Sequence[str]] = None,
        max_tokens: Optional[int] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Send one prompt and return the parsed JSON object.

        Args:
            system_prompt: System instruction
            content: User content
            images: Optional screenshot paths sent as inline JPEG parts
            max_tokens: Output token limit override

        Returns:
            Parsed response object, or None when the call could not produce one
        """
        payload = self.build_payload(system_prompt, content, images, max_tokens)
        label = "Gemini vision" if images else "Gemini"
        try:
            async with self._client(self.timeout) as client:
                outcome = await resilient_call(
                    lambda: self._attempt(client, payload),
                    self.policy,
                    label=label,
                    sleep=self.sleep,
                )
        except Exception as e:
            logger.error(f"{label} call failed: {e}", exc_info=True)
            return None

        if outcome is None or not outcome.ok:
            return None
        return outcome.value

    async def validate_key(self) -> Dict[str, Any]:
        """Check the API key with a minimal request."""
        payload = {
            "contents": [{"parts": [{"text": VALIDATION_PROMPT}]}],
            "generationConfig": {"responseMimeType": "application/json", "maxOutputTokens": 20},
        }
        try:
            async with self._client(VALIDATION_TIMEOUT) as client:
                response = await client.post(self.endpoint, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            return {"valid": False, "error": str(e) or e.__class__.__name__}

        if response.status_code == 200:
            return {"valid": True, "model": self.model}
        try:
            message = response.json().get("error", {}).get("message")
        except ValueError:
            message = None
        return {"valid": False, "error": message or f"HTTP {response.status_code}"}
