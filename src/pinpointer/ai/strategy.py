"""Two-step prompting strategy for category reviews."""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..core.logging import logger


@dataclass(frozen=True)
class PromptRequest:
    """One system prompt + content pair, optionally with screenshots."""
    system_prompt: str
    content: str
    images: Tuple[str, ...] = ()
    max_tokens: Optional[int] = None

    def text_only(self) -> "PromptRequest":
        return PromptRequest(self.system_prompt, self.content, (), self.max_tokens)


class TwoStepStrategy:
    """
    Primary prompt first, simplified fallback second.

    When the primary request carries screenshots and that call fails, the
    primary is retried once without them before the fallback is tried.
    """

    def __init__(self, primary: PromptRequest, fallback: Optional[PromptRequest] = None, label: str = "AI"):
        self.primary = primary
        self.fallback = fallback
        self.label = label

    @staticmethod
    async def _send(client, request: PromptRequest) -> Optional[Dict[str, Any]]:
        return await client.call(
            request.system_prompt,
            request.content,
            images=list(request.images) or None,
            max_tokens=request.max_tokens,
        )

    async def run(self, client) -> Optional[Dict[str, Any]]:
        """
        Execute the strategy against an AI client.

        Args:
            client: Object exposing ``async call(system_prompt, content, images, max_tokens)``

        Returns:
            The first non-None result, or None when every step failed
        """
        result = None
        if self.primary.images:
            logger.info(f"{self.label}: using vision with {len(self.primary.images)} screenshot(s)")
            result = await self._send(client, self.primary)
            if result is None:
                logger.info(f"{self.label}: vision call failed, retrying text-only")

        if result is None:
            result = await self._send(client, self.primary.text_only())

        if result is None and self.fallback is not None:
            logger.info(f"{self.label}: retrying with simplified prompt")
            result = await self._send(client, self.fallback)
            if result is not None:
                logger.info(f"{self.label}: simplified prompt succeeded")

        return result
