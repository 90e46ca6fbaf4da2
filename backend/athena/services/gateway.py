"""Completion gateway: turns in, one generated assistant turn out."""

import logging
from typing import Protocol

from anthropic import APIError, AsyncAnthropic

from athena.config import Settings
from athena.errors import GatewayFailed

logger = logging.getLogger(__name__)


class CompletionGateway(Protocol):
    """Anything that can complete an ordered list of role-tagged turns."""

    async def complete(self, turns: list[dict]) -> str:
        """
        Generate the next assistant turn.

        Args:
            turns: Ordered dicts with 'role' (system, user or assistant) and 'content'

        Returns:
            Generated text

        Raises:
            GatewayFailed: provider error, timeout, or empty reply
        """
        ...


def split_system(turns: list[dict]) -> tuple[str | None, list[dict]]:
    """
    Separate system turns from the conversational ones.

    System turns are joined into one instruction. Leading assistant turns
    are dropped because the provider requires the history to open with
    a user turn. Trailing assistant turns are dropped too: the provider
    would continue them as a prefill instead of writing a new turn.
    """
    system_parts = [t["content"] for t in turns if t["role"] == "system"]
    messages = [
        {"role": t["role"], "content": t["content"]}
        for t in turns
        if t["role"] != "system"
    ]
    while messages and messages[0]["role"] != "user":
        messages.pop(0)
    while messages and messages[-1]["role"] != "user":
        messages.pop()
    system = "\n\n".join(system_parts) if system_parts else None
    return system, messages


class AnthropicGateway:
    """CompletionGateway backed by the Anthropic Messages API."""

    def __init__(self, settings: Settings):
        """Initialize Anthropic client. Retries are disabled, the timeout is finite."""
        self.client = AsyncAnthropic(
            api_key=settings.anthropic_api_key,
            timeout=settings.llm_timeout_seconds,
            max_retries=0,
        )
        self.model = settings.llm_model
        self.max_tokens = settings.llm_max_tokens

    async def complete(self, turns: list[dict]) -> str:
        system, messages = split_system(turns)
        if not messages:
            # A bare instruction is sent as the user turn
            messages = [{"role": "user", "content": system or ""}]
            system = None

        kwargs = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": messages,
        }
        if system:
            kwargs["system"] = system

        try:
            message = await self.client.messages.create(**kwargs)
        except APIError as e:
            logger.warning("Completion request failed: %s", e)
            raise GatewayFailed(str(e)) from e

        text = "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise GatewayFailed("completion returned no text")
        return text
