"""
LiteLLM streaming completions.

``CompletionStreamer`` requests a streamed chat completion, accumulates the
text deltas and pushes the running text to a callback: at most once per
``update_interval`` while streaming, then once more, unconditionally, when the
stream ends.
"""

import asyncio
import time
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional

import litellm

from scribe.errors import GenerationError
from scribe.logger import get_logger

logger = get_logger(__name__)

# Drop unsupported parameters when calling APIs
litellm.drop_params = True

UpdateCallback = Callable[[str], Awaitable[None]]


class CompletionStreamer:
    """Drive one streamed completion per call to ``generate``."""

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        temperature: float = 0.7,
        update_interval: float = 1.0,
        timeout: float = 120.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            model: LiteLLM model identifier (e.g. 'openai/gemini-2.0-flash')
            api_key: Provider credential
            api_base: Base endpoint override
            temperature: Sampling temperature
            update_interval: Minimum seconds between partial updates
            timeout: Upper bound in seconds for a whole generation (0 = none)
            clock: Monotonic clock used for throttling
        """
        self.model = model
        self.api_key = api_key
        self.api_base = api_base
        self.temperature = temperature
        self.update_interval = update_interval
        self.timeout = timeout
        self._clock = clock

    @classmethod
    def from_config(cls, config) -> "CompletionStreamer":
        return cls(
            model=config.llm_model,
            api_key=config.llm_api_key,
            api_base=config.llm_base_url,
            temperature=config.temperature,
            update_interval=config.update_interval,
            timeout=config.generation_timeout,
        )

    async def stream_deltas(self, messages: List[Dict[str, str]]) -> AsyncIterator[str]:
        """Yield non-empty text deltas from the provider."""
        response = await litellm.acompletion(
            model=self.model,
            messages=messages,
            stream=True,
            temperature=self.temperature,
            api_key=self.api_key,
            api_base=self.api_base,
        )
        async for chunk in response:
            choices = getattr(chunk, "choices", None) or []
            if not choices:
                continue
            delta = getattr(choices[0], "delta", None)
            content = getattr(delta, "content", None) if delta else None
            if content:
                yield content

    async def generate(
        self,
        prefix: List[Dict[str, str]],
        final_user_content: str,
        on_update: UpdateCallback,
    ) -> str:
        """
        Stream a reply to ``prefix`` followed by a final user message.

        Args:
            prefix: Prior conversation messages, system prompt first
            final_user_content: Content of the closing user message
            on_update: Awaited with the accumulated text on each update

        Returns:
            The complete generated text

        Raises:
            GenerationError: If the provider fails or the timeout expires
        """
        messages = [*prefix, {"role": "user", "content": final_user_content}]
        logger.debug(f"Streaming completion with {len(messages)} message(s) via {self.model}")

        try:
            if self.timeout:
                return await asyncio.wait_for(
                    self._consume(messages, on_update), timeout=self.timeout
                )
            return await self._consume(messages, on_update)
        except asyncio.TimeoutError:
            raise GenerationError(
                f"Response generation timed out after {self.timeout:g} seconds"
            ) from None
        except GenerationError:
            raise
        except Exception as e:
            logger.error(f"LLM streaming failed: {e}")
            raise GenerationError(str(e) or type(e).__name__) from e

    async def _consume(
        self, messages: List[Dict[str, str]], on_update: UpdateCallback
    ) -> str:
        full_response = ""
        last_update = self._clock()

        async for delta in self.stream_deltas(messages):
            full_response += delta
            now = self._clock()
            if now - last_update >= self.update_interval:
                await on_update(full_response)
                last_update = now

        # Final update regardless of the throttle window
        await on_update(full_response)
        return full_response
