from typing import List, Optional
import logging
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletionMessageParam

logger = logging.getLogger(__name__)

class LLM:
    def __init__(self, api_key: str, model: str = "gpt-3.5-turbo", base_url: str = "https://api.openai.com/v1"):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model

        # OpenAI-compatible client; base_url may point at any compatible provider
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            default_headers={
                "X-Title": "Engress"
            }
        )

    async def chat_completion_async(
        self,
        messages: List[ChatCompletionMessageParam],
        max_tokens: int = 16,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Single chat completion, returning the assistant message text.

        Args:
            messages: List of ChatCompletionMessageParam objects
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature, None for the provider default

        Returns:
            The message content, or "" when the model returned none.
        """
        try:
            api_kwargs = {
                "model": self.model,
                "messages": messages,
                "max_tokens": max_tokens,
            }
            if temperature is not None:
                api_kwargs["temperature"] = temperature

            response = await self.client.chat.completions.create(**api_kwargs)

            if response.usage:
                logger.debug(
                    f"LLM usage: prompt={response.usage.prompt_tokens} completion={response.usage.completion_tokens}"
                )

            content = response.choices[0].message.content
            return content or ""

        except Exception as e:
            logger.error(f"Chat completion error: {e}")
            raise

    async def check_connection(self) -> bool:
        try:
            test_messages = [{"role": "user", "content": "Hello, can you hear me?"}]
            await self.chat_completion_async(test_messages, max_tokens=16)
            return True
        except Exception as e:
            logger.error(f"Connection check failed: {e}")
            return False
