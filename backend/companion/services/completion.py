import time
from typing import Optional

from langchain_openai import ChatOpenAI
from langchain_core.messages import HumanMessage, SystemMessage
from openai import AsyncOpenAI

from companion.core.config import settings
from companion.core.errors import CompanionError
from companion.core.logging import llm_logger
from companion.core.monitoring import record_llm_request

EMPTY_COMPLETION = "No output."


class CompletionError(CompanionError):
    """The completion API failed or returned nothing usable."""


class CompletionClient:
    """Single-shot chat completions and image generation. No retries."""

    def __init__(self, model: Optional[ChatOpenAI] = None, images: Optional[AsyncOpenAI] = None):
        openai_config = settings.get_openai_config()
        self.model = model or ChatOpenAI(
            model=openai_config["model"],
            temperature=openai_config["temperature"],
            openai_api_key=openai_config["api_key"],
            max_tokens=openai_config["max_tokens"],
            timeout=openai_config["timeout"],
        )
        self._images = images

    @property
    def images(self) -> AsyncOpenAI:
        if self._images is None:
            self._images = AsyncOpenAI(api_key=settings.openai_api_key, timeout=settings.openai_timeout)
        return self._images

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """One system + user message exchange; empty output becomes ``No output.``"""
        start_time = time.time()
        messages = [
            SystemMessage(content=system_prompt or ""),
            HumanMessage(content=user_prompt),
        ]
        try:
            result = await self.model.ainvoke(messages)
        except Exception as e:
            record_llm_request(time.time() - start_time, success=False, kind="chat")
            llm_logger.error("Completion request failed", error=str(e), error_type=type(e).__name__)
            raise CompletionError(f"Completion failed: {e}") from e

        duration = time.time() - start_time
        record_llm_request(duration, success=True, kind="chat")

        content = result.content if isinstance(result.content, str) else ""
        content = content.strip()
        llm_logger.info("Completion received", duration=duration, length=len(content))
        return content or EMPTY_COMPLETION

    async def generate_image(self, prompt: str) -> str:
        """Generate one image and return its hosted URL"""
        start_time = time.time()
        try:
            response = await self.images.images.generate(
                model=settings.openai_image_model,
                prompt=prompt,
                size=settings.openai_image_size,
                n=1,
            )
            url = response.data[0].url if response.data else None
        except Exception as e:
            record_llm_request(time.time() - start_time, success=False, kind="image")
            llm_logger.error("Image generation failed", error=str(e), error_type=type(e).__name__)
            raise CompletionError(f"Image generation failed: {e}") from e

        record_llm_request(time.time() - start_time, success=bool(url), kind="image")
        if not url:
            raise CompletionError("Image generation returned no URL")

        llm_logger.info("Image generated", duration=time.time() - start_time)
        return url


_completion_client: Optional[CompletionClient] = None


def get_completion_client() -> CompletionClient:
    """Dependency returning the shared completion client"""
    global _completion_client
    if _completion_client is None:
        _completion_client = CompletionClient()
    return _completion_client
