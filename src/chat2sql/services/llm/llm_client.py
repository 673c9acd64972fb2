import logging
from typing import Optional

import openai
from fastapi import Request
from openai import OpenAI

from chat2sql.config import Settings
from chat2sql.errors import GenerationError, GenerationTimeout, GenerationUnavailable

logger = logging.getLogger(__name__)


class GenerationClient:
    """Gemini 호출 래퍼 (OpenAI 호환 엔드포인트 사용)"""

    def __init__(
        self,
        client: OpenAI,
        model: str,
        temperature: float = 0.1,
        max_tokens: int = 2000,
        timeout: float = 30.0,
    ):
        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationClient":
        client = OpenAI(
            api_key=settings.gemini_api_key,
            base_url=settings.gemini_base_url,
            timeout=settings.llm_timeout,
            max_retries=settings.llm_max_retries,
        )
        return cls(
            client,
            model=settings.gemini_model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            timeout=settings.llm_timeout,
        )

    def generate(self, prompt: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.APITimeoutError as e:
            logger.warning("Generation call timed out after %ss", self.timeout)
            raise GenerationTimeout(self.timeout) from e
        except openai.APIError as e:
            logger.error("Generation call failed: %s", e)
            raise GenerationError(str(e)) from e

        if not response.choices:
            return ""
        content = response.choices[0].message.content or ""
        logger.debug("AI response: %s", content)
        return content


def init_generation_client(settings: Settings) -> Optional[GenerationClient]:
    if not settings.gemini_api_key:
        logger.error("GEMINI_API_KEY is not set in environment variables")
        return None

    client = GenerationClient.from_settings(settings)
    logger.info("Gemini client initialized (model=%s)", settings.gemini_model)
    return client


def get_generation_client(request: Request) -> Optional[GenerationClient]:
    return getattr(request.app.state, "generation_client", None)


def require_generation_client(client: Optional[GenerationClient]) -> GenerationClient:
    if client is None:
        raise GenerationUnavailable("GEMINI_API_KEY is missing or the client failed to initialize")
    return client
