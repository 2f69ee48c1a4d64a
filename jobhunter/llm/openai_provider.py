"""
OpenAI provider implementation.
"""
import logging
from typing import Optional, Dict

from openai import OpenAI, APIError

from jobhunter.core import config
from jobhunter.core.errors import GatewayError, ValidationError
from jobhunter.llm.provider import LLMProvider, LLMResponse

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI provider using official OpenAI SDK."""

    def __init__(self, api_key: Optional[str] = None, default_model: Optional[str] = None):
        self.api_key = api_key or config.OPENAI_API_KEY
        if not self.api_key:
            raise ValidationError("OPENAI_API_KEY not configured")
        self.default_model = default_model or config.OPENAI_MODEL
        self.client = OpenAI(api_key=self.api_key)

    def chat(
        self,
        messages: list[Dict[str, str]],
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        """Generate a chat completion."""
        model = model or self.default_model
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens or 1000,
                **kwargs
            )
        except APIError as e:
            logger.error(f"OpenAI API error: model={model}, error={e}", exc_info=True)
            raise GatewayError("OpenAI", getattr(e, "status_code", None) or 502, str(e))

        usage = response.usage
        return LLMResponse(
            content=response.choices[0].message.content or "",
            tokens_in=usage.prompt_tokens if usage else 0,
            tokens_out=usage.completion_tokens if usage else 0,
            model=model,
            metadata={"finish_reason": response.choices[0].finish_reason},
        )


def get_llm_provider() -> LLMProvider:
    """Dependency: configured LLM provider."""
    return OpenAIProvider()
