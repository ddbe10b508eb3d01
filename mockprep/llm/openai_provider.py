"""
OpenAI provider implementation.
"""
import logging
from typing import Optional, Dict
from openai import OpenAI, APIError, APITimeoutError

from mockprep.llm.provider import LLMProvider, LLMResponse

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI provider using official OpenAI SDK."""
    
    def __init__(self, api_key: Optional[str] = None, timeout: float = 30.0):
        """Initialize OpenAI client. Outstanding calls are bounded by ``timeout`` seconds."""
        if not api_key:
            raise ValueError("OPENAI_API_KEY not configured")
        self.client = OpenAI(api_key=api_key, timeout=timeout, max_retries=1)
        logger.info(f"OpenAI provider initialized (timeout={timeout}s)")
    
    def chat(
        self,
        messages: list[Dict[str, str]],
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        json_output: bool = False,
    ) -> LLMResponse:
        """Generate a chat completion."""
        extra = {}
        if json_output:
            extra["response_format"] = {"type": "json_object"}
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens or 2000,
                **extra
            )
        except APITimeoutError:
            logger.error(f"OpenAI request timed out: model={model}")
            raise
        except APIError as e:
            logger.error(f"OpenAI API error: {e}", exc_info=True)
            raise
        
        content = response.choices[0].message.content or ""
        usage = response.usage
        tokens_in = usage.prompt_tokens if usage else 0
        tokens_out = usage.completion_tokens if usage else 0
        logger.info(f"OpenAI completion: model={model}, tokens_in={tokens_in}, tokens_out={tokens_out}")
        
        return LLMResponse(
            content=content,
            tokens_in=tokens_in,
            tokens_out=tokens_out,
            model=model,
            metadata={
                "finish_reason": response.choices[0].finish_reason,
            }
        )
