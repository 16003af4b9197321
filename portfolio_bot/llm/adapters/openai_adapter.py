import logging
from typing import List, Type

from openai import AsyncOpenAI

from ..interface import LLMProvider, ResponseT

logger = logging.getLogger(__name__)


class OpenAIAdapter(LLMProvider):
    def __init__(self, api_key: str, model_name: str = "gpt-4o-mini", timeout: float = 15.0):
        # Retries are left to the caller's timeout budget.
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.model_name = model_name

    async def generate_structured_output(
        self,
        messages: List[dict],
        response_model: Type[ResponseT],
        temperature: float = 0.0
    ) -> ResponseT:
        completion = await self.client.chat.completions.parse(
            model=self.model_name,
            messages=messages,
            response_format=response_model,
            temperature=temperature,
        )

        message = completion.choices[0].message
        if message.parsed is None:
            logger.warning(f"{self.model_name} gave no {response_model.__name__}: {message.refusal!r}")
            raise ValueError("Model returned no parsable output.")
        return message.parsed
