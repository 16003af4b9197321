from abc import ABC, abstractmethod
from typing import List, Type, TypeVar

from pydantic import BaseModel

# The pydantic model a structured call must produce.
ResponseT = TypeVar("ResponseT", bound=BaseModel)


class LLMProvider(ABC):
    """
    Contract for the model backing natural-language extraction. The
    extraction services only ever ask for one validated object per call.
    """

    @abstractmethod
    async def generate_structured_output(
        self,
        messages: List[dict],
        response_model: Type[ResponseT],
        temperature: float = 0.0
    ) -> ResponseT:
        """
        Returns an instance of response_model parsed from the model's answer.
        Implementations raise on transport errors or unparsable output.
        """
        pass
