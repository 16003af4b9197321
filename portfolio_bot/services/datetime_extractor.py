"""
Date/Time Extraction Service.

Turns free text such as "yesterday at 5pm" into a concrete date and time by
asking the LLM for a DateTimeExtraction. Each call is a single round trip
bounded by a timeout.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from ..llm.interface import LLMProvider
from ..llm.prompts import Template, render
from ..schemas.extraction import DateTimeExtraction, ExtractionStatus
from .exceptions import ExtractionError

logger = logging.getLogger(__name__)


class DateTimeExtractor:
    def __init__(self, llm_provider: Optional[LLMProvider], timeout: float = 15.0, temperature: float = 0.0):
        self.llm = llm_provider
        self.timeout = timeout
        self.temperature = temperature

    async def extract(
        self,
        text: str,
        reference: Optional[datetime] = None,
        require_time: bool = False,
    ) -> DateTimeExtraction:
        """
        Returns the extraction, with status ERROR when the text names no date.

        Raises:
            ExtractionError: no provider is configured, or the provider failed,
                timed out or contradicted its own schema.
        """
        if self.llm is None:
            logger.error("Date extraction requested but no LLM provider is configured")
            raise ExtractionError("Date extraction is not configured.")

        reference = reference or datetime.now()
        system_prompt = render(
            Template.DATETIME_EXTRACTION,
            reference=reference,
            require_time=require_time,
        )
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": text},
        ]

        try:
            result = await asyncio.wait_for(
                self.llm.generate_structured_output(
                    messages=messages,
                    response_model=DateTimeExtraction,
                    temperature=self.temperature,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Date extraction timed out after {self.timeout}s")
            raise ExtractionError("Date extraction timed out.") from e
        except Exception as e:
            logger.error(f"Date extraction failed: {e}")
            raise ExtractionError(str(e)) from e

        if result.status == ExtractionStatus.SUCCESS and not _is_valid_date(result.date):
            logger.error(f"Date extraction returned a malformed date: {result.date!r}")
            raise ExtractionError(f"Malformed date {result.date!r}.")

        logger.debug(f"Extracted {result.status.value}: date={result.date} time={result.time}")
        return result


def _is_valid_date(value: Optional[str]) -> bool:
    if not value:
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True
