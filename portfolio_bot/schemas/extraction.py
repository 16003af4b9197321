"""
Schemas - Structured Output Models for LLM Responses

This module defines the Pydantic model the date/time extraction prompt must
produce. It enforces strict JSON formatting on the LLM's answer, so the
handlers receive either a date or a reason, never free text.
"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

class ExtractionStatus(str, Enum):
    """
    SUCCESS: The user's text names a date (and possibly a time).
    ERROR: No date or time could be found in the text.
    """
    SUCCESS = "Success"
    ERROR = "Error"

class DateTimeExtraction(BaseModel):
    """
    The strict JSON structure the LLM must generate for an extraction request.
    """
    status: ExtractionStatus = Field(
        ...,
        description="'Success' if a date or time was found, otherwise 'Error'."
    )
    date: Optional[str] = Field(
        None,
        description="The resolved date as YYYY-MM-DD. Relative dates are resolved against the reference date."
    )
    time: Optional[str] = Field(
        None,
        description="The resolved time as HH:MM (24h), if the user mentioned one."
    )
    reason: Optional[str] = Field(
        None,
        description="Short explanation when status is 'Error'."
    )
