"""
Schemas - Callback Commands

Inline buttons carry a JSON object with a single top-level key naming the
command, e.g. {"edit_holding": {"holding_id": 7}}. Each feature area declares
the commands it understands as pydantic models; the payload is decoded once,
at the LevelHandler boundary, into one of those models.
"""

import json
import logging
from typing import Any, ClassVar, Dict, Iterable, Optional, Type

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)


class CallbackCommand(BaseModel):
    """Base class. Subclasses set 'name' to the payload's top-level key."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: ClassVar[str]

    def encode(self) -> str:
        return json.dumps(
            {self.name: self.model_dump(exclude_defaults=True)},
            separators=(",", ":"),
        )

    def button(self, text: str) -> Dict[str, str]:
        return {"text": text, "callback_data": self.encode()}


def parse_payload(raw_payload: str) -> Optional[Dict[str, Any]]:
    """
    Decodes callback_data into a single-key dict, or None when the data
    does not have that shape.
    """
    try:
        payload = json.loads(raw_payload)
    except (TypeError, ValueError):
        logger.warning(f"Callback payload is not JSON: {raw_payload!r}")
        return None

    if not isinstance(payload, dict) or len(payload) != 1:
        logger.warning(f"Callback payload must have exactly one key: {raw_payload!r}")
        return None
    return payload


def decode_command(
    payload: Dict[str, Any], commands: Iterable[Type[CallbackCommand]]
) -> Optional[CallbackCommand]:
    """
    Matches the payload's key against the given command set and validates
    its arguments. Returns None for unknown commands or malformed arguments.
    """
    (key, arguments), = payload.items()
    command_cls = next((cls for cls in commands if cls.name == key), None)
    if command_cls is None:
        logger.info(f"Unknown callback command '{key}'")
        return None

    try:
        return command_cls.model_validate(arguments or {})
    except ValidationError as e:
        logger.warning(f"Malformed arguments for callback command '{key}': {e}")
        return None


# ==============================================================================
# Holdings
# ==============================================================================

class ViewHolding(CallbackCommand):
    name: ClassVar[str] = "view_holding"
    holding_id: int


class EditHolding(CallbackCommand):
    name: ClassVar[str] = "edit_holding"
    holding_id: int


class EditPrice(CallbackCommand):
    name: ClassVar[str] = "edit_price"
    holding_id: int


class EditAmount(CallbackCommand):
    name: ClassVar[str] = "edit_amount"
    holding_id: int


class EditDate(CallbackCommand):
    name: ClassVar[str] = "edit_date"
    holding_id: int


class DeleteHolding(CallbackCommand):
    name: ClassVar[str] = "delete_holding"
    holding_id: int
    confirmed: bool = False


# ==============================================================================
# Prices
# ==============================================================================

class ViewAsset(CallbackCommand):
    name: ClassVar[str] = "view_asset"
    id: int


class PriceAlert(CallbackCommand):
    name: ClassVar[str] = "price_alert"
    id: int


class NewAlert(CallbackCommand):
    name: ClassVar[str] = "new_alert"
    id: int
