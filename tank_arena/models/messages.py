# tank_arena/models/messages.py
"""Inbound client message schemas."""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, FiniteFloat, TypeAdapter


class MoveKeys(BaseModel):
    """Held direction keys."""

    w: bool = False
    a: bool = False
    s: bool = False
    d: bool = False


class SetNameMessage(BaseModel):
    type: Literal["setPlayerName"]
    # Numbers are accepted and stringified when the name is sanitized
    name: Union[str, int, float]


class PlayerMoveMessage(BaseModel):
    type: Literal["playerMove"]
    keys: MoveKeys = Field(default_factory=MoveKeys)
    angle: Optional[FiniteFloat] = None


class ShootMessage(BaseModel):
    type: Literal["shoot"]


InboundMessage = Annotated[
    Union[SetNameMessage, PlayerMoveMessage, ShootMessage],
    Field(discriminator="type"),
]

_inbound_adapter = TypeAdapter(InboundMessage)


def parse_message(data) -> InboundMessage:
    """Validate a decoded JSON message.

    Raises pydantic.ValidationError for unknown types or bad payloads.
    """
    return _inbound_adapter.validate_python(data)
