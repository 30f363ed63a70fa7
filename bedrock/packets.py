"""
Packet Parameter Types

Packets are written as (name, params). Most packets carry a plain field dict
that is handed to the codec untouched; packets with client-side defaulting
get a concrete parameter struct.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Union

from .constants import NIL_UUID


COMMAND_REQUEST = "command_request"


@dataclass
class DecodedPacket:
    """A packet produced by the codec on the receive path."""
    name: str
    params: Dict[str, Any] = field(default_factory=dict)
    buffer: bytes = b""


@dataclass
class CommandOrigin:
    origin: Optional[str] = None
    uuid: Optional[str] = None
    request_id: Optional[str] = None
    player_entity_id: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CommandOrigin":
        data = dict(data or {})
        return cls(
            origin=data.pop("origin", None),
            uuid=data.pop("uuid", None),
            request_id=data.pop("request_id", None),
            player_entity_id=data.pop("player_entity_id", None),
            extra=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        result = dict(self.extra)
        result.update({
            "origin": self.origin,
            "uuid": self.uuid,
            "request_id": self.request_id,
            "player_entity_id": self.player_entity_id,
        })
        return result


@dataclass
class CommandRequestParams:
    command: Optional[str] = None
    origin: Optional[CommandOrigin] = None
    internal: Optional[bool] = None
    version: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CommandRequestParams":
        data = dict(data or {})
        origin = data.pop("origin", None)
        return cls(
            command=data.pop("command", None),
            origin=CommandOrigin.from_dict(origin) if origin is not None else None,
            internal=data.pop("internal", None),
            version=data.pop("version", None),
            extra=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        result = dict(self.extra)
        result.update({
            "command": self.command,
            "origin": self.origin.to_dict() if self.origin is not None else None,
            "internal": self.internal,
            "version": self.version,
        })
        return result


PacketParams = Union[CommandRequestParams, Dict[str, Any], None]


def normalize_command_request(params: PacketParams) -> CommandRequestParams:
    """
    Fill unset command_request fields with the values servers expect.

    Supplied fields are kept as they are; only None/missing ones are
    defaulted. Returns a new struct, the input is not modified.
    """
    if isinstance(params, CommandRequestParams):
        request = CommandRequestParams.from_dict(params.to_dict())
    else:
        request = CommandRequestParams.from_dict(params)

    if request.command is None:
        request.command = ""
    if request.origin is None:
        request.origin = CommandOrigin()

    origin = request.origin
    if origin.origin is None:
        origin.origin = "player"
    if origin.uuid is None:
        origin.uuid = NIL_UUID
    if origin.request_id is None:
        origin.request_id = "req"
    if origin.player_entity_id is None:
        origin.player_entity_id = 1

    if request.internal is None:
        request.internal = False
    if request.version is None:
        request.version = "latest"

    return request


def prepare_params(name: str, params: PacketParams, normalize: bool = True) -> Dict[str, Any]:
    """
    Turn (name, params) into the field dict handed to the codec.

    Only command_request is normalized, and only when normalize is set;
    every other packet passes through.
    """
    if normalize and name == COMMAND_REQUEST:
        return normalize_command_request(params).to_dict()
    if isinstance(params, CommandRequestParams):
        return params.to_dict()
    return params if params is not None else {}
