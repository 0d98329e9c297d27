"""Framing of game packets and dispatch of them to registered handlers.

Frame layout:
  - 2 bytes (uint16, big endian): size of the frame, not counting these 2 bytes
  - 1 byte: 0x00
  - 2 bytes (uint16): packet id
  - 2 bytes (uint16): packet index
  - rest: protobuf body
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

HEADER_SIZE = 7

UPDATE_CHECK_PACKET = 10800
HTTP_GET_SERVERS = 8239  # plain HTTP GET request / response
AUTH_PACKET = 10021

REGIONS = ("CN", "EN", "JP", "KR", "TW")

PacketHandler = Callable[[bytes, Any], Any]


def _u16(buffer: bytes, position: int) -> int:
    if position < 0 or position + 2 > len(buffer):
        raise ValueError(f"buffer too short to read a field at offset {position}")
    return (buffer[position] << 8) | buffer[position + 1]


def get_packet_id(buffer: bytes, offset: int = 0) -> int:
    """Return the id of the packet whose frame starts at offset."""
    return _u16(buffer, offset + 3)


def get_packet_size(buffer: bytes, offset: int = 0) -> int:
    """Return the size field of the frame starting at offset."""
    return _u16(buffer, offset)


def get_packet_index(buffer: bytes, offset: int = 0) -> int:
    """Return the index field of the frame starting at offset."""
    return _u16(buffer, offset + 5)


def iter_packets(buffer: bytes) -> Iterator[Tuple[int, int, bytes]]:
    """Yield (packet_id, packet_index, body) for every frame in buffer."""
    data = bytes(buffer)
    offset = 0
    while offset < len(data):
        packet_id = get_packet_id(data, offset)
        index = get_packet_index(data, offset)
        end = offset + get_packet_size(data, offset) + 2
        yield packet_id, index, data[offset + HEADER_SIZE:end]
        offset = end


@dataclass
class LocalizedHandler:
    """Handler lists per game region; None means nothing is registered for it."""

    cn: Optional[Sequence[PacketHandler]] = None
    en: Optional[Sequence[PacketHandler]] = None
    jp: Optional[Sequence[PacketHandler]] = None
    kr: Optional[Sequence[PacketHandler]] = None
    tw: Optional[Sequence[PacketHandler]] = None
    default: Optional[Sequence[PacketHandler]] = None


class PacketRouter:
    """Routes incoming packets to the handlers registered for their id.

    on_packet, if given, is called with (packet_id, body) for every packet,
    handled or not, before its handlers run.
    """

    def __init__(self, on_packet: Optional[Callable[[int, bytes], Any]] = None) -> None:
        self.on_packet = on_packet
        self.handlers: Dict[int, List[PacketHandler]] = {}

    def register(self, packet_id: int, handlers: Sequence[PacketHandler]) -> None:
        """Register region-agnostic handlers for a packet id."""
        logger.debug("handler added: CS_%d", packet_id)
        self.handlers[packet_id] = list(handlers)

    def register_localized(
        self,
        packet_id: int,
        localized: LocalizedHandler,
        region: Optional[str] = None,
    ) -> None:
        """Register the handlers for the server's region (AL_REGION by default)."""
        if region is None:
            region = os.environ.get("AL_REGION", "")
        if region not in REGIONS:
            raise ValueError(
                f"could not find region {region} to register localized packet handler"
            )
        handlers = getattr(localized, region.lower())
        if handlers is not None:
            self.handlers[packet_id] = list(handlers)

    def dispatch(self, buffer: bytes, client: Any) -> int:
        """Run the handlers of every packet in buffer, then flush the client.

        Returns the number of packets found. Handler errors are logged and
        do not stop the remaining handlers.
        """
        count = 0
        for packet_id, index, body in iter_packets(buffer):
            count += 1
            client.packet_index = index
            if self.on_packet is not None:
                self.on_packet(packet_id, body)
            handlers = self.handlers.get(packet_id)
            if handlers is None:
                logger.error("missing handler: CS_%d", packet_id)
                continue
            for handler in handlers:
                try:
                    handler(body, client)
                except Exception as exc:  # handler failures must not kill the connection
                    logger.error("handler for CS_%d failed: %s", packet_id, exc)
        client.flush()
        return count