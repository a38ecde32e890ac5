"""Passive check wire protocol: request line grammar and response framing.

Payloads are single-byte text. Requests are decoded as latin-1 and every
response character is truncated to its low 8 bits when it is put on the wire,
so characters above 0xFF do not survive the trip.
"""
import enum
import logging
import struct
from collections import namedtuple

logger = logging.getLogger(__name__)

NOTSUPPORTED = "ZBX_NOTSUPPORTED"

HEADER = b"ZBXD"
HEADER_VERSION = b"\x01"
# marker, version byte and the 64 bit length
ENVELOPE_SIZE = len(HEADER) + len(HEADER_VERSION) + 8

ENCODING = "latin-1"


class ProtocolVersion(enum.Enum):
    V1_1 = "1.1"
    V1_4 = "1.4"


def resolve_version(value):
    """Map a protocol setting to a ProtocolVersion.

    Unset means 1.4. Anything unrecognised is reported and treated as 1.4.
    """
    if value is None:
        return ProtocolVersion.V1_4
    try:
        return ProtocolVersion(value)
    except ValueError:
        logger.warning("Unsupported protocol '%s', using %s",
                       value, ProtocolVersion.V1_4.value)
        return ProtocolVersion.V1_4


class QueryKind(enum.Enum):
    MANAGED_ATTRIBUTE = "jmx"
    SYSTEM_PROPERTY = "system.property"
    ENVIRONMENT = "system.env"
    PING = "agent.ping"
    VERSION = "agent.version"
    UNKNOWN = None


class Query(namedtuple("Query", "kind object_name attribute_name key")):
    __slots__ = ()

    def __new__(cls, kind, object_name=None, attribute_name=None, key=None):
        return super().__new__(cls, kind, object_name, attribute_name, key)


def _between(line, open_index, close_index):
    if open_index < 0 or close_index <= open_index:
        return ""
    return line[open_index + 1:close_index]


def parse_query(line):
    """Turn one request line into a Query. Never raises."""
    last_open = line.rfind("[")
    last_close = line.rfind("]")

    if line.startswith(QueryKind.MANAGED_ATTRIBUTE.value):
        first_open = line.find("[")
        first_close = line.rfind("]", 0, last_open) if last_open >= 0 else -1
        return Query(QueryKind.MANAGED_ATTRIBUTE,
                     object_name=_between(line, first_open, first_close),
                     attribute_name=_between(line, last_open, last_close))
    if line.startswith(QueryKind.SYSTEM_PROPERTY.value):
        return Query(QueryKind.SYSTEM_PROPERTY,
                     key=_between(line, last_open, last_close))
    if line.startswith(QueryKind.ENVIRONMENT.value):
        return Query(QueryKind.ENVIRONMENT,
                     key=_between(line, last_open, last_close))
    if line == QueryKind.PING.value:
        return Query(QueryKind.PING)
    if line == QueryKind.VERSION.value:
        return Query(QueryKind.VERSION)
    return Query(QueryKind.UNKNOWN)


def to_bytes(text):
    return bytes(ord(c) & 0xFF for c in text)


def encode_response(response, version=None):
    """Frame a response; ``version`` is a ProtocolVersion, "1.1", "1.4" or None."""
    payload = to_bytes(response)
    if resolve_version(version) is ProtocolVersion.V1_1:
        return payload
    return HEADER + HEADER_VERSION + struct.pack("<Q", len(response)) + payload


def decode_response(data):
    """Strip the ZBXD envelope from a reply, if it has one."""
    if data.startswith(HEADER + HEADER_VERSION) and len(data) >= ENVELOPE_SIZE:
        (length,) = struct.unpack("<Q", data[len(HEADER) + 1:ENVELOPE_SIZE])
        data = data[ENVELOPE_SIZE:ENVELOPE_SIZE + length]
    return data.decode(ENCODING)


def hexdump(data):
    return " ".join("%02x" % b for b in data)
