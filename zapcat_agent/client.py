import socket

from .config import DEFAULT_PORT
from .protocol import decode_response, to_bytes


def query(host, item, port=DEFAULT_PORT, timeout=10.0):
    """Run one passive check against an agent and return the value."""
    with socket.create_connection((host, port), timeout=timeout) as s:
        s.sendall(to_bytes(item) + b"\n")
        chunks = []
        while True:
            data = s.recv(1024)
            if not data:
                break
            chunks.append(data)
    return decode_response(b"".join(chunks))
