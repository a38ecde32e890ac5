import logging
import select
import socket
import threading

from . import AGENT_VERSION
from .config import Config, DEFAULT_HOST, DEFAULT_PORT
from .protocol import (ENCODING, NOTSUPPORTED, QueryKind, encode_response,
                       hexdump, parse_query)
from .storage import AttributeNotFound, ManagedObjectRegistry, TargetNotFound

logger = logging.getLogger(__name__)

RECV_SIZE = 4096


class Connection:
    """Line oriented reads and raw writes on one accepted socket.

    There is no limit on the length of a request line: a peer that keeps
    sending bytes without a line feed grows the buffer without bound.
    """

    def __init__(self, sock, read_timeout=None):
        self._sock = sock
        self._buffer = bytearray()
        sock.settimeout(read_timeout)

    def receive(self):
        """Read up to the next line feed or end of stream.

        End of stream terminates the line like a line feed does, so a peer
        hanging up mid-line yields whatever it sent so far.
        """
        while True:
            index = self._buffer.find(b"\n")
            if index >= 0:
                line = bytes(self._buffer[:index])
                del self._buffer[:index + 1]
                return line.decode(ENCODING)

            data = self._sock.recv(RECV_SIZE)
            if not data:
                line = bytes(self._buffer)
                self._buffer.clear()
                return line.decode(ENCODING)
            self._buffer += data

    def available(self):
        """True if more request bytes are already here.

        Only looks at what has arrived at the time of the call; a request
        that shows up a moment later is not seen.
        """
        if self._buffer:
            return True
        readable, _, _ = select.select([self._sock], [], [], 0)
        if not readable:
            return False
        # readable with nothing to peek means the peer closed its side
        return bool(self._sock.recv(1, socket.MSG_PEEK))

    def send(self, data):
        self._sock.sendall(data)


def dispatch(query, registry, config):
    kind = query.kind
    if kind is QueryKind.MANAGED_ATTRIBUTE:
        try:
            return registry.lookup(query.object_name, query.attribute_name)
        except TargetNotFound:
            logger.debug("no object named %s", query.object_name,
                         exc_info=True)
            return NOTSUPPORTED
        except AttributeNotFound:
            logger.debug("no attribute named %s on object named %s",
                         query.attribute_name, query.object_name,
                         exc_info=True)
            return NOTSUPPORTED
    elif kind is QueryKind.SYSTEM_PROPERTY:
        logger.debug("system property[%s]", query.key)
        return config.get_property(query.key) or ""
    elif kind is QueryKind.ENVIRONMENT:
        logger.debug("environment[%s]", query.key)
        return config.get_env(query.key) or ""
    elif kind is QueryKind.PING:
        return "1"
    elif kind is QueryKind.VERSION:
        return AGENT_VERSION
    return NOTSUPPORTED


def handle_query(connection, registry, config):
    request = connection.receive()
    logger.debug("received '%s'", request)

    response = dispatch(parse_query(request), registry, config)
    if response is None:
        response = ""

    logger.debug("sending '%s'", response)
    data = encode_response(response, config.protocol_version())
    connection.send(data)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("sent bytes %s", hexdump(data))


def serve_connection(sock, registry, config, addr=None):
    """Answer queries on one connection, then close it.

    Keeps answering while more input is already waiting. Any failure ends
    the connection; it is logged and never raised to the caller.
    """
    try:
        logger.debug("started worker for %s", addr)
        with sock:
            connection = Connection(sock, config.read_timeout)
            while True:
                handle_query(connection, registry, config)
                if not connection.available():
                    break
        logger.debug("worker for %s is done", addr)
    except Exception:
        logger.exception("dropping connection from %s", addr)


class Server:
    poll_interval = 0.5

    def __init__(self, host=DEFAULT_HOST, port=DEFAULT_PORT, registry=None,
                 config=None):
        self.registry = ManagedObjectRegistry() if registry is None else registry
        self.config = Config() if config is None else config
        self._running = threading.Event()
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind((host, port))
        self._socket.listen(5)
        logger.info("Listening on %s:%d", *self.address)

    @property
    def address(self):
        return self._socket.getsockname()[:2]

    def run(self):
        self._running.set()
        try:
            while self._running.is_set():
                readable, _, _ = select.select([self._socket], [], [],
                                               self.poll_interval)
                if not readable:
                    continue
                try:
                    conn, addr = self._socket.accept()
                except OSError:
                    logger.exception("Failed to accept a connection")
                    continue
                logger.info("Connection from %s", addr)
                worker = threading.Thread(target=self.handle_connection,
                                          args=(conn, addr), daemon=True)
                worker.start()
        finally:
            self._socket.close()
            logger.info("Server stopped")

    def stop(self):
        self._running.clear()

    def handle_connection(self, conn, addr=None):
        serve_connection(conn, self.registry, self.config, addr)
