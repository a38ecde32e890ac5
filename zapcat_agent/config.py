import getpass
import os
import platform

from .protocol import resolve_version

PROTOCOL_PROPERTY = "zapcat.protocol"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 10052


def _user_name():
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return ""


def platform_properties():
    """The properties every agent process starts out with."""
    return {
        "os.name": platform.system(),
        "os.arch": platform.machine(),
        "os.version": platform.release(),
        "python.version": platform.python_version(),
        "python.implementation": platform.python_implementation(),
        "user.name": _user_name(),
        "user.dir": os.getcwd(),
        "user.home": os.path.expanduser("~"),
        "file.separator": os.sep,
        "path.separator": os.pathsep,
        "line.separator": os.linesep,
    }


class Config:
    """Process-wide settings shared by every connection.

    Nothing here is cached by the readers: the protocol version, properties
    and environment are looked up again for each request, so changes made
    while the agent runs apply to the next response.

    ``read_timeout`` is the number of seconds a worker waits for request
    bytes before giving up on the connection. ``None`` means wait forever,
    in which case a peer that never sends a line feed holds its worker
    indefinitely.
    """

    def __init__(self, properties=None, environ=None, read_timeout=None):
        self.properties = platform_properties()
        if properties:
            self.properties.update(properties)
        self.environ = os.environ if environ is None else environ
        self.read_timeout = read_timeout

    def get_property(self, key):
        return self.properties.get(key)

    def set_property(self, key, value):
        self.properties[key] = value

    def clear_property(self, key):
        self.properties.pop(key, None)

    def get_env(self, key):
        return self.environ.get(key)

    def protocol_version(self):
        return resolve_version(self.get_property(PROTOCOL_PROPERTY))
