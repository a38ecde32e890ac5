import gc
import os
import platform
import threading
import time
from collections.abc import Mapping


class TargetNotFound(LookupError):
    """No managed object is registered under the requested name."""


class AttributeNotFound(LookupError):
    """The managed object exists but has no such attribute."""


class ManagedObjectRegistry:
    def __init__(self):
        self._objects = {}
        self._lock = threading.Lock()

    def register(self, object_name, obj):
        with self._lock:
            self._objects[object_name] = obj

    def unregister(self, object_name):
        with self._lock:
            if object_name in self._objects:
                del self._objects[object_name]
                return True
            return False

    def names(self):
        with self._lock:
            return sorted(self._objects)

    def lookup(self, object_name, attribute_name):
        with self._lock:
            try:
                obj = self._objects[object_name]
            except KeyError:
                raise TargetNotFound(object_name) from None

        if isinstance(obj, Mapping):
            if attribute_name not in obj:
                raise AttributeNotFound(attribute_name)
            value = obj[attribute_name]
        else:
            if attribute_name.startswith("_") or not hasattr(obj, attribute_name):
                raise AttributeNotFound(attribute_name)
            value = getattr(obj, attribute_name)

        if callable(value):
            value = value()
        if value is None:
            return ""
        return str(value)


def _load_average():
    try:
        return os.getloadavg()[0]
    except (AttributeError, OSError):
        return -1.0


def platform_registry(start_time=None):
    """A registry holding the interpreter's own managed objects."""
    start_time = time.time() if start_time is None else start_time
    registry = ManagedObjectRegistry()
    registry.register("python.lang:type=Runtime", {
        "Name": lambda: f"{os.getpid()}@{platform.node()}",
        "Pid": os.getpid,
        "StartTime": int(start_time * 1000),
        "Uptime": lambda: int((time.time() - start_time) * 1000),
        "VmVersion": platform.python_version(),
        "VmVendor": platform.python_implementation(),
    })
    registry.register("python.lang:type=Threading", {
        "ThreadCount": threading.active_count,
        "DaemonThreadCount":
            lambda: sum(1 for t in threading.enumerate() if t.daemon),
    })
    registry.register("python.lang:type=GarbageCollector", {
        "CollectionCount": lambda: sum(s["collections"] for s in gc.get_stats()),
        "ObjectCount": lambda: len(gc.get_objects()),
    })
    registry.register("python.lang:type=OperatingSystem", {
        "Name": platform.system(),
        "Arch": platform.machine(),
        "AvailableProcessors": os.cpu_count,
        "SystemLoadAverage": _load_average,
    })
    return registry
