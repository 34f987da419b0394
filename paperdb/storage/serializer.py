from __future__ import annotations
import io
import json
import logging
import pickle
import threading
import types
from typing import Any, List, NamedTuple, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

# Persistent ids written for values encoded by a registered handler.
_PID_MARKER = "paperdb.handler"
# Key of the JSON object wrapping a handler payload.
_JSON_TAG_FIELD = "__paperdb__"
# Tag of a user dict that itself contains `_JSON_TAG_FIELD`.
_JSON_DICT_TAG = "paperdb.dict"

_VIEW_TYPES = (
    type({}.keys()),
    type({}.values()),
    type({}.items()),
)


class TypeHandler(Protocol):
    """Converts values of one shape to a plain payload and back.

    The payload returned by `dump` must itself be serializable by the
    serializer the handler is registered on.
    """

    def dump(self, value: Any) -> Any: ...

    def load(self, payload: Any) -> Any: ...


class Serializer(Protocol):
    """Serialize/deserialize Python values for backends that store bytes/text.

    Implementations should be symmetric: `dump` -> bytes, `load` <- bytes.
    """

    def dump(self, value: Any) -> bytes: ...

    def load(self, data: bytes, shape: Optional[type] = None) -> Any: ...

    def register_handler(self, shape: type, handler: TypeHandler, priority: int = 0, tag: Optional[str] = None) -> None: ...


class Registration(NamedTuple):
    shape: type
    handler: TypeHandler
    priority: int
    tag: str
    seq: int


def _default_tag(shape: type) -> str:
    return f"{shape.__module__}.{shape.__qualname__}"


def _check_shape(value: Any, shape: Optional[type]) -> Any:
    if shape is not None and not isinstance(value, shape):
        raise TypeError(f"Expected {shape.__name__}, decoded {type(value).__name__}")
    return value


class HandlerRegistry:
    """Priority-ordered set of type handlers shared by the serializers below.

    Registrations are kept as an immutable tuple that is swapped on every
    change, so lookups during dump/load never need the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._registrations: Tuple[Registration, ...] = ()
        self._seq = 0

    def register_handler(self, shape: type, handler: TypeHandler, priority: int = 0, tag: Optional[str] = None) -> None:
        tag = tag or _default_tag(shape)
        with self._lock:
            self._seq += 1
            kept: List[Registration] = [r for r in self._registrations if r.tag != tag]
            kept.append(Registration(shape, handler, priority, tag, self._seq))
            kept.sort(key=lambda r: (-r.priority, r.seq))
            self._registrations = tuple(kept)
        logger.debug("Registered handler %r for %s (priority %d)", handler, tag, priority)

    def handler_for(self, value: Any) -> Optional[Registration]:
        for reg in self._registrations:
            if isinstance(value, reg.shape):
                return reg
        return None

    def handler_by_tag(self, tag: str) -> Optional[Registration]:
        for reg in self._registrations:
            if reg.tag == tag:
                return reg
        return None


class _Pickler(pickle.Pickler):
    def __init__(self, file, registry: HandlerRegistry) -> None:
        super().__init__(file, protocol=pickle.HIGHEST_PROTOCOL)
        self._registry = registry

    def persistent_id(self, obj: Any) -> Any:
        reg = self._registry.handler_for(obj)
        if reg is None:
            return None
        return (_PID_MARKER, reg.tag, reg.handler.dump(obj))

    def reducer_override(self, obj: Any) -> Any:
        # Views cannot be rebuilt on their own; store the base container.
        if isinstance(obj, types.MappingProxyType):
            return dict, (dict(obj),)
        if isinstance(obj, _VIEW_TYPES):
            return list, (list(obj),)
        return NotImplemented


class _Unpickler(pickle.Unpickler):
    def __init__(self, file, registry: HandlerRegistry) -> None:
        super().__init__(file)
        self._registry = registry

    def persistent_load(self, pid: Any) -> Any:
        if not (isinstance(pid, tuple) and len(pid) == 3 and pid[0] == _PID_MARKER):
            raise pickle.UnpicklingError(f"Unsupported persistent id {pid!r}")
        _, tag, payload = pid
        reg = self._registry.handler_by_tag(tag)
        if reg is None:
            raise pickle.UnpicklingError(f"No handler registered for {tag}")
        return reg.handler.load(payload)


class PickleSerializer(HandlerRegistry):
    """Default serializer using pickle (binary).

    This is a practical default since stored values may be arbitrary Python
    objects, including instances whose constructor takes arguments. Values
    matching a registered handler are stored as the handler's payload.

    Unpickling untrusted data is unsafe; only open books you trust.
    """

    def dump(self, value: Any) -> bytes:
        buf = io.BytesIO()
        _Pickler(buf, self).dump(value)
        return buf.getvalue()

    def load(self, data: bytes, shape: Optional[type] = None) -> Any:
        return _check_shape(_Unpickler(io.BytesIO(data), self).load(), shape)


class JSONSerializer(HandlerRegistry):
    """Serializer using JSON (text). Caller must ensure values are JSON-serializable.

    Handler payloads are wrapped in a tagged object. Views and sets decay to
    lists, other objects are written as their `__dict__`. Plain dicts that
    happen to use the tag field are stored as a tagged list of pairs so they
    read back unchanged.
    """

    def _escape(self, value: Any) -> Any:
        reg = self.handler_for(value)
        if reg is not None:
            return {_JSON_TAG_FIELD: reg.tag, "value": self._escape(reg.handler.dump(value))}
        if isinstance(value, dict):
            if _JSON_TAG_FIELD in value:
                pairs = [[k, self._escape(v)] for k, v in value.items()]
                return {_JSON_TAG_FIELD: _JSON_DICT_TAG, "value": pairs}
            return {k: self._escape(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._escape(v) for v in value]
        return value

    def _default(self, o: Any) -> Any:
        if self.handler_for(o) is not None:
            return self._escape(o)
        if isinstance(o, types.MappingProxyType):
            return self._escape(dict(o))
        if isinstance(o, _VIEW_TYPES + (set, frozenset)):
            return self._escape(list(o))
        if hasattr(o, "__dict__"):
            return self._escape(o.__dict__)
        raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")

    def _object_hook(self, obj: dict) -> Any:
        if _JSON_TAG_FIELD not in obj:
            return obj
        tag = obj[_JSON_TAG_FIELD]
        if tag == _JSON_DICT_TAG:
            return {k: v for k, v in obj["value"]}
        reg = self.handler_by_tag(tag)
        if reg is None:
            raise ValueError(f"No handler registered for {tag}")
        return reg.handler.load(obj["value"])

    def dump(self, value: Any) -> bytes:
        return json.dumps(self._escape(value), default=self._default).encode("utf-8")

    def load(self, data: bytes, shape: Optional[type] = None) -> Any:
        return _check_shape(json.loads(data.decode("utf-8"), object_hook=self._object_hook), shape)


class EncryptedSerializer:
    """Serializer that encrypts payloads using Fernet (symmetric, authenticated).

    Notes:
    - `base_serializer` defaults to pickle and does the actual encoding;
      type handlers are registered on it.
    - For passphrase-derived keys each payload carries its own random salt
      and the PBKDF2 iteration count, so the loader can derive the key.
    - Key rotation is out of scope; one key or password per serializer.
    """

    def __init__(
        self,
        *,
        key: bytes | None = None,
        password: str | None = None,
        iterations: int = 390000,
        base_serializer: Serializer | None = None,
    ) -> None:
        if key is None and password is None:
            raise ValueError("EncryptedSerializer requires either `key` or `password`")
        self._key = key
        self._password = password
        self._iterations = iterations
        self.base_serializer = base_serializer or PickleSerializer()

    def register_handler(self, shape: type, handler: TypeHandler, priority: int = 0, tag: Optional[str] = None) -> None:
        self.base_serializer.register_handler(shape, handler, priority, tag)

    def _derive_key(self, password: str, salt: bytes, iterations: int) -> bytes:
        import base64
        from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
        from cryptography.hazmat.primitives import hashes

        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt,
            iterations=iterations,
        )
        return base64.urlsafe_b64encode(kdf.derive(password.encode("utf-8")))

    def dump(self, value: Any) -> bytes:
        """Serialize and encrypt value, returning a framed JSON blob."""
        import os
        import base64
        from cryptography.fernet import Fernet
        inner = self.base_serializer.dump(value)

        if self._password is not None:
            salt = os.urandom(16)
            f = Fernet(self._derive_key(self._password, salt, self._iterations))
            frame = {
                "v": 1,
                "mode": "password",
                "kdf": "pbkdf2",
                "iterations": self._iterations,
                "salt": base64.urlsafe_b64encode(salt).decode("ascii"),
                "ct": base64.urlsafe_b64encode(f.encrypt(inner)).decode("ascii"),
            }
            return json.dumps(frame).encode("utf-8")

        f = Fernet(self._key)
        frame = {"v": 1, "mode": "key", "ct": base64.urlsafe_b64encode(f.encrypt(inner)).decode("ascii")}
        return json.dumps(frame).encode("utf-8")

    def load(self, data: bytes, shape: Optional[type] = None) -> Any:
        """Parse framed blob, derive key if needed, decrypt and deserialize."""
        import base64
        from cryptography.fernet import Fernet

        frame = json.loads(data.decode("utf-8"))
        mode = frame.get("mode")
        if mode == "password":
            if self._password is None:
                raise ValueError("serializer was not configured with a password")
            salt = base64.urlsafe_b64decode(frame["salt"].encode("ascii"))
            iterations = frame.get("iterations", self._iterations)
            f = Fernet(self._derive_key(self._password, salt, iterations))
        elif mode == "key":
            if self._key is None:
                raise ValueError("serializer was not configured with a key")
            f = Fernet(self._key)
        else:
            raise ValueError("unknown frame format")

        ct = base64.urlsafe_b64decode(frame["ct"].encode("ascii"))
        return self.base_serializer.load(f.decrypt(ct), shape)


def create_serializer(name: str = "pickle", **options: Any) -> Serializer:
    """Build a serializer by name: ``pickle``, ``json`` or ``encrypted``.

    ``encrypted`` accepts ``key``, ``password``, ``iterations`` and ``base``
    (the name of the wrapped serializer, pickle by default).
    """
    if name == "pickle":
        return PickleSerializer()
    if name == "json":
        return JSONSerializer()
    if name == "encrypted":
        base = create_serializer(options.get("base") or "pickle")
        key = options.get("key")
        if isinstance(key, str):
            key = key.encode("ascii")
        kwargs = {"key": key, "password": options.get("password"), "base_serializer": base}
        if options.get("iterations"):
            kwargs["iterations"] = options["iterations"]
        return EncryptedSerializer(**kwargs)
    raise ValueError(f"Unknown serializer {name!r}")
