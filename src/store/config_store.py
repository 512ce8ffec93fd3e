"""
propstore - Configuration Store

Process-wide repository of string key/value settings backed by a
property file.

Patterns Applied:
- Singleton with lazy initialization: get_instance() / reset_instance()
- One RLock per store; every map access goes through it, so callers never
  observe a half-applied clear, merge or save snapshot
- Values stored as raw strings; typed getters re-parse on every call

Lifecycle:
    The shared store is created on the first get_instance() call and tries
    to load the default file (``~/.<app_name>``). A failing default load is
    treated as "no prior configuration" and leaves the store empty.

Usage:
    store = ConfigStore.get_instance()
    store.set("font.size", "12")
    size = store.get_int_or_default("font.size", 10)
    store.save_default()
"""

from __future__ import annotations

import os
import re
import shutil
import tempfile
import threading
from pathlib import Path
from typing import IO, Any, ClassVar, Final

from src.core.config import Settings, get_settings
from src.core.exceptions import ConfigError
from src.core.logging import get_logger
from src.store.properties import FILE_ENCODING, format_properties, parse_properties

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

INT_BITS: Final[int] = 32
LONG_BITS: Final[int] = 64

_INTEGER_RE: Final[re.Pattern[str]] = re.compile(r"[+-]?[0-9]+")


_UMASK_LOCK: Final[threading.Lock] = threading.Lock()


def _current_umask() -> int:
    """Return the process umask (reading it requires setting it)."""
    with _UMASK_LOCK:
        mask = os.umask(0)
        os.umask(mask)
    return mask


def _parse_integer(key: str, value: str, bits: int) -> int:
    """Parse a signed decimal integer that must fit in ``bits`` bits."""
    if not _INTEGER_RE.fullmatch(value):
        raise ConfigError(f"Property '{key}' is not a valid integer: {value!r}")
    number = int(value)
    limit = 1 << (bits - 1)
    if not -limit <= number < limit:
        raise ConfigError(
            f"Property '{key}' is out of range for a {bits}-bit integer: {value!r}"
        )
    return number


class ConfigStore:
    """Thread-safe key/value property store.

    Instances are independent; use get_instance() for the process-wide
    shared store and construct directly for isolated stores (tests).

    Attributes:
        default_path: Well-known file used by load_default()/save_default().
        header_comment: Comment written as the first line of saved files.
    """

    _instance: ClassVar[ConfigStore | None] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(
        self,
        default_path: str | Path | None = None,
        *,
        settings: Settings | None = None,
        load_default: bool = False,
    ) -> None:
        """Initialize an empty store.

        Args:
            default_path: Override for the well-known property file.
            settings: Settings providing the default path and header comment.
            load_default: Try load_default() now; ConfigError is swallowed.
        """
        settings = settings or get_settings()
        self.default_path = Path(default_path) if default_path else settings.default_path
        self.header_comment = settings.header_comment
        self._entries: dict[str, str] = {}
        self._lock = threading.RLock()

        if load_default:
            try:
                self.load_default()
            except ConfigError as e:
                logger.debug(
                    "default_properties_unavailable",
                    path=self.default_path,
                    error=str(e),
                )

    # -------------------------------------------------------------------------
    # Singleton access
    # -------------------------------------------------------------------------

    @classmethod
    def get_instance(cls, settings: Settings | None = None) -> ConfigStore:
        """Get the process-wide shared store.

        Creates it on first call (loading the default file if possible) and
        returns the same instance afterwards.

        Args:
            settings: Optional settings override (only used on first call)

        Returns:
            Shared ConfigStore instance
        """
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls(settings=settings, load_default=True)
                    logger.info(
                        "config_store_initialized",
                        path=cls._instance.default_path,
                        count=len(cls._instance),
                    )
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the shared store so the next get_instance() creates a new one."""
        with cls._instance_lock:
            cls._instance = None

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _merge(self, entries: dict[str, str], source: str | Path) -> None:
        with self._lock:
            self._entries.update(entries)
        logger.info("properties_loaded", path=source, count=len(entries))

    def load_from_path(self, path: str | Path | None) -> None:
        """Load properties from a file and merge them into the store.

        Keys in the file overwrite existing keys; other keys are untouched.

        Args:
            path: Property file to read.

        Raises:
            ConfigError: Path is missing, the file is not a readable regular
                file, or reading/parsing fails.
        """
        if path is None or str(path) == "":
            raise ConfigError("Property filename is missing!")
        file_path = Path(path)
        if not file_path.is_file() or not os.access(file_path, os.R_OK):
            raise ConfigError(f"Property file doesn't exist or is not readable: {file_path}")

        try:
            text = file_path.read_text(encoding=FILE_ENCODING)
        except OSError as e:
            raise ConfigError(f"Properties cannot be loaded from {file_path}: {e}") from e

        self._merge(parse_properties(text), file_path)

    def load_from_stream(self, stream: IO[Any] | None) -> None:
        """Load properties from an open stream and merge them into the store.

        Text streams are read as-is, binary streams are decoded as
        ISO-8859-1. The stream is left open.

        Args:
            stream: Readable text or binary stream.

        Raises:
            ConfigError: Stream is missing or unreadable, or parsing fails.
        """
        if stream is None:
            raise ConfigError("Property stream is missing!")
        if not callable(getattr(stream, "read", None)):
            raise ConfigError("Properties cannot be loaded: object is not a readable stream")

        try:
            readable = getattr(stream, "readable", None)
            if callable(readable) and not readable():
                raise ConfigError("Properties cannot be loaded: stream is not readable")
            data = stream.read()
        except (OSError, ValueError) as e:
            raise ConfigError(f"Properties cannot be loaded: {e}") from e

        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode(FILE_ENCODING)
        elif not isinstance(data, str):
            raise ConfigError("Properties cannot be loaded: stream returned no text")

        self._merge(parse_properties(data), str(getattr(stream, "name", "<stream>")))

    def load_default(self) -> None:
        """Load properties from the default file.

        Raises:
            ConfigError: As for load_from_path().
        """
        self.load_from_path(self.default_path)

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def get(self, key: str) -> tuple[str, bool]:
        """Return ``(value, True)`` for a stored key, ``("", False)`` otherwise."""
        with self._lock:
            if key in self._entries:
                return self._entries[key], True
        return "", False

    def get_or_default(self, key: str, default: str) -> str:
        with self._lock:
            return self._entries.get(key, default)

    def get_int(self, key: str) -> int:
        """Return the value as a 32-bit integer, 0 when the key is absent.

        Raises:
            ConfigError: Value is present but not a valid 32-bit integer.
        """
        return self.get_int_or_default(key, 0)

    def get_int_or_default(self, key: str, default: int) -> int:
        """Return the value as a 32-bit integer, ``default`` when absent.

        Raises:
            ConfigError: Value is present but not a valid 32-bit integer.
        """
        with self._lock:
            if key not in self._entries:
                return default
            value = self._entries[key]
        return _parse_integer(key, value, INT_BITS)

    def get_long(self, key: str) -> int:
        """Return the value as a 64-bit integer, 0 when the key is absent.

        Raises:
            ConfigError: Value is present but not a valid 64-bit integer.
        """
        return self.get_long_or_default(key, 0)

    def get_long_or_default(self, key: str, default: int) -> int:
        with self._lock:
            if key not in self._entries:
                return default
            value = self._entries[key]
        return _parse_integer(key, value, LONG_BITS)

    def get_bool(self, key: str) -> bool:
        """Return True only if the value equals "true" ignoring case."""
        return self.get_bool_or_default(key, False)

    def get_bool_or_default(self, key: str, default: bool) -> bool:
        """Return the value as a boolean, ``default`` when the key is absent.

        Parsing is permissive: any present value other than "true"
        (case-insensitive) is False, never an error.
        """
        with self._lock:
            if key not in self._entries:
                return default
            value = self._entries[key]
        return value.lower() == "true"

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def check_mandatory(self, key: str) -> None:
        """Fail if a required key is missing.

        Raises:
            ConfigError: Key is not present.
        """
        with self._lock:
            if key in self._entries:
                return
        raise ConfigError(f"Mandatory property '{key}' is missing!")

    def snapshot(self) -> dict[str, str]:
        """Return a consistent copy of all entries."""
        with self._lock:
            return dict(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def set(self, key: str, value: str | None) -> None:
        """Insert or replace a property; a None value is stored as ""."""
        if key is None:
            raise ConfigError("Property key is missing!")
        with self._lock:
            self._entries[key] = "" if value is None else value

    def set_bool(self, key: str, value: bool) -> None:
        self.set(key, "true" if value else "false")

    def set_from_expression(self, expr: str | None) -> None:
        """Set a property from a ``key=value`` expression.

        The expression is split on the first ``=``, so the value may contain
        further ``=`` characters.

        Raises:
            ConfigError: Expression is None or contains no ``=``.
        """
        if expr is None or "=" not in expr:
            raise ConfigError(f"Wrong property expression (expected key=value): {expr!r}")
        key, value = expr.split("=", 1)
        self.set(key, value)

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove all properties."""
        with self._lock:
            self._entries.clear()
        logger.debug("properties_cleared")

    # -------------------------------------------------------------------------
    # Saving
    # -------------------------------------------------------------------------

    def save_to_path(self, path: str | Path | None) -> None:
        """Write all properties to a file, replacing it atomically.

        The content is written to a temporary file in the target directory
        and moved over the target, so no reader sees a partial file.
        Symlinks are followed and an existing file keeps its permissions;
        a new file gets the default mode allowed by the umask.

        Args:
            path: Destination property file.

        Raises:
            ConfigError: Path is missing or the file cannot be written.
        """
        if path is None or str(path) == "":
            raise ConfigError("Property filename is missing!")
        try:
            file_path = Path(path).resolve()
        except (OSError, RuntimeError) as e:
            raise ConfigError(f"Properties cannot be stored to {path}: {e}") from e

        with self._lock:
            count = len(self._entries)
            text = format_properties(self._entries, comment=self.header_comment)

        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding=FILE_ENCODING,
                newline="",
                dir=file_path.parent,
                prefix=f".{file_path.name}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                fh.write(text)
            if file_path.is_file():
                shutil.copymode(file_path, tmp_name)
            else:
                os.chmod(tmp_name, 0o666 & ~_current_umask())
            os.replace(tmp_name, file_path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise ConfigError(f"Properties cannot be stored to {file_path}: {e}") from e

        logger.info("properties_saved", path=file_path, count=count)

    def save_default(self) -> None:
        """Write all properties to the default file.

        Raises:
            ConfigError: As for save_to_path().
        """
        self.save_to_path(self.default_path)


def get_config_store(settings: Settings | None = None) -> ConfigStore:
    """Get the process-wide shared store (alias of ConfigStore.get_instance)."""
    return ConfigStore.get_instance(settings=settings)
