"""
JSON-with-comments configuration provider for Advert.

Loads config.jsonc into an AdvertConfig snapshot, writes the default document
when the file is missing, and watches the file for changes so the broadcaster
can hot reload without a restart.

Change notifications carry the new snapshot. A document that fails to parse or
validate is logged and ignored; listeners keep the previous snapshot.
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from advert.config.model import CONFIG_SECTION, AdvertConfig, ConfigError

logger = logging.getLogger(__name__)

ConfigListener = Callable[[AdvertConfig], None]


def strip_jsonc(text: str) -> str:
    """
    Convert JSON-with-comments to plain JSON.

    Removes // line comments, /* block */ comments and trailing commas before
    a closing bracket. String literals are left untouched.
    """
    return _remove_trailing_commas(_remove_comments(text))


def _remove_comments(text: str) -> str:
    out: List[str] = []
    i = 0
    length = len(text)
    in_string = False
    while i < length:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < length:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = length if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end == -1:
                raise ConfigError("Unterminated block comment in config")
            # Keep line numbers stable for json error messages
            out.append("\n" * text.count("\n", i, end))
            i = end + 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _remove_trailing_commas(text: str) -> str:
    out: List[str] = []
    in_string = False
    i = 0
    length = len(text)
    while i < length:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < length:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
            out.append(ch)
        elif ch == ",":
            j = i + 1
            while j < length and text[j].isspace():
                j += 1
            if j >= length or text[j] not in "}]":
                out.append(ch)
        else:
            out.append(ch)
        i += 1
    return "".join(out)


def parse_config_text(text: str) -> AdvertConfig:
    """
    Parse a config.jsonc document.

    Raises:
        ConfigError: If the document is not valid JSON or fails validation
    """
    try:
        data = json.loads(strip_jsonc(text))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid config JSON: {e}") from e
    return AdvertConfig.from_dict(data)


def load_config_file(path: Path) -> AdvertConfig:
    """
    Load a config.jsonc file.

    Raises:
        ConfigError: If the file cannot be read or is invalid
    """
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    return parse_config_text(text)


class JsoncConfigProvider:
    """
    Configuration provider backed by a config.jsonc file.

    Call load() once at startup, then start() to begin watching the file.
    Listeners registered with on_change() are called from the watcher thread
    with each new snapshot.
    """

    def __init__(self, path: Path, poll_interval_sec: float = 2.0):
        """
        Initialize config provider.

        Args:
            path: Path to config.jsonc
            poll_interval_sec: How often the watcher checks the file (seconds)
        """
        if poll_interval_sec <= 0:
            raise ValueError(f"Poll interval must be > 0, got {poll_interval_sec}")

        self.path = Path(path)
        self.poll_interval_sec = poll_interval_sec

        self._lock = threading.Lock()
        self._current: Optional[AdvertConfig] = None
        self._listeners: List[ConfigListener] = []
        self._last_signature: Optional[Tuple[int, int]] = None

        self._shutdown_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def current(self) -> AdvertConfig:
        """Current snapshot. load() must have been called."""
        with self._lock:
            if self._current is None:
                raise RuntimeError("Config has not been loaded")
            return self._current

    def initialize_default(self) -> bool:
        """
        Write the default document if the config file does not exist.

        Returns:
            True if a file was written
        """
        if self.path.exists():
            return False

        self.path.parent.mkdir(parents=True, exist_ok=True)
        document = {CONFIG_SECTION: AdvertConfig().to_dict()}
        self.path.write_text(json.dumps(document, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        logger.info(f"[CONFIG] Wrote default config to {self.path}")
        return True

    def load(self) -> AdvertConfig:
        """
        Load the config file, creating it with defaults when missing.

        Raises:
            ConfigError: If the file is invalid
        """
        self.initialize_default()
        signature = self._signature()
        config = load_config_file(self.path)
        with self._lock:
            self._current = config
            self._last_signature = signature
        logger.info(
            f"[CONFIG] Loaded {self.path} "
            f"(interval={config.interval}s, groups={len(config.advert_list)})"
        )
        return config

    def on_change(self, listener: ConfigListener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Function that removes the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def remove() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    def check_for_changes(self) -> bool:
        """
        Reload the file if it changed since the last load.

        Returns:
            True if a new snapshot was published
        """
        signature = self._signature()
        with self._lock:
            if signature is None or signature == self._last_signature:
                return False
            self._last_signature = signature

        try:
            config = load_config_file(self.path)
        except ConfigError as e:
            logger.error(f"[CONFIG] Reload of {self.path} rejected, keeping previous config: {e}")
            return False

        self.publish(config)
        return True

    def publish(self, config: AdvertConfig) -> None:
        """Swap the current snapshot and notify listeners."""
        with self._lock:
            self._current = config
            listeners = list(self._listeners)

        logger.info(
            f"[CONFIG] Config changed (interval={config.interval}s, groups={len(config.advert_list)})"
        )
        for listener in listeners:
            try:
                listener(config)
            except Exception as e:
                logger.error(f"[CONFIG] Config change listener failed: {e}", exc_info=True)

    def start(self) -> None:
        """Start the file watcher thread."""
        if self._thread is not None and self._thread.is_alive():
            logger.warning("[CONFIG] Watcher already running, ignoring duplicate start() call")
            return
        self._shutdown_event.clear()
        self._thread = threading.Thread(target=self._watch_loop, name="AdvertConfigWatcher", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        """Stop the file watcher thread."""
        self._shutdown_event.set()
        thread = self._thread
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("[CONFIG] Watcher thread did not stop within timeout")
        self._thread = None

    def _watch_loop(self) -> None:
        logger.debug(f"[CONFIG] Watching {self.path} every {self.poll_interval_sec}s")
        while not self._shutdown_event.wait(timeout=self.poll_interval_sec):
            try:
                self.check_for_changes()
            except Exception as e:
                logger.error(f"[CONFIG] Unexpected error while watching config: {e}", exc_info=True)
        logger.debug("[CONFIG] Config watcher stopped")

    def _signature(self) -> Optional[Tuple[int, int]]:
        try:
            stat = os.stat(self.path)
        except OSError:
            return None
        return (stat.st_mtime_ns, stat.st_size)
