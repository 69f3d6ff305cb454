"""
Template renderer for advert messages.

Replaces {TAG} placeholders with live server values and chat color codes.

Supported tags:
- {IP}, {PORT}, {SERVERNAME}: server address and name
- {DATE} (DD-MM-YYYY), {TIME} (HH:MM:SS)
- {PL}: connected player count
- {MAP}: current map, translated through the MapsName aliases
- {DEFAULT}, {WHITE}, {RED}, ... : chat color codes

Rendering is one left-to-right pass over the raw message. Values inserted for
a tag are never scanned again, and unknown tags are left as written. Literal
newlines become U+2029 (paragraph separator) in every message, with or
without tags.
"""

import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Dict, Optional

from advert.config.model import AdvertConfig
from advert.host.interfaces import ConVarAccessor, EngineInfo, PlayerDirectory

PARAGRAPH_SEPARATOR = "\u2029"

DATE_FORMAT = "%d-%m-%Y"
TIME_FORMAT = "%H:%M:%S"

UNKNOWN_SERVER_NAME = "Unknown"

# Engine chat color control codes
COLOR_CODES: Dict[str, str] = {
    "DEFAULT": "\x01",
    "WHITE": "\x01",
    "DARKRED": "\x02",
    "GREEN": "\x04",
    "LIGHTYELLOW": "\x09",
    "LIGHTBLUE": "\x0B",
    "OLIVE": "\x05",
    "LIME": "\x06",
    "RED": "\x07",
    "LIGHTPURPLE": "\x03",
    "PURPLE": "\x0E",
    "GREY": "\x08",
    "YELLOW": "\x09",
    "GOLD": "\x10",
    "SILVER": "\x0A",
    "BLUE": "\x0B",
    "DARKBLUE": "\x0C",
    "BLUEGREY": "\x0A",
    "MAGENTA": "\x0E",
    "LIGHTRED": "\x0F",
    "ORANGE": "\x10",
}

_TOKEN_PATTERN = re.compile(r"\{([A-Z]+)\}|\n")


class RenderContext(ABC):
    """Live server values used by message templates."""

    @abstractmethod
    def server_ip(self) -> str:
        ...

    @abstractmethod
    def host_port(self) -> int:
        ...

    @abstractmethod
    def player_count(self) -> int:
        ...

    @abstractmethod
    def map_name(self) -> str:
        ...

    @abstractmethod
    def host_name(self) -> Optional[str]:
        ...

    def now(self) -> datetime:
        return datetime.now()


class HostRenderContext(RenderContext):
    """RenderContext backed by the host's engine, console variables and players."""

    def __init__(
        self,
        engine: EngineInfo,
        convars: ConVarAccessor,
        players: PlayerDirectory,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.engine = engine
        self.convars = convars
        self.players = players
        self._clock = clock

    def server_ip(self) -> str:
        return self.engine.server_ip

    def host_port(self) -> int:
        port = self.convars.find_int("hostport")
        return port if port is not None else 0

    def player_count(self) -> int:
        return self.players.player_count

    def map_name(self) -> str:
        return self.engine.map_name

    def host_name(self) -> Optional[str]:
        return self.convars.find_str("hostname")

    def now(self) -> datetime:
        return self._clock()


class TemplateRenderer:
    """
    Renders advert messages.

    Stateless apart from the tag table; safe to share between threads.
    """

    def render(self, raw_message: str, config: AdvertConfig, context: RenderContext) -> str:
        """
        Render a raw advert message.

        Args:
            raw_message: Message as written in the config
            config: Current config snapshot (for MapsName aliases)
            context: Live server values

        Returns:
            Rendered message
        """
        if not raw_message:
            return raw_message

        if "{" not in raw_message:
            return raw_message.replace("\n", PARAGRAPH_SEPARATOR)

        values: Dict[str, str] = {}
        now: Optional[datetime] = None

        def resolve(tag: str) -> Optional[str]:
            nonlocal now
            if tag == "IP":
                return context.server_ip()
            if tag == "PORT":
                return str(context.host_port())
            if tag in ("DATE", "TIME"):
                if now is None:
                    now = context.now()
                return now.strftime(DATE_FORMAT if tag == "DATE" else TIME_FORMAT)
            if tag == "PL":
                return str(context.player_count())
            if tag == "MAP":
                return config.map_display_name(context.map_name())
            if tag == "SERVERNAME":
                name = context.host_name()
                return name if name is not None else UNKNOWN_SERVER_NAME
            return COLOR_CODES.get(tag)

        def substitute(match: "re.Match[str]") -> str:
            tag = match.group(1)
            if tag is None:
                return PARAGRAPH_SEPARATOR
            if tag not in values:
                value = resolve(tag)
                if value is None:
                    return match.group(0)
                values[tag] = value
            return values[tag]

        return _TOKEN_PATTERN.sub(substitute, raw_message)
