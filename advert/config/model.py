"""
Advert configuration model.

An AdvertConfig is an immutable snapshot built from the parsed config.jsonc
document. Hot reload never mutates a snapshot; it builds a new one and swaps
the reference.

Document shape (keys as written by the plugin host):

    {
      "Interval": 15.0,
      "HtmlDuration": 5,
      "Volume": 0.5,
      "MapsName": {"de_dust2": "Dust II"},
      "AdvertList": [
        {"test1": {"Chat": "test in chat"}},
        {"test6": {"Alert": "test in alert", "Chat": "and in chat"}}
      ]
    }
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

CONFIG_SECTION = "ConfigModel"

DEFAULT_INTERVAL: float = 15.0
DEFAULT_HTML_DURATION: int = 5
DEFAULT_VOLUME: float = 0.5

DEFAULT_MAPS_NAME: Dict[str, str] = {
    "de_dust2": "Dust II",
    "de_mirage": "Mirage",
    "awp_lego_2": "AWP Lego 2",
    "de_inferno": "Inferno",
}


class ConfigError(ValueError):
    """Raised when an advert configuration document is invalid."""


class AdvertLocation(str, Enum):
    """Delivery channel of an advert message."""
    CHAT = "Chat"
    CENTER = "Center"
    ALERT = "Alert"
    HTML = "Html"
    PANEL = "Panel"
    SOUND = "Sound"

    @classmethod
    def parse(cls, value: str) -> "AdvertLocation":
        """Parse a location name case-insensitively."""
        if isinstance(value, str):
            for location in cls:
                if location.value.lower() == value.strip().lower():
                    return location
        valid = ", ".join(location.value for location in cls)
        raise ConfigError(f"Unknown advert location: {value!r} (expected one of {valid})")


@dataclass(frozen=True)
class AdSection:
    """A labelled set of (location, message) entries inside an ad group."""
    label: str
    entries: Tuple[Tuple[AdvertLocation, str], ...]


@dataclass(frozen=True)
class AdGroup:
    """
    One rotation unit.

    Every entry of every section is emitted on the tick that selects the
    group, in document order.
    """
    sections: Tuple[AdSection, ...]

    def iter_entries(self) -> Iterator[Tuple[AdvertLocation, str]]:
        for section in self.sections:
            yield from section.entries

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(section.label for section in self.sections)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AdGroup":
        if not isinstance(data, Mapping):
            raise ConfigError(f"Ad group must be an object, got {type(data).__name__}")

        sections = []
        for label, inner in data.items():
            if not isinstance(inner, Mapping):
                raise ConfigError(f"Ad group '{label}' must map locations to messages")
            entries = []
            for location_name, message in inner.items():
                location = AdvertLocation.parse(location_name)
                if message is None:
                    message = ""
                if not isinstance(message, str):
                    raise ConfigError(
                        f"Ad group '{label}' {location.value} message must be a string, "
                        f"got {type(message).__name__}"
                    )
                entries.append((location, message))
            sections.append(AdSection(label=str(label), entries=tuple(entries)))
        return cls(sections=tuple(sections))

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {
            section.label: {location.value: message for location, message in section.entries}
            for section in self.sections
        }


def _default_advert_list() -> Tuple[AdGroup, ...]:
    return tuple(AdGroup.from_dict(group) for group in DEFAULT_ADVERT_LIST)


DEFAULT_ADVERT_LIST = [
    {"test1": {"Chat": "test in chat"}},
    {"test2": {"Center": "test in center"}},
    {"test3": {"Alert": "test in alert"}},
    {"test4": {"Html": "<b><font color='lime'>test in</font> <font color='white'>html</font></b>"}},
    {"test5": {"Panel": "<b><font color='lime'>test in</font> <font color='white'>panel</font></b>"}},
    {"test6": {"Alert": "test in alert", "Chat": "and in chat"}},
    {"test7": {"Sound": "test_in_audio.mp3"}},
]


@dataclass(frozen=True)
class AdvertConfig:
    """Immutable advert configuration snapshot."""

    interval: float = DEFAULT_INTERVAL
    html_duration: int = DEFAULT_HTML_DURATION
    volume: float = DEFAULT_VOLUME
    maps_name: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_MAPS_NAME))
    )
    advert_list: Tuple[AdGroup, ...] = field(default_factory=_default_advert_list)

    def __post_init__(self):
        if not math.isfinite(self.interval) or self.interval <= 0:
            raise ConfigError(f"Interval must be a finite number > 0 seconds, got {self.interval}")
        if self.html_duration < 0:
            raise ConfigError(f"HtmlDuration must be >= 0 seconds, got {self.html_duration}")
        if not 0.0 <= self.volume <= 1.0:
            raise ConfigError(f"Volume must be between 0 and 1, got {self.volume}")

    @property
    def html_duration_ms(self) -> int:
        return self.html_duration * 1000

    def map_display_name(self, map_id: str) -> str:
        """Return the configured alias for a map, or the map id itself."""
        return self.maps_name.get(map_id, map_id)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AdvertConfig":
        """
        Build a snapshot from a parsed config document.

        Accepts either the bare model or a document wrapped in a
        "ConfigModel" section. Missing keys fall back to the defaults.

        Raises:
            ConfigError: If any field has the wrong type or an invalid value
        """
        if not isinstance(data, Mapping):
            raise ConfigError(f"Config document must be an object, got {type(data).__name__}")
        if CONFIG_SECTION in data:
            data = data[CONFIG_SECTION]
            if not isinstance(data, Mapping):
                raise ConfigError(f"'{CONFIG_SECTION}' section must be an object")

        kwargs: Dict[str, Any] = {}

        interval = _lookup(data, "Interval")
        if interval is not None:
            kwargs["interval"] = _as_number(interval, "Interval")

        html_duration = _lookup(data, "HtmlDuration")
        if html_duration is not None:
            if isinstance(html_duration, bool) or not isinstance(html_duration, int):
                raise ConfigError(f"Invalid HtmlDuration: {html_duration!r} (must be an integer)")
            kwargs["html_duration"] = html_duration

        volume = _lookup(data, "Volume")
        if volume is not None:
            kwargs["volume"] = _as_number(volume, "Volume")

        maps_name = _lookup(data, "MapsName")
        if maps_name is not None:
            if not isinstance(maps_name, Mapping):
                raise ConfigError("MapsName must be an object of map id -> display name")
            kwargs["maps_name"] = MappingProxyType({str(k): str(v) for k, v in maps_name.items()})

        advert_list = _lookup(data, "AdvertList")
        if advert_list is not None:
            if not isinstance(advert_list, list):
                raise ConfigError("AdvertList must be an array of ad groups")
            kwargs["advert_list"] = tuple(AdGroup.from_dict(group) for group in advert_list)

        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the config document shape."""
        return {
            "Interval": self.interval,
            "HtmlDuration": self.html_duration,
            "Volume": self.volume,
            "MapsName": dict(self.maps_name),
            "AdvertList": [group.to_dict() for group in self.advert_list],
        }


def _lookup(data: Mapping[str, Any], key: str) -> Optional[Any]:
    """Case-insensitive key lookup, matching the host's configuration binder."""
    if key in data:
        return data[key]
    lowered = key.lower()
    for candidate, value in data.items():
        if isinstance(candidate, str) and candidate.lower() == lowered:
            return value
    return None


def _as_number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"Invalid {name}: {value!r} (must be a number)")
    try:
        number = float(value)
    except OverflowError:
        number = math.inf
    if not math.isfinite(number):
        raise ConfigError(f"Invalid {name}: {value!r} (must be finite)")
    return number
