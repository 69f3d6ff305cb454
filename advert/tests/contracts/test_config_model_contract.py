"""
Contract tests for the advert config model.

- Missing keys fall back to defaults
- Keys and locations are matched case-insensitively
- Optional "ConfigModel" section wrapper
- Invalid values raise ConfigError
"""

import pytest

from advert.config.model import (
    DEFAULT_MAPS_NAME,
    AdGroup,
    AdvertConfig,
    AdvertLocation,
    ConfigError,
)


class TestDefaults:

    def test_empty_document_uses_defaults(self):
        config = AdvertConfig.from_dict({})

        assert config.interval == 15.0
        assert config.html_duration == 5
        assert config.html_duration_ms == 5000
        assert config.volume == 0.5
        assert dict(config.maps_name) == DEFAULT_MAPS_NAME
        assert len(config.advert_list) == 7

    def test_default_list_covers_every_location(self):
        locations = {location for group in AdvertConfig().advert_list for location, _ in group.iter_entries()}

        assert locations == set(AdvertLocation)

    def test_maps_name_is_read_only(self):
        with pytest.raises(TypeError):
            AdvertConfig().maps_name["de_nuke"] = "Nuke"


class TestParsing:

    def test_full_document(self):
        config = AdvertConfig.from_dict({
            "Interval": 30,
            "HtmlDuration": 3,
            "Volume": 1,
            "MapsName": {"de_nuke": "Nuke"},
            "AdvertList": [
                {"welcome": {"Chat": "hello", "Alert": "hey"}},
                {"sound": {"Sound": "ding.mp3"}},
            ],
        })

        assert config.interval == 30.0
        assert config.html_duration == 3
        assert config.volume == 1.0
        assert config.map_display_name("de_nuke") == "Nuke"
        assert config.map_display_name("de_dust2") == "de_dust2"
        assert list(config.advert_list[0].iter_entries()) == [
            (AdvertLocation.CHAT, "hello"),
            (AdvertLocation.ALERT, "hey"),
        ]
        assert config.advert_list[1].labels == ("sound",)

    def test_config_model_section_is_unwrapped(self):
        config = AdvertConfig.from_dict({"ConfigModel": {"Interval": 5, "AdvertList": []}})

        assert config.interval == 5.0
        assert config.advert_list == ()

    def test_keys_are_case_insensitive(self):
        config = AdvertConfig.from_dict({"interval": 9, "advertlist": [{"g": {"chat": "x", "HTML": "y"}}]})

        assert config.interval == 9.0
        assert [location for location, _ in config.advert_list[0].iter_entries()] == [
            AdvertLocation.CHAT,
            AdvertLocation.HTML,
        ]

    def test_null_message_becomes_empty(self):
        group = AdGroup.from_dict({"g": {"Chat": None}})

        assert list(group.iter_entries()) == [(AdvertLocation.CHAT, "")]

    def test_to_dict_round_trips_document_shape(self):
        document = {
            "Interval": 20.0,
            "HtmlDuration": 2,
            "Volume": 0.3,
            "MapsName": {"de_nuke": "Nuke"},
            "AdvertList": [{"g": {"Chat": "hi", "Panel": "bye"}}],
        }

        assert AdvertConfig.from_dict(document).to_dict() == document


class TestValidation:

    @pytest.mark.parametrize("document", [
        {"Interval": 0},
        {"Interval": -3},
        {"Interval": "fast"},
        {"Interval": True},
        {"Interval": float("nan")},
        {"Interval": float("inf")},
        {"Interval": float("-inf")},
        {"Interval": 10 ** 400},
        {"HtmlDuration": -1},
        {"HtmlDuration": 2.5},
        {"Volume": 1.5},
        {"Volume": -0.1},
        {"Volume": float("nan")},
        {"Volume": float("inf")},
        {"MapsName": ["de_dust2"]},
        {"AdvertList": {"g": {"Chat": "x"}}},
        {"AdvertList": ["not a group"]},
        {"AdvertList": [{"g": "not a section"}]},
        {"AdvertList": [{"g": {"Radio": "x"}}]},
        {"AdvertList": [{"g": {"Chat": 5}}]},
        {"ConfigModel": []},
    ])
    def test_invalid_documents_rejected(self, document):
        with pytest.raises(ConfigError):
            AdvertConfig.from_dict(document)

    def test_non_object_document_rejected(self):
        with pytest.raises(ConfigError):
            AdvertConfig.from_dict([])

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)

    def test_unknown_location_names_valid_ones(self):
        with pytest.raises(ConfigError, match="Chat"):
            AdvertLocation.parse("Radio")

    @pytest.mark.parametrize("interval", [float("nan"), float("inf")])
    def test_non_finite_interval_rejected_by_constructor(self, interval):
        with pytest.raises(ConfigError):
            AdvertConfig(interval=interval)
