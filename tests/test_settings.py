"""Tests for settings_parser.py."""

import json
import logging

import pytest
from gmnscore.duration import Duration, WHOLE
from gmnscore.settings_parser import ParserSettings, parse_settings_file


def _write(tmp_path, data, name="strict.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestParserSettings:
    def test_defaults(self):
        settings = ParserSettings()
        assert settings.default_octave == 1
        assert settings.default_duration == WHOLE
        assert not settings.fold_ranges
        assert not settings.strict_params
        assert settings.schema_path is None

    def test_make_context(self):
        ctx = ParserSettings(default_octave=4, strict_params=True).make_context()
        assert ctx.octave == 4
        assert ctx.validator.strict_params


class TestParseSettingsFile:
    def test_all_values(self, tmp_path):
        path = _write(tmp_path, {
            "DefaultOctave": 2,
            "DefaultDuration": "1/4",
            "FoldRanges": True,
            "StrictParams": "yes",
        })
        settings = parse_settings_file(path)
        assert settings.name == "strict"
        assert settings.default_octave == 2
        assert settings.default_duration == Duration(1, 4)
        assert settings.fold_ranges
        assert settings.strict_params

    def test_value_wrappers(self, tmp_path):
        path = _write(tmp_path, {
            "DefaultOctave": {"value": "3"},
            "DefaultDuration": {"value": [3, 8]},
        })
        settings = parse_settings_file(path)
        assert settings.default_octave == 3
        assert settings.default_duration == Duration(3, 8)

    def test_bad_values_keep_defaults(self, tmp_path, caplog):
        path = _write(tmp_path, {
            "DefaultOctave": "high",
            "DefaultDuration": "long",
            "FoldRanges": "perhaps",
        })
        with caplog.at_level(logging.WARNING, logger="gmnscore.settings_parser"):
            settings = parse_settings_file(path)
        assert settings.default_octave == 1
        assert settings.default_duration == WHOLE
        assert not settings.fold_ranges
        assert len(caplog.records) == 3

    def test_fractional_octave_ignored(self, tmp_path):
        settings = parse_settings_file(_write(tmp_path, {"DefaultOctave": 2.5}))
        assert settings.default_octave == 1

    def test_relative_schema(self, tmp_path):
        settings = parse_settings_file(_write(tmp_path, {"Schema": "tags.json"}))
        assert settings.schema_path == tmp_path / "tags.json"

    def test_schema_used_by_context(self, tmp_path):
        (tmp_path / "tags.json").write_text(
            json.dumps({"slur": {"type": "range"}}), encoding="utf-8",
        )
        settings = parse_settings_file(_write(tmp_path, {"Schema": "tags.json"}))
        assert len(settings.make_context().definitions) == 1

    def test_not_an_object(self, tmp_path):
        with pytest.raises(ValueError):
            parse_settings_file(_write(tmp_path, [1, 2]))
