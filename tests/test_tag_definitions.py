"""Tests for the tag schema and validator."""

import json

import pytest
from gmnscore.ast_nodes import Diatonic, Note, Tag, TagId, TagParam, TagType, Unit
from gmnscore.errors import ParamError, SchemaError, TagTypeError, UnknownTagError
from gmnscore.tag_definitions import (
    TagDefinitions, TagParamDefinition, TagValidator, type_accepted,
)


@pytest.fixture(scope="module")
def defs():
    return TagDefinitions.load()


class TestPackagedSchema:
    def test_every_id_defined(self, defs):
        assert all(tag_id in defs for tag_id in TagId)
        assert len(defs) == len(TagId)

    def test_lookup_canonical(self, defs):
        assert defs.lookup("staff") is TagId.STAFF

    def test_lookup_alternative(self, defs):
        assert defs.lookup("acc") is TagId.ACCIDENTAL
        assert defs.lookup("dim") is TagId.DECRESCENDO
        assert defs.lookup("pizz") is TagId.PIZZICATO

    def test_lookup_bar_shorthand(self, defs):
        assert defs.lookup("|") is TagId.BAR

    def test_lookup_unknown(self, defs):
        with pytest.raises(UnknownTagError, match="Unknown tag"):
            defs.lookup("notATag")

    def test_lookup_is_case_sensitive(self, defs):
        with pytest.raises(UnknownTagError):
            defs.lookup("Staff")

    def test_is_canonical(self, defs):
        assert defs.is_canonical("repeatBegin")
        assert not defs.is_canonical("slurBegin")

    def test_declared_types(self, defs):
        assert defs.get(TagId.ACCELERANDO).type is TagType.RANGE
        assert defs.get(TagId.STAFF).type is TagType.POSITION
        assert defs.get(TagId.TEXT).type is TagType.ANY


class TestSchemaLoading:
    def test_from_dict(self):
        defs = TagDefinitions.from_dict({"slur": {"type": "range", "alternatives": ["s"]}})
        assert defs.lookup("s") is TagId.SLUR
        assert TagId.TIE not in defs

    def test_unknown_id(self):
        with pytest.raises(SchemaError, match="Unknown tag id"):
            TagDefinitions.from_dict({"wobble": {"type": "range"}})

    def test_unknown_type(self):
        with pytest.raises(SchemaError):
            TagDefinitions.from_dict({"slur": {"type": "sometimes"}})

    def test_missing_type(self):
        with pytest.raises(SchemaError):
            TagDefinitions.from_dict({"slur": {}})

    def test_duplicate_alternative(self):
        with pytest.raises(SchemaError, match="claimed by both"):
            TagDefinitions.from_dict({
                "slur": {"type": "range", "alternatives": ["x"]},
                "tie": {"type": "range", "alternatives": ["x"]},
            })

    def test_unknown_param_type(self):
        with pytest.raises(SchemaError):
            TagDefinitions.from_dict({
                "staff": {"type": "position", "params": [{"name": "id", "type": "color"}]},
            })

    def test_load_file(self, tmp_path):
        path = tmp_path / "tags.json"
        path.write_text(json.dumps({"clef": {"type": "position"}}), encoding="utf-8")
        defs = TagDefinitions.load(path)
        assert len(defs) == 1

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(SchemaError):
            TagDefinitions.load(tmp_path / "missing.json")

    def test_load_bad_json(self, tmp_path):
        path = tmp_path / "tags.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SchemaError):
            TagDefinitions.load(path)


class TestTypeRule:
    def test_position_needs_position_or_any(self):
        assert type_accepted(TagType.POSITION, TagType.POSITION)
        assert type_accepted(TagType.POSITION, TagType.ANY)
        assert not type_accepted(TagType.POSITION, TagType.RANGE)

    def test_other_shapes_reject_only_position(self):
        assert type_accepted(TagType.RANGE, TagType.RANGE)
        assert type_accepted(TagType.BEGIN, TagType.RANGE)
        assert type_accepted(TagType.END, TagType.ANY)
        assert not type_accepted(TagType.RANGE, TagType.POSITION)


class TestValidator:
    def test_accelerando_position_rejected(self, defs):
        with pytest.raises(TagTypeError, match="expected: range"):
            TagValidator().validate(Tag.from_id(TagId.ACCELERANDO), defs)

    def test_accelerando_range_accepted(self, defs):
        tag = Tag.from_id(TagId.ACCELERANDO).with_event(Note.from_name(Diatonic.C))
        TagValidator().validate(tag, defs)

    def test_staff_range_rejected(self, defs):
        tag = Tag.from_id(TagId.STAFF).with_event(Note.from_name(Diatonic.C))
        with pytest.raises(TagTypeError):
            TagValidator().validate(tag, defs)

    def test_missing_entry_is_schema_error(self):
        defs = TagDefinitions.from_dict({"slur": {"type": "range"}})
        with pytest.raises(SchemaError):
            TagValidator().validate(Tag.from_id(TagId.CLEF), defs)

    def test_lenient_ignores_param_types(self, defs):
        tag = Tag.from_id(TagId.STAFF).with_param(TagParam("one"))
        TagValidator().validate(tag, defs)

    def test_strict_positional(self, defs):
        tag = Tag.from_id(TagId.STAFF).with_param(TagParam("one"))
        with pytest.raises(ParamError):
            TagValidator(strict_params=True).validate(tag, defs)

    def test_strict_named(self, defs):
        tag = Tag.from_id(TagId.PAGE_FORMAT).with_param(TagParam("wide", name="lm"))
        with pytest.raises(ParamError, match="lm"):
            TagValidator(strict_params=True).validate(tag, defs)

    def test_strict_accepts_matching(self, defs):
        tag = (Tag.from_id(TagId.PAGE_FORMAT)
               .with_param(TagParam(1.0, Unit.CM, "lm"))
               .with_param(TagParam(2.0, Unit.CM, "tm")))
        TagValidator(strict_params=True).validate(tag, defs)

    def test_strict_ignores_undeclared(self, defs):
        tag = Tag.from_id(TagId.ACCOLADE).with_param(TagParam(3.0, name="dy"))
        TagValidator(strict_params=True).validate(tag, defs)


class TestParamDefinition:
    def test_integer(self):
        slot = TagParamDefinition("id", "integer")
        assert slot.accepts(TagParam(2.0))
        assert not slot.accepts(TagParam(2.5))
        assert not slot.accepts(TagParam(2.0, Unit.CM))

    def test_boolean(self):
        slot = TagParamDefinition("fill", "boolean")
        assert slot.accepts(TagParam("true"))
        assert slot.accepts(TagParam(0.0))
        assert not slot.accepts(TagParam("maybe"))

    def test_string_or_int(self):
        slot = TagParamDefinition("key", "stringOrInt")
        assert slot.accepts(TagParam("D"))
        assert slot.accepts(TagParam(-2.0))
        assert not slot.accepts(TagParam(1.5))
