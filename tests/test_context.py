"""Tests for the parse Context."""

import pytest
from gmnscore.ast_nodes import Tag, TagId, TagParam
from gmnscore.context import Context
from gmnscore.duration import Duration, WHOLE


class TestContext:
    def test_defaults(self):
        ctx = Context()
        assert ctx.octave == 1
        assert ctx.duration == WHOLE
        assert ctx.tags == {}

    def test_registry_keeps_last_per_id(self):
        ctx = Context()
        ctx.add_tag(Tag.from_id(TagId.STAFF).with_param(TagParam(1.0)))
        ctx.add_tag(Tag.from_id(TagId.STAFF).with_param(TagParam(2.0)))
        assert ctx.get_tag(TagId.STAFF).as_number() == 2.0
        assert ctx.get_tag(TagId.CLEF) is None

    def test_lookup(self):
        assert Context().lookup_tag("i") is TagId.INTENSITY


class TestTransaction:
    def test_commit_on_success(self):
        ctx = Context()
        with ctx.transaction():
            ctx.octave = 3
            ctx.duration = Duration(1, 4)
        assert ctx.octave == 3
        assert ctx.duration == Duration(1, 4)

    def test_rollback_on_error(self):
        ctx = Context()
        with pytest.raises(ValueError):
            with ctx.transaction():
                ctx.octave = 3
                ctx.duration = Duration(1, 8)
                ctx.add_tag(Tag.from_id(TagId.CLEF))
                raise ValueError("abandoned")
        assert ctx.octave == 1
        assert ctx.duration == WHOLE
        assert ctx.get_tag(TagId.CLEF) is None

    def test_nested_inner_failure(self):
        ctx = Context()
        with ctx.transaction():
            ctx.octave = 2
            with pytest.raises(ValueError):
                with ctx.transaction():
                    ctx.octave = 5
                    raise ValueError
        assert ctx.octave == 2
