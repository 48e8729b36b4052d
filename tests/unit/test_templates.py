"""
Unit tests for URI templates.
"""

import pytest

from figma_context_mcp.protocol.templates import ResourceTemplate


class TestResourceTemplate:
    """Test URI template generation and matching."""

    @pytest.fixture
    def node_template(self):
        return ResourceTemplate("figma://file/{file_key}/node/{node_id}")

    def test_generate_substitutes_all_placeholders(self, node_template):
        uri = node_template.generate({"file_key": "abc", "node_id": "1:2"})

        assert uri == "figma://file/abc/node/1:2"

    def test_generate_leaves_missing_placeholders(self, node_template):
        assert node_template.generate({"file_key": "abc"}) == "figma://file/abc/node/{node_id}"
        assert node_template.generate({"file_key": "abc", "node_id": ""}) == (
            "figma://file/abc/node/{node_id}"
        )

    def test_match_extracts_parameters(self, node_template):
        assert node_template.match("figma://file/abc/node/1:2") == {
            "file_key": "abc",
            "node_id": "1:2",
        }

    @pytest.mark.parametrize(
        "params",
        [
            {"file_key": "x", "node_id": "y"},
            {"file_key": "AbC123", "node_id": "10%3A20"},
            {"file_key": "key.with.dots", "node_id": "a+b(c)"},
        ],
    )
    def test_generate_then_match_round_trips(self, node_template, params):
        assert node_template.match(node_template.generate(params)) == params

    def test_match_is_anchored(self, node_template):
        assert node_template.match("figma://file/abc/node/1:2/extra") is None
        assert node_template.match("prefix-figma://file/abc/node/1:2") is None

    def test_placeholder_does_not_cross_slashes(self):
        template = ResourceTemplate("figma://file/{file_key}")

        assert template.match("figma://file/abc/node/1:2") is None

    def test_placeholder_requires_at_least_one_character(self):
        template = ResourceTemplate("figma://style/{style_key}")

        assert template.match("figma://style/") is None

    def test_literal_text_is_not_a_regex(self):
        template = ResourceTemplate("figma://a.b/{id}")

        assert template.match("figma://a.b/1") == {"id": "1"}
        assert template.match("figma://aXb/1") is None

    def test_template_without_placeholders_matches_only_itself(self):
        template = ResourceTemplate("figma://status")

        assert template.match("figma://status") == {}
        assert template.match("figma://status2") is None
        assert template.generate({"anything": "x"}) == "figma://status"

    def test_accessors_and_listable_option(self):
        template = ResourceTemplate("figma://style/{style_key}", {"list": False})

        assert template.template == "figma://style/{style_key}"
        assert template.options == {"list": False}
        assert template.parameter_names == ["style_key"]
        assert not template.listable
        assert ResourceTemplate("figma://style/{style_key}").listable
