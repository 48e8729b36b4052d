"""
Unit tests for MCP tools.
"""

import json

import pytest

from figma_context_mcp.client.figma_client import FigmaAPIError
from figma_context_mcp.config.settings import ConverterConfig
from figma_context_mcp.tools import (
    GetCommentsTool,
    GetComponentSetsTool,
    GetComponentsTool,
    GetCurrentUserTool,
    GetFileAssetsAndVariablesTool,
    GetFileNodesTool,
    GetFileTool,
    GetFileVariableCollectionsTool,
    GetFileVariablesTool,
    GetFileWithCommentsTool,
    GetImagesTool,
    GetModelContextTool,
    GetNodeTool,
    GetResolvedCommentsTool,
    GetStylesTool,
    GetTeamComponentsTool,
    GetTeamStylesTool,
    GetUnresolvedCommentsTool,
    GetVariableCollectionTool,
    GetVariableCollectionsTool,
    GetVariablesByCollectionTool,
    GetVariablesByTypeTool,
    GetVariablesTool,
    GetVariableTool,
    GetVariableValueForModeTool,
    ToolResult,
    ValidateModelContextTool,
)


def _payload(result):
    """Decode the JSON text of a successful tool result."""
    assert result["isError"] is False, result
    return json.loads(result["content"][0]["text"])


class TestToolResult:
    """Test tool result formatting."""

    def test_json_result(self):
        result = ToolResult.json({"a": 1}, metadata={"count": 1}).to_dict()

        assert result["isError"] is False
        assert json.loads(result["content"][0]["text"]) == {"a": 1}
        assert result["metadata"] == {"count": 1}

    def test_error_result(self):
        result = ToolResult.error("Something failed", "custom_error", {"key": "value"}).to_dict()

        assert result["isError"] is True
        assert result["content"][0]["text"].startswith("Error: Something failed")
        assert "custom_error" in result["content"][0]["text"]


class TestArgumentValidation:
    """Test schema-driven argument checks shared by all tools."""

    @pytest.fixture
    def tool(self, mock_figma_client):
        return GetImagesTool(mock_figma_client)

    @pytest.mark.asyncio
    async def test_missing_required_parameter(self, tool, mock_figma_client):
        result = await tool({"file_key": "abc"})

        assert result["isError"] is True
        assert "Missing required parameter: ids" in result["content"][0]["text"]
        mock_figma_client.get_image.assert_not_called()

    @pytest.mark.asyncio
    async def test_wrong_type(self, tool):
        result = await tool({"file_key": 42, "ids": ["1:2"]})

        assert result["isError"] is True
        assert "must be of type string" in result["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_enum_and_range(self, tool):
        bad_format = await tool({"file_key": "abc", "ids": ["1:2"], "format": "gif"})
        bad_scale = await tool({"file_key": "abc", "ids": ["1:2"], "scale": 10})

        assert bad_format["isError"] is True
        assert bad_scale["isError"] is True

    @pytest.mark.asyncio
    async def test_unknown_parameter(self, tool):
        result = await tool({"file_key": "abc", "ids": ["1:2"], "colour": "red"})

        assert result["isError"] is True
        assert "colour" in result["content"][0]["text"]

    def test_parameters_are_json_schema(self, tool):
        parameters = tool.parameters()

        assert parameters["type"] == "object"
        assert parameters["required"] == ["file_key", "ids"]
        assert parameters["properties"]["format"]["enum"] == ["png", "jpg", "svg", "pdf"]
        assert parameters["additionalProperties"] is False


class TestFigmaTools:
    """Test the tools that return raw Figma data."""

    @pytest.mark.asyncio
    async def test_get_file(self, mock_figma_client):
        result = await GetFileTool(mock_figma_client)({"file_key": "abc", "depth": 2})

        assert _payload(result)["name"] == "Design System"
        mock_figma_client.get_file.assert_awaited_once_with("abc", depth=2, version=None)

    @pytest.mark.asyncio
    async def test_get_file_api_error(self, mock_figma_client):
        mock_figma_client.get_file.side_effect = FigmaAPIError("Not found", status=404)

        result = await GetFileTool(mock_figma_client)({"file_key": "missing"})

        assert result["isError"] is True
        assert result["metadata"]["error_code"] == "figma_api_error"

    @pytest.mark.asyncio
    async def test_get_node(self, mock_figma_client):
        result = await GetNodeTool(mock_figma_client)({"file_key": "abc", "node_id": "1:2"})

        assert _payload(result)["id"] == "1:2"

    @pytest.mark.asyncio
    async def test_get_node_not_found(self, mock_figma_client):
        mock_figma_client.get_node.return_value = None

        result = await GetNodeTool(mock_figma_client)({"file_key": "abc", "node_id": "9:9"})

        assert result["isError"] is True
        assert result["metadata"]["error_code"] == "node_not_found"

    @pytest.mark.asyncio
    async def test_get_comments(self, mock_figma_client):
        result = await GetCommentsTool(mock_figma_client)({"file_key": "abc"})

        assert [c["id"] for c in _payload(result)["comments"]] == ["c-1", "c-2"]
        assert result["metadata"]["count"] == 2

    @pytest.mark.asyncio
    async def test_get_images(self, mock_figma_client):
        result = await GetImagesTool(mock_figma_client)(
            {"file_key": "abc", "ids": ["1:3"], "format": "svg", "scale": 2}
        )

        assert _payload(result) == {"images": {"1:3": "https://cdn.example/1-3.png"}}
        mock_figma_client.get_image.assert_awaited_once_with("abc", ["1:3"], format="svg", scale=2)

    @pytest.mark.asyncio
    async def test_get_components_and_styles(self, mock_figma_client):
        components = await GetComponentsTool(mock_figma_client)({"file_key": "abc"})
        styles = await GetStylesTool(mock_figma_client)({"file_key": "abc"})

        assert _payload(components)["components"][0]["key"] == "comp-1"
        assert _payload(styles)["styles"][0]["name"] == "Brand/Primary"

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_error_result(self, mock_figma_client):
        mock_figma_client.get_comments.side_effect = RuntimeError("socket closed")

        result = await GetCommentsTool(mock_figma_client)({"file_key": "abc"})

        assert result["isError"] is True
        assert result["metadata"]["error_code"] == "internal_error"


class TestModelContextTools:
    """Test conversion and validation tools."""

    @pytest.mark.asyncio
    async def test_get_model_context(self, mock_figma_client):
        tool = GetModelContextTool(mock_figma_client, ConverterConfig())

        result = await tool({"file_key": "abc"})

        document = _payload(result)
        assert document["metadata"]["source"]["fileKey"] == "abc"
        assert document["design"]["structure"]["root"] == "0:0"
        assert result["metadata"]["validation"] == {"valid": True, "errors": []}
        mock_figma_client.get_local_variables.assert_not_called()

    @pytest.mark.asyncio
    async def test_arguments_override_config_defaults(self, mock_figma_client):
        tool = GetModelContextTool(mock_figma_client, ConverterConfig(include_styles=True))

        result = await tool(
            {"file_key": "abc", "include_styles": False, "include_variables": True, "validate": False}
        )

        document = _payload(result)
        assert document["design"]["styles"]["colors"] == []
        assert document["design"]["variables"]["collections"][0]["id"] == "VC:1"
        assert "validation" not in result["metadata"]

    @pytest.mark.asyncio
    async def test_get_model_context_conversion_error(self, mock_figma_client):
        mock_figma_client.get_file.return_value = {"name": "broken", "document": {}}

        result = await GetModelContextTool(mock_figma_client)({"file_key": "abc"})

        assert result["isError"] is True
        assert result["metadata"]["error_code"] == "execution_error"

    @pytest.mark.asyncio
    async def test_validate_model_context(self):
        tool = ValidateModelContextTool()

        result = await tool({"context": {"metadata": {"version": "1"}}})

        report = _payload(result)
        assert report == {"valid": False, "errors": ["Missing design"]}
        assert result["metadata"] == {"valid": False, "error_count": 1}


class TestFileNodesAndComments:
    """Test node batches, comment filters and the file-with-comments composite."""

    @pytest.mark.asyncio
    async def test_get_file_nodes(self, mock_figma_client):
        result = await GetFileNodesTool(mock_figma_client)(
            {"file_key": "abc", "ids": ["1:2", "9:9"], "depth": 1}
        )

        assert _payload(result)["nodes"]["1:2"]["document"]["name"] == "Title"
        assert result["metadata"] == {"file_key": "abc", "count": 1, "missing": ["9:9"]}
        mock_figma_client.get_file_nodes.assert_awaited_once_with(
            "abc",
            ["1:2", "9:9"],
            version=None,
            depth=1,
            geometry=None,
            plugin_data=None,
            branch_data=None,
        )

    @pytest.mark.asyncio
    async def test_get_file_nodes_rejects_blank_ids(self, mock_figma_client):
        result = await GetFileNodesTool(mock_figma_client)({"file_key": "abc", "ids": ["1:2", ""]})

        assert result["isError"] is True
        assert result["metadata"]["error_code"] == "validation_error"
        mock_figma_client.get_file_nodes.assert_not_called()

    @pytest.mark.asyncio
    async def test_resolved_and_unresolved_comments(self, mock_figma_client):
        resolved = await GetResolvedCommentsTool(mock_figma_client)({"file_key": "abc"})
        unresolved = await GetUnresolvedCommentsTool(mock_figma_client)({"file_key": "abc"})

        assert [c["id"] for c in _payload(resolved)["comments"]] == ["c-1"]
        assert [c["id"] for c in _payload(unresolved)["comments"]] == ["c-2"]
        assert unresolved["metadata"]["count"] == 1

    @pytest.mark.asyncio
    async def test_file_with_comments(self, mock_figma_client):
        result = await GetFileWithCommentsTool(mock_figma_client)({"file_key": "abc"})

        payload = _payload(result)
        assert payload["file"]["name"] == "Design System"
        assert len(payload["comments"]) == 2
        assert result["metadata"]["comments"] == 2

    @pytest.mark.asyncio
    async def test_file_with_comments_api_error(self, mock_figma_client):
        mock_figma_client.get_comments.side_effect = FigmaAPIError("Forbidden", status=403)

        result = await GetFileWithCommentsTool(mock_figma_client)({"file_key": "abc"})

        assert result["isError"] is True
        assert result["metadata"]["error_code"] == "figma_api_error"


class TestLibraryTools:
    """Test component set and team library tools."""

    @pytest.mark.asyncio
    async def test_get_component_sets(self, mock_figma_client):
        result = await GetComponentSetsTool(mock_figma_client)({"file_key": "abc"})

        assert _payload(result)["component_sets"][0]["key"] == "set-1"
        mock_figma_client.get_file_component_sets.assert_awaited_once_with("abc")

    @pytest.mark.asyncio
    async def test_get_team_components(self, mock_figma_client):
        result = await GetTeamComponentsTool(mock_figma_client)({"team_id": "t-1", "page_size": 10})

        payload = _payload(result)
        assert payload["components"][0]["file_key"] == "lib-file"
        assert payload["cursor"] is None
        mock_figma_client.get_team_components.assert_awaited_once_with("t-1", page_size=10, after=None)

    @pytest.mark.asyncio
    async def test_get_team_styles_returns_cursor(self, mock_figma_client):
        result = await GetTeamStylesTool(mock_figma_client)({"team_id": "t-1", "after": 1})

        payload = _payload(result)
        assert payload["styles"][0]["name"] == "Brand/Primary"
        assert payload["cursor"] == {"before": 0, "after": 1}
        assert result["metadata"] == {"team_id": "t-1", "count": 1}

    @pytest.mark.asyncio
    async def test_team_tools_require_team_id(self, mock_figma_client):
        result = await GetTeamStylesTool(mock_figma_client)({"file_key": "abc"})

        assert result["isError"] is True
        mock_figma_client.get_team_styles.assert_not_called()

    @pytest.mark.asyncio
    async def test_team_api_error(self, mock_figma_client):
        mock_figma_client.get_team_components.side_effect = FigmaAPIError("Not found", status=404)

        result = await GetTeamComponentsTool(mock_figma_client)({"team_id": "t-1"})

        assert result["isError"] is True
        assert "get team components" in result["content"][0]["text"]


class TestVariableTools:
    """Test tools answering from a file's local variables."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool_cls", [GetVariablesTool, GetFileVariablesTool])
    async def test_get_variables(self, mock_figma_client, tool_cls):
        result = await tool_cls(mock_figma_client)({"file_key": "abc"})

        payload = _payload(result)
        assert [c["id"] for c in payload["collections"]] == ["VC:1"]
        assert [v["id"] for v in payload["variables"]] == ["V:1", "V:2"]
        assert result["metadata"]["count"] == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool_cls", [GetVariableCollectionsTool, GetFileVariableCollectionsTool])
    async def test_get_variable_collections(self, mock_figma_client, tool_cls):
        result = await tool_cls(mock_figma_client)({"file_key": "abc"})

        assert _payload(result)["collections"][0]["name"] == "Colors"

    @pytest.mark.asyncio
    async def test_nested_variables_shape(self, mock_figma_client):
        mock_figma_client.get_local_variables.return_value = {
            "meta": {
                "variables": {
                    "collections": [{"id": "VC:9", "name": "Spacing"}],
                    "variables": [{"id": "V:9", "variableCollectionId": "VC:9"}],
                }
            }
        }

        result = await GetVariablesTool(mock_figma_client)({"file_key": "abc"})

        payload = _payload(result)
        assert payload["collections"] == [{"id": "VC:9", "name": "Spacing"}]
        assert payload["variables"][0]["id"] == "V:9"

    @pytest.mark.asyncio
    async def test_get_variable(self, mock_figma_client):
        found = await GetVariableTool(mock_figma_client)({"file_key": "abc", "variable_id": "V:2"})
        missing = await GetVariableTool(mock_figma_client)({"file_key": "abc", "variable_id": "V:7"})

        assert _payload(found)["name"] == "space/md"
        assert missing["isError"] is True
        assert missing["metadata"]["error_code"] == "variable_not_found"

    @pytest.mark.asyncio
    async def test_get_variable_collection(self, mock_figma_client):
        found = await GetVariableCollectionTool(mock_figma_client)({"file_key": "abc", "collection_id": "VC:1"})
        missing = await GetVariableCollectionTool(mock_figma_client)({"file_key": "abc", "collection_id": "VC:2"})

        assert _payload(found)["defaultModeId"] == "m1"
        assert missing["metadata"]["error_code"] == "collection_not_found"

    @pytest.mark.asyncio
    async def test_variables_by_collection_and_type(self, mock_figma_client):
        by_collection = await GetVariablesByCollectionTool(mock_figma_client)(
            {"file_key": "abc", "collection_id": "VC:1"}
        )
        by_type = await GetVariablesByTypeTool(mock_figma_client)({"file_key": "abc", "type": "FLOAT"})
        empty = await GetVariablesByCollectionTool(mock_figma_client)({"file_key": "abc", "collection_id": "VC:2"})

        assert len(_payload(by_collection)["variables"]) == 2
        assert [v["id"] for v in _payload(by_type)["variables"]] == ["V:2"]
        assert _payload(empty) == {"variables": []}

    @pytest.mark.asyncio
    async def test_variables_by_type_checks_enum(self, mock_figma_client):
        result = await GetVariablesByTypeTool(mock_figma_client)({"file_key": "abc", "type": "float"})

        assert result["isError"] is True
        mock_figma_client.get_local_variables.assert_not_called()

    @pytest.mark.asyncio
    async def test_variable_value_for_mode(self, mock_figma_client):
        tool = GetVariableValueForModeTool(mock_figma_client)

        value = await tool({"file_key": "abc", "variable_id": "V:1", "mode_id": "m1"})
        no_mode = await tool({"file_key": "abc", "variable_id": "V:1", "mode_id": "m2"})
        no_variable = await tool({"file_key": "abc", "variable_id": "V:7", "mode_id": "m1"})

        assert _payload(value) == {"type": "COLOR", "value": {"r": 1, "g": 1, "b": 1, "a": 1}}
        assert no_mode["metadata"]["error_code"] == "mode_not_found"
        assert no_variable["metadata"]["error_code"] == "variable_not_found"

    @pytest.mark.asyncio
    async def test_variables_api_error(self, mock_figma_client):
        mock_figma_client.get_local_variables.side_effect = FigmaAPIError("Forbidden", status=403)

        result = await GetVariableTool(mock_figma_client)({"file_key": "abc", "variable_id": "V:1"})

        assert result["isError"] is True
        assert result["metadata"]["error_code"] == "figma_api_error"

    @pytest.mark.asyncio
    async def test_file_assets_and_variables(self, mock_figma_client):
        result = await GetFileAssetsAndVariablesTool(mock_figma_client)({"file_key": "abc"})

        payload = _payload(result)
        assert payload["components"][0]["key"] == "comp-1"
        assert payload["styles"][0]["key"] == "k1"
        assert payload["variables"]["collections"][0]["id"] == "VC:1"
        assert result["metadata"] == {"file_key": "abc", "variables": 2, "components": 1, "styles": 1}


class TestCurrentUserTool:
    """Test the token owner lookup."""

    @pytest.mark.asyncio
    async def test_get_current_user(self, mock_figma_client):
        result = await GetCurrentUserTool(mock_figma_client)({})

        assert _payload(result)["handle"] == "ana"
        assert result["metadata"] == {"user_id": "u-1"}
        mock_figma_client.get_current_user.assert_awaited_once_with()

    @pytest.mark.asyncio
    async def test_get_current_user_rejects_arguments(self, mock_figma_client):
        result = await GetCurrentUserTool(mock_figma_client)({"file_key": "abc"})

        assert result["isError"] is True
        mock_figma_client.get_current_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_current_user_unauthorized(self, mock_figma_client):
        mock_figma_client.get_current_user.side_effect = FigmaAPIError("Invalid token", status=403)

        result = await GetCurrentUserTool(mock_figma_client)({})

        assert result["isError"] is True
        assert "Invalid token" in result["content"][0]["text"]
