"""
Figma MCP tools implementation.

Tools expose Figma file data and Model Context conversion through
``tool.call``.
"""

from .base import BaseTool, FigmaTool, ToolError, ToolExecutionError, ToolResult, ToolValidationError
from .file_tools import (
    GetCommentsTool,
    GetFileNodesTool,
    GetFileTool,
    GetFileWithCommentsTool,
    GetImagesTool,
    GetNodeTool,
    GetResolvedCommentsTool,
    GetUnresolvedCommentsTool,
)
from .library_tools import (
    GetComponentSetsTool,
    GetComponentsTool,
    GetStylesTool,
    GetTeamComponentsTool,
    GetTeamStylesTool,
)
from .model_context_tools import GetModelContextTool, ValidateModelContextTool
from .user_tools import GetCurrentUserTool
from .variable_tools import (
    GetFileAssetsAndVariablesTool,
    GetFileVariableCollectionsTool,
    GetFileVariablesTool,
    GetVariableCollectionTool,
    GetVariableCollectionsTool,
    GetVariablesByCollectionTool,
    GetVariablesByTypeTool,
    GetVariablesTool,
    GetVariableTool,
    GetVariableValueForModeTool,
)

__all__ = [
    "BaseTool",
    "FigmaTool",
    "ToolError",
    "ToolExecutionError",
    "ToolResult",
    "ToolValidationError",
    "GetFileTool",
    "GetFileNodesTool",
    "GetNodeTool",
    "GetCommentsTool",
    "GetResolvedCommentsTool",
    "GetUnresolvedCommentsTool",
    "GetImagesTool",
    "GetFileWithCommentsTool",
    "GetComponentsTool",
    "GetComponentSetsTool",
    "GetStylesTool",
    "GetTeamComponentsTool",
    "GetTeamStylesTool",
    "GetVariablesTool",
    "GetFileVariablesTool",
    "GetVariableCollectionsTool",
    "GetFileVariableCollectionsTool",
    "GetVariableTool",
    "GetVariableCollectionTool",
    "GetVariablesByCollectionTool",
    "GetVariablesByTypeTool",
    "GetVariableValueForModeTool",
    "GetFileAssetsAndVariablesTool",
    "GetCurrentUserTool",
    "GetModelContextTool",
    "ValidateModelContextTool",
]
