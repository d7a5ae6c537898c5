"""
Unit tests for the environment-configured tool registry
"""

from unittest.mock import AsyncMock

import pytest

from backend.comfyimg.mcp_tools import comfyui_tools
from backend.comfyimg.mcp_tools.tools.base import ToolRegistry
from backend.comfyimg.mcp_tools.tools.comfy_client import ComfyClient


@pytest.fixture
def registry_env(monkeypatch, txt2img_json, tmp_path):
    for name in ("COMFYUI_WORKFLOW_FILE", "COMFYUI_NODE_MAP"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("COMFYUI_URL", "http://comfy.local")
    monkeypatch.setenv("COMFYUI_WORKFLOW", txt2img_json)
    monkeypatch.chdir(tmp_path)
    comfyui_tools.reset_registry()
    yield
    comfyui_tools.reset_registry()


def test_get_comfyui_tools(registry_env):
    tools = comfyui_tools.get_comfyui_tools()

    assert [tool["name"] for tool in tools] == ["comfyui-info", "comfyui-img"]
    assert all("input_schema" in tool for tool in tools)


@pytest.mark.asyncio
async def test_execute_comfyui_tool(registry_env, monkeypatch):
    monkeypatch.setattr(ComfyClient, "get_object_info", AsyncMock(return_value={}))

    result = await comfyui_tools.execute_comfyui_tool("comfyui-info", {"info_type": "models"})

    assert result == {"success": True, "models": []}


@pytest.mark.asyncio
async def test_execute_unknown_tool(registry_env):
    with pytest.raises(ValueError, match="Unknown tool"):
        await comfyui_tools.execute_comfyui_tool("comfyui-video", {})


def test_create_tools_share_state(registry_env):
    info_tool, image_tool = comfyui_tools.create_comfyui_tools()

    assert info_tool.state is image_tool.state


def test_registry_lists_registered_tools(registry_env):
    registry = ToolRegistry()
    for tool in comfyui_tools.create_comfyui_tools():
        registry.register_tool(tool)

    assert registry.list_tools() == ["comfyui-info", "comfyui-img"]
    assert registry.get_tool("comfyui-img").name == "comfyui-img"
    assert registry.get_tool("missing") is None
