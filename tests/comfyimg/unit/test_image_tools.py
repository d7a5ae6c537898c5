"""
Unit tests for the comfyui-img tool
"""

import base64
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from backend.comfyimg.config import ComfyImgConfig
from backend.comfyimg.errors import TransportError
from backend.comfyimg.mcp_tools.tools.comfy_client import GeneratedImage, ImageRef
from backend.comfyimg.mcp_tools.tools.image_tools import (
    DISPLAY_MESSAGE,
    REQUEST_FAILED,
    ComfyUIImageTool,
)
from backend.comfyimg.mcp_tools.tools.workflow_state import WorkflowState

ALL_PROPERTIES = {
    "prompt", "negativePrompt", "seed", "model", "width", "height",
    "sampler", "scheduler", "cfg", "steps",
}


def make_tool(workflow, images=None, error=None, node_map="{}"):
    client = MagicMock()
    client.run_workflow = AsyncMock(return_value=images or [], side_effect=error)
    config = ComfyImgConfig(
        base_url="http://comfy.local",
        workflow=json.dumps(workflow),
        node_map=node_map,
    )
    return ComfyUIImageTool(WorkflowState(config, client=client)), client


def test_schema_offers_every_resolved_role(txt2img_workflow):
    tool, _ = make_tool(txt2img_workflow)
    schema = tool.get_schema()

    assert set(schema["properties"]) == ALL_PROPERTIES
    assert schema["required"] == ["prompt"]
    assert schema["properties"]["width"]["minimum"] == 512
    assert schema["properties"]["width"]["maximum"] == 2048
    assert schema["properties"]["cfg"]["maximum"] == 20
    assert schema["properties"]["steps"]["maximum"] == 40


def test_schema_omits_absent_roles(sampler_custom_workflow):
    """SamplerCustom workflows without scheduler or steps inputs hide those options"""
    tool, _ = make_tool(sampler_custom_workflow)

    properties = set(tool.get_schema()["properties"])

    assert properties == ALL_PROPERTIES - {"steps", "scheduler"}


def test_schema_gates_width_and_height_separately(txt2img_workflow):
    txt2img_workflow["5"]["inputs"]["height"] = ["40", 0]
    tool, _ = make_tool(txt2img_workflow)

    properties = tool.get_schema()["properties"]

    assert "width" in properties
    assert "height" not in properties


def test_schema_minimal_workflow():
    workflow = {
        "1": {"class_type": "CLIPTextEncode", "inputs": {"text": "hi"}},
    }
    tool, _ = make_tool(workflow, node_map='{"positive": "1"}')

    assert set(tool.to_claude_tool()["input_schema"]["properties"]) == {"prompt"}


@pytest.mark.asyncio
async def test_execute_returns_text_and_image_blocks(txt2img_workflow):
    images = [
        GeneratedImage(ImageRef("a.png"), b"\x89PNG-a"),
        GeneratedImage(ImageRef("b.jpg"), b"jpeg-b", content_type="image/jpeg"),
    ]
    tool, client = make_tool(txt2img_workflow, images=images)

    result = await tool.execute(prompt="a lighthouse", width=768, seed=3)

    assert result["success"] is True
    assert result["image_count"] == 2
    assert result["message"] == DISPLAY_MESSAGE
    text, first, second = result["content"]
    assert text == {"type": "text", "text": DISPLAY_MESSAGE}
    assert first["source"]["media_type"] == "image/png"
    assert base64.b64decode(first["source"]["data"]) == b"\x89PNG-a"
    assert second["source"]["media_type"] == "image/jpeg"

    submitted = client.run_workflow.await_args.args[0]
    assert submitted["6"]["inputs"]["text"] == "a lighthouse"
    assert submitted["5"]["inputs"]["width"] == 768
    assert submitted["5"]["inputs"]["height"] == 512
    assert submitted["3"]["inputs"]["seed"] == 3


@pytest.mark.asyncio
async def test_execute_with_no_images(txt2img_workflow):
    tool, _ = make_tool(txt2img_workflow, images=[])

    result = await tool.execute(prompt="x")

    assert result["success"] is True
    assert result["image_count"] == 0
    assert result["content"] == [{"type": "text", "text": DISPLAY_MESSAGE}]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "arguments",
    [
        {},
        {"prompt": 12},
        {"prompt": "x", "width": 256},
        {"prompt": "x", "steps": 41},
        {"prompt": "x", "seed": "7"},
        {"prompt": "x", "cfg": True},
    ],
)
async def test_execute_rejects_invalid_arguments(txt2img_workflow, arguments):
    tool, client = make_tool(txt2img_workflow)

    result = await tool.execute(**arguments)

    assert result["success"] is False
    client.run_workflow.assert_not_awaited()


@pytest.mark.asyncio
async def test_execute_transport_failure(txt2img_workflow):
    tool, _ = make_tool(txt2img_workflow, error=TransportError("channel closed"))

    result = await tool.execute(prompt="x")

    assert result == {"success": False, "error": REQUEST_FAILED}


@pytest.mark.asyncio
async def test_override_mode_reports_unconfigured():
    client = MagicMock()
    client.run_workflow = AsyncMock()
    tool = ComfyUIImageTool(WorkflowState(ComfyImgConfig(override=True), client=client))

    result = await tool.execute(prompt="x")

    assert set(tool.get_schema()["properties"]) == {"prompt"}
    assert result["success"] is False
    client.run_workflow.assert_not_awaited()
