"""
ComfyUI Tools

Entry points for hosts that expose the tools to an agent:

- comfyui-img: generate images with the configured workflow
- comfyui-info: list models, samplers and schedulers

``create_comfyui_tools`` builds the pair for an explicit configuration; the
module-level registry is built lazily from the environment.
"""

from typing import Any, Dict, List, Optional

from ..config import ComfyImgConfig
from .tools.base import BaseTool, ToolRegistry
from .tools.image_tools import ComfyUIImageTool
from .tools.info_tools import ComfyUIInfoTool
from .tools.workflow_state import WorkflowState
from ...utils.logger import get_logger

logger = get_logger(__name__)

_registry: Optional[ToolRegistry] = None


def create_comfyui_tools(config: Optional[ComfyImgConfig] = None) -> List[BaseTool]:
    """
    Build the info and image tools sharing one resolved workflow.

    Raises:
        ConfigurationError: If the configuration is incomplete or the workflow
            has no usable positive prompt node.
    """
    state = WorkflowState(config or ComfyImgConfig.from_env())
    return [ComfyUIInfoTool(state), ComfyUIImageTool(state)]


def _ensure_registry() -> ToolRegistry:
    """Build the environment-configured registry on first use."""
    global _registry
    if _registry is None:
        registry = ToolRegistry()
        for tool in create_comfyui_tools():
            registry.register_tool(tool)
        _registry = registry
        logger.info(f"Registered {len(registry.list_tools())} ComfyUI tools")
    return _registry


def reset_registry() -> None:
    """Forget the environment-configured registry (e.g. after config changes)."""
    global _registry
    _registry = None


def get_comfyui_tools() -> List[Dict[str, Any]]:
    """
    Get ComfyUI tool definitions in Anthropic Claude format.

    Returns:
        List of tool definitions
    """
    return _ensure_registry().get_all_tools()


async def execute_comfyui_tool(tool_name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """
    Execute a ComfyUI tool by name.

    Raises:
        ValueError: If tool name is not recognized
    """
    return await _ensure_registry().execute_tool(tool_name, arguments)
