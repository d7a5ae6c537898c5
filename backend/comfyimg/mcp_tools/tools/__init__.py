"""
ComfyUI Agent Tools

Individual tool modules for image generation against a ComfyUI server.
"""

from .base import ToolRegistry, BaseTool
from .comfy_client import ComfyClient, ImageRef, GeneratedImage
from .workflow_state import WorkflowState
from .image_tools import ComfyUIImageTool
from .info_tools import ComfyUIInfoTool

__all__ = [
    "ToolRegistry",
    "BaseTool",
    "ComfyClient",
    "ImageRef",
    "GeneratedImage",
    "WorkflowState",
    "ComfyUIImageTool",
    "ComfyUIInfoTool",
]
