"""
ComfyUI agent tools: image generation and server information.
"""

from .comfyui_tools import create_comfyui_tools, get_comfyui_tools, execute_comfyui_tool

__all__ = ["create_comfyui_tools", "get_comfyui_tools", "execute_comfyui_tool"]
