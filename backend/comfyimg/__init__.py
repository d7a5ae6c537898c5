"""
ComfyImg

Agent tools that generate images through a ComfyUI server using a
user-supplied workflow, rewriting only the nodes that carry the prompt,
seed, size, sampler settings and model.
"""

__version__ = "1.0.0"

from .config import ComfyImgConfig
from .errors import ComfyImgError, ConfigurationError, TransportError, BindingError
from .workflow import (
    WorkflowGraph,
    Role,
    RoleBindings,
    NodeTaxonomy,
    GenerationRequest,
    resolve,
    bind,
)
from .mcp_tools import create_comfyui_tools, get_comfyui_tools, execute_comfyui_tool

__all__ = [
    # Config & errors
    "ComfyImgConfig",
    "ComfyImgError",
    "ConfigurationError",
    "TransportError",
    "BindingError",
    # Workflow core
    "WorkflowGraph",
    "Role",
    "RoleBindings",
    "NodeTaxonomy",
    "GenerationRequest",
    "resolve",
    "bind",
    # Tools
    "create_comfyui_tools",
    "get_comfyui_tools",
    "execute_comfyui_tool",
    # Meta
    "__version__",
]
