"""
ComfyUI Information Tool

Lists the models, samplers and schedulers the server accepts for the node
types used by the configured workflow.
"""

import asyncio
from typing import Any, Dict, List, Optional

import aiohttp

from ...errors import TransportError
from ...workflow.graph import WorkflowGraph
from ...workflow.resolver import DEFAULT_TAXONOMY, NodeTaxonomy, Role, RoleBindings
from .base import BaseTool
from .workflow_state import WorkflowState
from ....utils.logger import get_logger

logger = get_logger(__name__)

INFO_TYPES = ("models", "samplers", "schedulers")


def extract_choices(object_info: Any, class_type: str, input_name: str) -> List[str]:
    """
    Enumerated choices of ``class_type``'s ``input_name`` from /object_info.

    Handles the classic ``[["a", "b"], {...}]`` combo declaration and the newer
    ``["COMBO", {"options": ["a", "b"]}]`` one. Anything else yields ``[]``.
    """
    if not isinstance(object_info, dict):
        return []
    node_info = object_info.get(class_type)
    if not isinstance(node_info, dict) or not isinstance(node_info.get("input"), dict):
        return []

    for section in ("required", "optional"):
        inputs = node_info["input"].get(section)
        if not isinstance(inputs, dict) or input_name not in inputs:
            continue

        declaration = inputs[input_name]
        if not isinstance(declaration, list) or not declaration:
            return []

        head = declaration[0]
        if isinstance(head, list):
            return [str(choice) for choice in head]
        if head == "COMBO" and len(declaration) > 1 and isinstance(declaration[1], dict):
            options = declaration[1].get("options")
            if isinstance(options, list):
                return [str(choice) for choice in options]
        return []

    return []


def query_choices(
    object_info: Any,
    graph: WorkflowGraph,
    bindings: RoleBindings,
    kind: str,
    taxonomy: Optional[NodeTaxonomy] = None,
) -> List[str]:
    """Choices for ``kind`` (models, samplers or schedulers)."""
    taxonomy = taxonomy or DEFAULT_TAXONOMY
    lookups = {
        "models": (Role.MODEL, taxonomy.default_model_class, "ckpt_name"),
        "samplers": (Role.SAMPLER_NAME, taxonomy.default_sampler_class, "sampler_name"),
        "schedulers": (Role.SAMPLER, taxonomy.default_sampler_class, "scheduler"),
    }
    if kind not in lookups:
        raise ValueError(f"Unknown info type: {kind}")

    role, fallback_class, input_name = lookups[kind]
    node = graph.get(bindings.get(role))
    class_type = node.class_type if node is not None and node.class_type else fallback_class
    return extract_choices(object_info, class_type, input_name)


class ComfyUIInfoTool(BaseTool):
    """Get models, samplers or schedulers available on the ComfyUI server."""

    name = "comfyui-info"
    description = (
        "You can use the 'comfyui-info' tool to get additional information about "
        "comfyui, such as available models or samplers."
    )

    def __init__(self, state: WorkflowState):
        self.state = state

    def get_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "info_type": {
                    "type": "string",
                    "enum": list(INFO_TYPES),
                    "description": (
                        "The type of information you want to get. Can be any of the following:\n"
                        "- 'models': Returns a list of all available image generation models.\n"
                        "- 'samplers': Returns a list of all available samplers.\n"
                        "- 'schedulers': Returns a list of all available schedulers."
                    ),
                },
            },
            "required": ["info_type"],
        }

    async def execute(self, info_type: str = "", **kwargs) -> Dict[str, Any]:
        logger.info("comfyui-info called", info_type=info_type)

        error = self.validate_arguments({"info_type": info_type or None})
        if error:
            return {"success": False, "error": error}

        try:
            object_info = await self.state.client.get_object_info()
        except (TransportError, aiohttp.ClientError, asyncio.TimeoutError):
            logger.exception("Failed to get object_info")
            return {"success": False, "error": "Error making API request."}

        choices = query_choices(
            object_info,
            self.state.graph,
            self.state.bindings,
            info_type,
            self.state.taxonomy,
        )
        return {"success": True, info_type: choices}
