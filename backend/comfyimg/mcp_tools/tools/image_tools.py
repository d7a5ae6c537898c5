"""
Image Generation Tool

Generates images with the configured ComfyUI workflow. The input schema only
offers the parameters whose nodes were found in the workflow.
"""

import asyncio
import base64
from typing import Any, Dict, List

import aiohttp

from ...errors import TransportError
from ...workflow.binder import GenerationRequest, bind
from ...workflow.resolver import Role
from .base import BaseTool
from .comfy_client import GeneratedImage
from .workflow_state import WorkflowState
from ....utils.logger import get_logger

logger = get_logger(__name__)

REQUEST_FAILED = "Error making API request."

DISPLAY_MESSAGE = (
    "ComfyUI displayed one or more images. All images are already plainly visible, "
    "so don't repeat the descriptions in detail. Do not list download links as they "
    "are available in the UI already. The user may download the images by clicking "
    "on them, but do not mention anything about downloading to the user."
)

# Optional schema properties, each offered only when its role resolved
OPTIONAL_PROPERTIES = (
    (Role.NEGATIVE, "negativePrompt", {
        "type": "string",
        "description": "Keywords we want to exclude from the final image, using at least "
                       "7 keywords to accurately describe the image, separated by comma.",
    }),
    (Role.SEED, "seed", {
        "type": "integer",
        "description": "Seed for image generation. Specifying the same seed will generate "
                       "the same image, given the same prompt. Useful for trying varying "
                       "prompts without completely changing the image. Usually, you "
                       "shouldn't specify a seed explicitly.",
    }),
    (Role.MODEL, "model", {
        "type": "string",
        "description": "Image generation model to use. MUST be any model listed by "
                       "'comfyui-info'. Generally, only use this parameter if the user "
                       "requests a specific model.",
    }),
    (Role.WIDTH, "width", {
        "type": "integer",
        "minimum": 512,
        "maximum": 2048,
        "default": 512,
        "description": "Width of the image to generate. MUST be between 512 and 2048. "
                       "This parameter is optional, the default is 512.",
    }),
    (Role.HEIGHT, "height", {
        "type": "integer",
        "minimum": 512,
        "maximum": 2048,
        "default": 512,
        "description": "Height of the image to generate. MUST be between 512 and 2048. "
                       "This parameter is optional, the default is 512.",
    }),
    (Role.SAMPLER_NAME, "sampler", {
        "type": "string",
        "description": "The sampler to use for image generation. MUST be any sampler "
                       "listed by 'comfyui-info'. Generally, only use this parameter if "
                       "the user requests a specific sampler.",
    }),
    (Role.SCHEDULER, "scheduler", {
        "type": "string",
        "description": "The scheduler to use for image generation. MUST be any scheduler "
                       "listed by 'comfyui-info'. Generally, only use this parameter if "
                       "the user requests a specific scheduler.",
    }),
    (Role.CFG, "cfg", {
        "type": "integer",
        "minimum": 0,
        "maximum": 20,
        "default": 4,
        "description": "Controls how creative the model is / how much it adheres to the "
                       "prompts. The higher, the more prompt adherence. Default is 4. "
                       "This parameter is optional.",
    }),
    (Role.STEPS, "steps", {
        "type": "integer",
        "minimum": 5,
        "maximum": 40,
        "description": "Controls the number of generation steps to run. More steps can "
                       "result in higher quality images. Usually, you shouldn't specify "
                       "steps explicitly. Should be 40 at max.",
    }),
)


def image_block(image: GeneratedImage) -> Dict[str, Any]:
    """Anthropic base64 image content block."""
    return {
        "type": "image",
        "source": {
            "type": "base64",
            "media_type": image.content_type,
            "data": base64.b64encode(image.data).decode("utf-8"),
        },
    }


class ComfyUIImageTool(BaseTool):
    """Generate images with the configured ComfyUI workflow."""

    name = "comfyui-img"
    description = (
        "You can generate images using text with 'stable-diffusion-comfyui'. "
        "This tool is exclusively for visual content."
    )

    def __init__(self, state: WorkflowState):
        self.state = state
        self._schema = self._build_schema()

    def _build_schema(self) -> Dict[str, Any]:
        properties: Dict[str, Any] = {
            "prompt": {
                "type": "string",
                "description": "Detailed keywords to describe the subject, using at least 7 "
                               "keywords to accurately describe the image, separated by comma.",
            },
        }
        for role, key, spec in OPTIONAL_PROPERTIES:
            if self.state.bindings.has(role):
                properties[key] = dict(spec)

        return {
            "type": "object",
            "properties": properties,
            "required": ["prompt"],
        }

    def get_schema(self) -> Dict[str, Any]:
        return self._schema

    async def execute(self, **kwargs) -> Dict[str, Any]:
        logger.info("comfyui-img called", arguments=sorted(kwargs.keys()))

        error = self.validate_arguments(kwargs)
        if error:
            return {"success": False, "error": error}

        if self.state.bindings.positive is None:
            return {"success": False, "error": "ComfyUI workflow is not configured."}

        request = GenerationRequest.from_arguments(kwargs)
        workflow = bind(self.state.graph, self.state.bindings, request)

        try:
            images = await self.state.client.run_workflow(workflow)
        except (TransportError, aiohttp.ClientError, asyncio.TimeoutError):
            logger.exception("ComfyUI image generation failed")
            return {"success": False, "error": REQUEST_FAILED}

        content: List[Dict[str, Any]] = [{"type": "text", "text": DISPLAY_MESSAGE}]
        content.extend(image_block(image) for image in images)

        return {
            "success": True,
            "message": DISPLAY_MESSAGE,
            "image_count": len(images),
            "content": content,
        }
