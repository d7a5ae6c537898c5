"""
ComfyImg Configuration

Loads tool configuration from environment variables (and an optional .env
file) and provides defaults.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigurationError
from .workflow.resolver import DEFAULT_TAXONOMY, NodeTaxonomy


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


@dataclass
class ComfyImgConfig:
    """Configuration for the ComfyUI image tools"""

    # ComfyUI server
    base_url: str = ""
    api_key: str = ""

    # Workflow in API format, and optional role -> node id map (both JSON text)
    workflow: str = ""
    node_map: str = "{}"

    # Build the tools without a server or workflow (all roles absent)
    override: bool = False

    # Timeouts (seconds)
    ws_open_timeout: float = 5.0
    completion_timeout: float = 300.0
    http_timeout: float = 30.0

    taxonomy: NodeTaxonomy = field(default_factory=lambda: DEFAULT_TAXONOMY)

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, override: bool = False) -> "ComfyImgConfig":
        """Load configuration from environment variables"""
        env_path = Path(env_file) if env_file else Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        workflow = os.getenv("COMFYUI_WORKFLOW", "")
        workflow_file = os.getenv("COMFYUI_WORKFLOW_FILE")
        if not workflow and workflow_file:
            try:
                workflow = Path(workflow_file).read_text(encoding="utf-8")
            except OSError as e:
                raise ConfigurationError(f"Cannot read COMFYUI_WORKFLOW_FILE: {e}") from e

        taxonomy = NodeTaxonomy(
            sampler_types=_env_list("COMFYUI_SAMPLER_TYPES", DEFAULT_TAXONOMY.sampler_types),
            sigmas_sampler_types=_env_list(
                "COMFYUI_SIGMAS_SAMPLER_TYPES", DEFAULT_TAXONOMY.sigmas_sampler_types
            ),
            sampler_select_types=_env_list(
                "COMFYUI_SAMPLER_SELECT_TYPES", DEFAULT_TAXONOMY.sampler_select_types
            ),
            default_model_class=os.getenv(
                "COMFYUI_DEFAULT_MODEL_CLASS", DEFAULT_TAXONOMY.default_model_class
            ),
            default_sampler_class=os.getenv(
                "COMFYUI_DEFAULT_SAMPLER_CLASS", DEFAULT_TAXONOMY.default_sampler_class
            ),
        )

        return cls(
            base_url=os.getenv("COMFYUI_URL", ""),
            api_key=os.getenv("COMFYUI_API_KEY", ""),
            workflow=workflow,
            node_map=os.getenv("COMFYUI_NODE_MAP", "{}"),
            override=override,
            ws_open_timeout=_env_float("COMFYUI_WS_OPEN_TIMEOUT", 5.0),
            completion_timeout=_env_float("COMFYUI_COMPLETION_TIMEOUT", 300.0),
            http_timeout=_env_float("COMFYUI_HTTP_TIMEOUT", 30.0),
            taxonomy=taxonomy,
            log_level=os.getenv("COMFYIMG_LOG_LEVEL", "INFO"),
            log_dir=os.getenv("COMFYIMG_LOG_DIR") or None,
        )

    def validate(self) -> None:
        """Validate configuration on startup (fail fast if invalid)"""
        if not self.override:
            if not self.base_url:
                raise ConfigurationError("Missing COMFYUI_URL environment variable.")
            if not self.workflow:
                raise ConfigurationError("Missing COMFYUI_WORKFLOW environment variable.")

        if self.base_url and not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError("COMFYUI_URL must start with http:// or https://")

        for name in ("ws_open_timeout", "completion_timeout", "http_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be greater than 0")

        if not self.taxonomy.sampler_types:
            raise ConfigurationError("At least one sampler node type is required")
