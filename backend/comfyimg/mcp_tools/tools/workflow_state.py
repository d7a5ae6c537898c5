"""
Workflow State

Read-only state shared by the image and info tools: the parsed template
workflow, its resolved role bindings and the ComfyUI client.
"""

from typing import Optional

from ...config import ComfyImgConfig
from ...workflow.graph import WorkflowGraph
from ...workflow.resolver import NodeTaxonomy, RoleBindings, parse_node_map, resolve
from .comfy_client import ComfyClient
from ....utils.logger import get_logger

logger = get_logger(__name__)


class WorkflowState:
    """
    Template workflow plus role bindings, resolved once at construction.

    Nothing here is mutated after ``__init__``, so one instance can serve any
    number of concurrent tool calls.
    """

    def __init__(self, config: ComfyImgConfig, client: Optional[ComfyClient] = None):
        config.validate()
        self.config = config
        self.client = client or ComfyClient.from_config(config)

        if config.override:
            self.graph = WorkflowGraph()
            self.bindings = RoleBindings()
            logger.info("Workflow resolution skipped (override mode)")
            return

        self.graph = WorkflowGraph.from_json(config.workflow)
        self.bindings = resolve(
            self.graph,
            parse_node_map(config.node_map),
            taxonomy=config.taxonomy,
        )
        logger.info("Workflow loaded", node_count=len(self.graph))

    @property
    def taxonomy(self) -> NodeTaxonomy:
        return self.config.taxonomy
