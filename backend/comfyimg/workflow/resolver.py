"""
Workflow Node Resolver

Finds the nodes of an arbitrary workflow that carry the parameters a request
may rewrite (prompts, seed, size, sampler settings, model). Each role is taken
from the explicit node map when declared, otherwise derived from the sampler
node's wiring, and then validated against the candidate node's inputs.

Resolution runs once per workflow; the resulting ``RoleBindings`` is immutable
and shared by every request.
"""

import json
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from ..errors import ConfigurationError
from ...utils.logger import get_logger
from .graph import Node, WorkflowGraph

logger = get_logger(__name__)


class Role(str, Enum):
    """Semantic parameters that can be located inside a workflow."""

    SAMPLER = "sampler"
    MODEL = "model"
    POSITIVE = "positive"
    NEGATIVE = "negative"
    SEED = "seed"
    SAMPLER_NAME = "samplerName"
    STEPS = "steps"
    WIDTH = "width"
    HEIGHT = "height"
    SCHEDULER = "scheduler"
    CFG = "cfg"


# Literal input that must exist on a role's node (seed is handled separately)
ROLE_FIELDS: Dict[Role, str] = {
    Role.MODEL: "ckpt_name",
    Role.POSITIVE: "text",
    Role.NEGATIVE: "text",
    Role.SAMPLER_NAME: "sampler_name",
    Role.STEPS: "steps",
    Role.WIDTH: "width",
    Role.HEIGHT: "height",
    Role.SCHEDULER: "scheduler",
    Role.CFG: "cfg",
}

SEED_FIELDS: Tuple[str, ...] = ("seed", "noise_seed")


@dataclass(frozen=True)
class NodeTaxonomy:
    """ComfyUI node class names the resolver keys off."""

    sampler_types: Tuple[str, ...] = ("SamplerCustom", "KSampler", "KSamplerAdvanced")
    # Samplers whose step count lives on the node wired into ``sigmas``
    sigmas_sampler_types: Tuple[str, ...] = ("CustomSampler",)
    # Samplers whose sampler_name lives on the node wired into ``sampler``
    sampler_select_types: Tuple[str, ...] = ("SamplerCustom",)
    default_model_class: str = "CheckpointLoaderSimple"
    default_sampler_class: str = "KSampler"


DEFAULT_TAXONOMY = NodeTaxonomy()


@dataclass(frozen=True)
class RoleBindings:
    """Resolved node id per role; None means the role is absent."""

    sampler: Optional[str] = None
    model: Optional[str] = None
    positive: Optional[str] = None
    negative: Optional[str] = None
    seed: Optional[str] = None
    samplerName: Optional[str] = None
    steps: Optional[str] = None
    width: Optional[str] = None
    height: Optional[str] = None
    scheduler: Optional[str] = None
    cfg: Optional[str] = None
    seed_field: Optional[str] = None

    def get(self, role: Role) -> Optional[str]:
        return getattr(self, role.value)

    def has(self, role: Role) -> bool:
        return self.get(role) is not None

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def parse_node_map(text: Optional[str]) -> Dict[Role, str]:
    """
    Parse the optional node map JSON, e.g. ``{"positive": "6", "width": "5"}``.

    Empty values count as undeclared; unknown role names are ignored.
    """
    if not text or not text.strip():
        return {}

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Node map is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError("Node map must be a JSON object of role -> node id")

    node_map: Dict[Role, str] = {}
    for key, value in data.items():
        try:
            role = Role(key)
        except ValueError:
            logger.warning("Ignoring unknown node map role", role=key)
            continue
        if value is None or value == "":
            continue
        node_map[role] = str(value)
    return node_map


class NodeResolver:
    """Computes the role binding table for one workflow graph."""

    def __init__(
        self,
        graph: WorkflowGraph,
        node_map: Optional[Mapping[Role, str]] = None,
        taxonomy: NodeTaxonomy = DEFAULT_TAXONOMY,
    ):
        self.graph = graph
        self.node_map = dict(node_map or {})
        self.taxonomy = taxonomy
        self.sampler_id = self._find_sampler()

    # -- structural derivation -------------------------------------------

    def _find_sampler(self) -> Optional[str]:
        mapped = self.node_map.get(Role.SAMPLER)
        if mapped is not None:
            if mapped not in self.graph:
                logger.info("Mapped sampler node not in workflow", node_id=mapped)
                return None
            return mapped

        for node in self.graph:
            if node.class_type in self.taxonomy.sampler_types:
                return node.node_id

        logger.info("Sampler node not found")
        return None

    def _sampler(self) -> Optional[Node]:
        return self.graph.get(self.sampler_id)

    def _derive(self, role: Role) -> Optional[str]:
        sampler = self._sampler()
        if sampler is None:
            return None

        if role in (Role.POSITIVE, Role.NEGATIVE):
            return sampler.reference(role.value)
        if role is Role.MODEL:
            return sampler.reference("model")
        if role in (Role.WIDTH, Role.HEIGHT):
            return sampler.reference("latent_image")
        if role is Role.STEPS and sampler.class_type in self.taxonomy.sigmas_sampler_types:
            return sampler.reference("sigmas")
        if role is Role.SAMPLER_NAME and sampler.class_type in self.taxonomy.sampler_select_types:
            return sampler.reference("sampler")
        return sampler.node_id

    def candidate(self, role: Role) -> Optional[str]:
        """Node id for a role before validation."""
        if role is Role.SAMPLER:
            return self.sampler_id
        mapped = self.node_map.get(role)
        if mapped is not None:
            return mapped
        return self._derive(role)

    # -- validation ------------------------------------------------------

    def resolve_role(self, role: Role) -> Optional[str]:
        """Validated node id for a non-seed role."""
        node_id = self.candidate(role)
        if role is Role.SAMPLER:
            return node_id

        input_name = ROLE_FIELDS[role]
        node = self.graph.get(node_id)
        if node is None or not node.has_scalar(input_name):
            logger.info(
                "Role node has no usable input",
                role=role.value,
                node_id=node_id,
                input=input_name,
            )
            return None
        return node_id

    def resolve_seed(self) -> Tuple[Optional[str], Optional[str]]:
        """Seed node id and the input name (``seed`` or ``noise_seed``) it uses."""
        node_id = self.candidate(Role.SEED)
        node = self.graph.get(node_id)
        if node is not None:
            for input_name in SEED_FIELDS:
                if node.has_scalar(input_name):
                    return node_id, input_name

        logger.info("Seed node has no seed or noise_seed input", node_id=node_id)
        return None, None

    def resolve(self) -> RoleBindings:
        values = {role.value: self.resolve_role(role) for role in Role if role is not Role.SEED}
        seed_node, seed_field = self.resolve_seed()
        return RoleBindings(seed=seed_node, seed_field=seed_field, **values)


def resolve(
    graph: WorkflowGraph,
    node_map: Optional[Mapping[Role, str]] = None,
    override: bool = False,
    taxonomy: NodeTaxonomy = DEFAULT_TAXONOMY,
) -> RoleBindings:
    """
    Resolve the role binding table for ``graph``.

    Raises:
        ConfigurationError: If no valid positive prompt node exists (unless
            ``override`` is set, in which case every role is absent).
    """
    if override:
        return RoleBindings()

    bindings = NodeResolver(graph, node_map, taxonomy).resolve()
    if bindings.positive is None:
        raise ConfigurationError("Couldn't find valid positive prompt node id")

    logger.info(
        "Workflow roles resolved",
        **{k: v for k, v in bindings.to_dict().items() if v is not None},
    )
    return bindings
