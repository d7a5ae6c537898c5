"""
Workflow graph model, node role resolution and per-request parameter binding.
"""

from .graph import Literal, Reference, Node, WorkflowGraph
from .resolver import (
    Role,
    RoleBindings,
    NodeTaxonomy,
    NodeResolver,
    DEFAULT_TAXONOMY,
    parse_node_map,
    resolve,
)
from .binder import GenerationRequest, bind, random_seed, MAX_SEED

__all__ = [
    "Literal",
    "Reference",
    "Node",
    "WorkflowGraph",
    "Role",
    "RoleBindings",
    "NodeTaxonomy",
    "NodeResolver",
    "DEFAULT_TAXONOMY",
    "parse_node_map",
    "resolve",
    "GenerationRequest",
    "bind",
    "random_seed",
    "MAX_SEED",
]
