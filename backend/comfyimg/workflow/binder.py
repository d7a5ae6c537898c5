"""
Parameter Binder

Writes one request's parameters into a fresh copy of the template workflow
using the resolved role bindings.
"""

import random
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..errors import BindingError
from .graph import WorkflowGraph
from .resolver import ROLE_FIELDS, Role, RoleBindings

MAX_SEED = 2**32 - 1


@dataclass(frozen=True)
class GenerationRequest:
    """Parameters of a single image generation call."""

    prompt: str
    negativePrompt: Optional[str] = None
    seed: Optional[int] = None
    model: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    sampler: Optional[str] = None
    scheduler: Optional[str] = None
    cfg: Optional[int] = None
    steps: Optional[int] = None

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any]) -> "GenerationRequest":
        """Build a request from tool arguments, ignoring unknown keys."""
        known = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in arguments.items() if k in known})


# Optional request field -> role it is written through
REQUEST_ROLES: Dict[str, Role] = {
    "negativePrompt": Role.NEGATIVE,
    "model": Role.MODEL,
    "sampler": Role.SAMPLER_NAME,
    "scheduler": Role.SCHEDULER,
    "cfg": Role.CFG,
    "steps": Role.STEPS,
    "width": Role.WIDTH,
    "height": Role.HEIGHT,
}


def random_seed(rng: Optional[random.Random] = None) -> int:
    """Uniform unsigned 32-bit seed."""
    return (rng or random).randint(0, MAX_SEED)


def _write(workflow: Dict[str, Any], node_id: str, input_name: str, value: Any) -> None:
    try:
        inputs = workflow[node_id]["inputs"]
    except (KeyError, TypeError) as e:
        raise BindingError(f"Node {node_id} has no inputs to write '{input_name}' into") from e
    if not isinstance(inputs, dict):
        raise BindingError(f"Node {node_id}: inputs is not an object")
    inputs[input_name] = value


def bind(
    graph: WorkflowGraph,
    bindings: RoleBindings,
    request: GenerationRequest,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """
    Produce a ready-to-submit workflow for ``request``.

    The template graph is never modified; the returned dict is a new copy.
    Optional fields are only written when their role resolved.

    Raises:
        BindingError: If a resolved node is missing from the copy.
    """
    if bindings.positive is None:
        raise BindingError("No positive prompt node to bind the prompt into")

    workflow = graph.to_api_dict()

    _write(workflow, bindings.positive, ROLE_FIELDS[Role.POSITIVE], request.prompt)

    for attr, role in REQUEST_ROLES.items():
        value = getattr(request, attr)
        node_id = bindings.get(role)
        if value is None or node_id is None:
            continue
        _write(workflow, node_id, ROLE_FIELDS[role], value)

    if bindings.seed is not None and bindings.seed_field is not None:
        seed = request.seed if request.seed is not None else random_seed(rng)
        _write(workflow, bindings.seed, bindings.seed_field, seed)

    return workflow
