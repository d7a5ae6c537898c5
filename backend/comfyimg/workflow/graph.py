"""
Workflow Graph Model

Typed, read-only view over a ComfyUI workflow in API format:

    {
        "node_id": {
            "class_type": "NodeClassName",
            "inputs": {
                "param1": value,                     # literal
                "param2": ["source_node_id", 0]      # reference to another node's output
            },
            "_meta": {"title": "Display Title"}
        }
    }

The graph is loaded once and never mutated. Every request works on a fresh
plain-dict copy produced by ``WorkflowGraph.to_api_dict()``.
"""

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from ..errors import ConfigurationError


@dataclass(frozen=True)
class Literal:
    """An input given directly as a value."""

    value: Any

    @property
    def is_scalar(self) -> bool:
        """True for values that are not JSON objects or arrays (``None`` included)."""
        return not isinstance(self.value, (dict, list))

    def to_api(self) -> Any:
        return copy.deepcopy(self.value)


@dataclass(frozen=True)
class Reference:
    """An input wired to output ``slot`` of node ``node_id``.

    ``raw_node_id`` keeps the id exactly as written (int or str) so untouched
    inputs serialize back unchanged; ``node_id`` is its string form for lookups.
    """

    node_id: str
    slot: int
    raw_node_id: Any = None

    def to_api(self) -> List[Any]:
        node_id = self.node_id if self.raw_node_id is None else self.raw_node_id
        return [node_id, self.slot]


InputValue = Union[Literal, Reference]


def parse_input(value: Any) -> InputValue:
    """Classify a raw input value as a Literal or a Reference."""
    if (
        isinstance(value, list)
        and len(value) == 2
        and isinstance(value[0], (str, int))
        and not isinstance(value[0], bool)
        and isinstance(value[1], int)
        and not isinstance(value[1], bool)
    ):
        return Reference(node_id=str(value[0]), slot=value[1], raw_node_id=value[0])
    return Literal(value)


@dataclass(frozen=True)
class Node:
    """A single node of the workflow graph."""

    node_id: str
    class_type: str
    inputs: Mapping[str, InputValue] = field(default_factory=dict)
    extra: Mapping[str, Any] = field(default_factory=dict)

    def reference(self, input_name: str) -> Optional[str]:
        """Id of the node wired into ``input_name``, or None."""
        value = self.inputs.get(input_name)
        if isinstance(value, Reference):
            return value.node_id
        return None

    def has_scalar(self, input_name: str) -> bool:
        """Whether ``input_name`` is present as a scalar literal."""
        value = self.inputs.get(input_name)
        return isinstance(value, Literal) and value.is_scalar

    def to_api(self) -> Dict[str, Any]:
        data = copy.deepcopy(dict(self.extra))
        data["class_type"] = self.class_type
        data["inputs"] = {name: value.to_api() for name, value in self.inputs.items()}
        return data


class WorkflowGraph:
    """Ordered, immutable collection of nodes keyed by id."""

    def __init__(self, nodes: Optional[Mapping[str, Node]] = None):
        self._nodes: Dict[str, Node] = dict(nodes or {})

    @classmethod
    def from_json(cls, text: str) -> "WorkflowGraph":
        """Parse workflow JSON text."""
        try:
            data = json.loads(text)
        except (TypeError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Workflow is not valid JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Any) -> "WorkflowGraph":
        """Build a graph from an already decoded API-format workflow."""
        if not isinstance(data, dict):
            raise ConfigurationError("Workflow must be a JSON object of nodes")

        if isinstance(data.get("nodes"), list) and "links" in data:
            raise ConfigurationError(
                "Workflow looks like a UI export; save it with 'Save (API Format)' instead"
            )

        nodes: Dict[str, Node] = {}
        for raw_id, raw_node in data.items():
            node_id = str(raw_id)
            if not isinstance(raw_node, dict):
                raise ConfigurationError(f"Node {node_id} must be a JSON object")

            raw_inputs = raw_node.get("inputs")
            if raw_inputs is None:
                raw_inputs = {}
            if not isinstance(raw_inputs, dict):
                raise ConfigurationError(f"Node {node_id}: 'inputs' must be a JSON object")

            class_type = raw_node.get("class_type")
            if not isinstance(class_type, str):
                class_type = ""

            nodes[node_id] = Node(
                node_id=node_id,
                class_type=class_type,
                inputs={name: parse_input(value) for name, value in raw_inputs.items()},
                extra={k: v for k, v in raw_node.items() if k not in ("class_type", "inputs")},
            )

        return cls(nodes)

    def get(self, node_id: Optional[str]) -> Optional[Node]:
        if node_id is None:
            return None
        return self._nodes.get(node_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def node_ids(self) -> List[str]:
        return list(self._nodes.keys())

    def to_api_dict(self) -> Dict[str, Dict[str, Any]]:
        """Fresh deep copy in ComfyUI API format, safe to mutate."""
        return {node_id: node.to_api() for node_id, node in self._nodes.items()}
