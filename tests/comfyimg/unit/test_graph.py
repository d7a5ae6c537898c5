"""
Unit tests for the workflow graph model
"""

import json

import pytest

from backend.comfyimg.errors import ConfigurationError
from backend.comfyimg.workflow.graph import Literal, Reference, WorkflowGraph, parse_input


def test_parse_input_classifies_references_and_literals():
    """Two-element [id, slot] lists are references, everything else literal"""
    assert parse_input(["4", 1]) == Reference(node_id="4", slot=1, raw_node_id="4")
    assert parse_input([4, 0]) == Reference(node_id="4", slot=0, raw_node_id=4)
    assert parse_input([4, 0]).to_api() == [4, 0]

    assert parse_input("euler") == Literal("euler")
    assert parse_input(7.5) == Literal(7.5)
    assert parse_input(None) == Literal(None)
    assert parse_input(["a", "b"]) == Literal(["a", "b"])
    assert parse_input([True, 0]) == Literal([True, 0])


def test_literal_scalar_detection():
    assert Literal("text").is_scalar
    assert Literal(None).is_scalar
    assert Literal(0).is_scalar
    assert not Literal({"a": 1}).is_scalar
    assert not Literal([1, 2, 3]).is_scalar


def test_from_dict_preserves_declared_order(txt2img_workflow):
    graph = WorkflowGraph.from_dict(txt2img_workflow)

    assert graph.node_ids() == ["3", "4", "5", "6", "7", "8", "9"]
    assert len(graph) == 7
    assert "6" in graph
    assert graph.get("6").class_type == "CLIPTextEncode"
    assert graph.get("3").reference("positive") == "6"
    assert graph.get("3").reference("seed") is None
    assert graph.get("missing") is None
    assert graph.get(None) is None


def test_has_scalar(txt2img_workflow):
    node = WorkflowGraph.from_dict(txt2img_workflow).get("3")

    assert node.has_scalar("seed")
    assert node.has_scalar("sampler_name")
    assert not node.has_scalar("model")  # reference
    assert not node.has_scalar("nonexistent")


def test_to_api_dict_round_trips_the_template(txt2img_workflow):
    graph = WorkflowGraph.from_json(json.dumps(txt2img_workflow))

    assert graph.to_api_dict() == txt2img_workflow


def test_to_api_dict_returns_independent_copies(txt2img_workflow):
    graph = WorkflowGraph.from_dict(txt2img_workflow)

    first = graph.to_api_dict()
    first["6"]["inputs"]["text"] = "changed"
    first["6"]["_meta"]["title"] = "changed"

    second = graph.to_api_dict()
    assert second["6"]["inputs"]["text"] == "beautiful landscape"
    assert second["6"]["_meta"]["title"] == "Positive"


def test_missing_inputs_treated_as_empty():
    graph = WorkflowGraph.from_dict({"1": {"class_type": "Note"}})

    assert dict(graph.get("1").inputs) == {}
    assert graph.to_api_dict() == {"1": {"class_type": "Note", "inputs": {}}}


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[1, 2, 3]",
        '{"1": "not a node"}',
        '{"1": {"class_type": "KSampler", "inputs": [1, 2]}}',
    ],
)
def test_invalid_workflows_are_configuration_errors(text):
    with pytest.raises(ConfigurationError):
        WorkflowGraph.from_json(text)


def test_ui_format_export_is_rejected():
    ui_export = {"last_node_id": 9, "nodes": [{"id": 3, "type": "KSampler"}], "links": []}

    with pytest.raises(ConfigurationError, match="API Format"):
        WorkflowGraph.from_dict(ui_export)


def test_to_api_dict_keeps_int_ids_and_int_pairs(txt2img_workflow):
    """Int-keyed edges and literal int pairs serialize back exactly as written"""
    txt2img_workflow["8"]["inputs"]["samples"] = [3, 0]
    txt2img_workflow["9"]["inputs"]["custom_pair"] = [512, 768]

    graph = WorkflowGraph.from_json(json.dumps(txt2img_workflow))

    assert graph.get("8").reference("samples") == "3"
    api = graph.to_api_dict()
    assert api["8"]["inputs"]["samples"] == [3, 0]
    assert api["9"]["inputs"]["custom_pair"] == [512, 768]
    assert api == txt2img_workflow
