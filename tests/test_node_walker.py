"""Tests for tree traversal, depth limits and SVG collapsing."""

import json

import pytest

from Services.design_extractor import simplify_raw_figma_object
from Services.extractors import ALL_EXTRACTORS, LAYOUT_ONLY, collapse_svg_containers
from Services.node_walker import extract_from_design
from tests.factories import frame, rect


def _deep_tree():
    return [frame("1", [frame("2", [frame("3", [{"id": "4", "name": "T", "type": "TEXT"}])])])]


def _max_depth(nodes, depth=0):
    return max(
        (_max_depth(n["children"], depth + 1) if n.get("children") else depth for n in nodes),
        default=depth,
    )


def test_seed_fields_and_vector_marker() -> None:
    nodes, _ = extract_from_design([{"id": "1", "name": "v", "type": "VECTOR"}], LAYOUT_ONLY)
    assert nodes == [{"id": "1", "name": "v", "type": "IMAGE-SVG"}]


def test_max_depth_zero_drops_children() -> None:
    nodes, _ = extract_from_design(_deep_tree(), LAYOUT_ONLY, max_depth=0)
    assert "children" not in nodes[0]


@pytest.mark.parametrize("max_depth", [1, 2, 3])
def test_max_depth_bounds_tree(max_depth) -> None:
    nodes, _ = extract_from_design(_deep_tree(), LAYOUT_ONLY, max_depth=max_depth)
    assert _max_depth(nodes) == max_depth


def test_sibling_order_preserved() -> None:
    children = [{"id": str(i), "name": f"n{i}", "type": "TEXT"} for i in range(5)]
    nodes, _ = extract_from_design([frame("root", children)], ALL_EXTRACTORS)
    assert [c["id"] for c in nodes[0]["children"]] == ["0", "1", "2", "3", "4"]


def test_requires_an_extractor() -> None:
    with pytest.raises(ValueError):
        extract_from_design([], [])


def test_invisible_grandchildren_are_kept() -> None:
    hidden = {"id": "h", "name": "hidden", "type": "TEXT", "visible": False}
    nodes, _ = extract_from_design([frame("1", [hidden])], LAYOUT_ONLY)
    assert nodes[0]["children"][0]["id"] == "h"


def test_extractors_receive_parent() -> None:
    seen = []

    class Recorder:
        name = "recorder"

        def extract(self, node, result, context):
            seen.append((node["id"], (context.parent or {}).get("id"), context.depth))

    extract_from_design([frame("1", [rect("2")])], [Recorder()])
    assert seen == [("1", None, 0), ("2", "1", 1)]


class TestSvgCollapsing:
    def test_container_of_vectors_becomes_marker(self) -> None:
        nodes, _ = extract_from_design(
            [frame("1", [rect("2"), rect("3", type="ELLIPSE")])],
            LAYOUT_ONLY,
            after_children=collapse_svg_containers,
        )
        assert nodes == [{"id": "1", "name": "Frame", "type": "IMAGE-SVG"}]

    def test_mixed_container_stays_expanded(self) -> None:
        nodes, _ = extract_from_design(
            [frame("1", [rect("2"), {"id": "3", "name": "t", "type": "TEXT"}])],
            LAYOUT_ONLY,
            after_children=collapse_svg_containers,
        )
        assert nodes[0]["type"] == "FRAME"
        assert [c["id"] for c in nodes[0]["children"]] == ["2", "3"]

    def test_nested_containers_cascade_into_one_marker(self) -> None:
        tree = [frame("1", [frame("2", [frame("3", [rect("4"), {"id": "5", "name": "v", "type": "VECTOR"}], node_type="GROUP")], node_type="INSTANCE")])]
        nodes, _ = extract_from_design(tree, LAYOUT_ONLY, after_children=collapse_svg_containers)
        assert nodes == [{"id": "1", "name": "Frame", "type": "IMAGE-SVG"}]

    def test_empty_frame_is_not_collapsed(self) -> None:
        nodes, _ = extract_from_design([frame("1", [])], LAYOUT_ONLY, after_children=collapse_svg_containers)
        assert nodes[0]["type"] == "FRAME"


def test_end_to_end_rectangles_collapse_under_root() -> None:
    response = {
        "name": "Doc",
        "document": {
            "id": "0:0",
            "type": "DOCUMENT",
            "children": [frame("1:1", [frame("2:1", [rect("3:1"), rect("3:2")])], node_type="CANVAS")],
        },
    }
    design = simplify_raw_figma_object(response, ALL_EXTRACTORS, after_children=collapse_svg_containers)
    root = design["nodes"][0]
    assert len(root["children"]) == 1
    assert root["children"][0]["type"] == "IMAGE-SVG"
    assert "children" not in root["children"][0]


def test_simplification_is_deterministic(file_response) -> None:
    first = simplify_raw_figma_object(file_response, ALL_EXTRACTORS, after_children=collapse_svg_containers)
    second = simplify_raw_figma_object(file_response, ALL_EXTRACTORS, after_children=collapse_svg_containers)
    assert json.dumps(first, sort_keys=False) == json.dumps(second, sort_keys=False)
