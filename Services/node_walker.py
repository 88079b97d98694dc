from Services.extractors import SVG_MARKER_TYPE, TraversalContext
from Services.style_registry import StyleRegistry


def _seed(node: dict) -> dict:
    node_type = node.get("type")
    return {
        "id": node.get("id"),
        "name": node.get("name"),
        "type": SVG_MARKER_TYPE if node_type == "VECTOR" else node_type,
    }


def _should_traverse_children(context, max_depth) -> bool:
    return max_depth is None or context.depth < max_depth


def process_node(node: dict, extractors, context: TraversalContext, max_depth=None, after_children=None) -> dict:
    result = _seed(node)
    for extractor in extractors:
        extractor.extract(node, result, context)

    if not _should_traverse_children(context, max_depth):
        return result

    raw_children = node.get("children")
    if not isinstance(raw_children, list) or not raw_children:
        return result

    child_context = TraversalContext(
        registry=context.registry,
        parent=node,
        depth=context.depth + 1,
    )
    children = [
        process_node(child, extractors, child_context, max_depth, after_children)
        for child in raw_children
        if isinstance(child, dict)
    ]

    if children and after_children is not None:
        children = after_children(node, result, children)
    if children:
        result["children"] = children
    return result


def extract_from_design(raw_nodes, extractors, max_depth=None, after_children=None, registry=None):
    """
    Simplify a list of raw Figma nodes.

    Each node gets every extractor run on it (in the given order), then its
    children are simplified before `after_children(raw, result, children)`
    may rewrite the node and replace its children. Nodes at `max_depth` keep
    no children. Returns (nodes, registry).
    """
    if not extractors:
        raise ValueError("At least one extractor is required")
    if max_depth is not None and max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")

    registry = registry or StyleRegistry()
    context = TraversalContext(registry=registry)
    nodes = [
        process_node(node, extractors, context, max_depth, after_children)
        for node in raw_nodes
        if isinstance(node, dict)
    ]
    return nodes, registry
