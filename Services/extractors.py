"""
Per-node field extractors.

An extractor writes one category of fields onto the simplified node it is
given and may register style values; it never touches siblings or
ancestors. Pick any non-empty combination, or one of the presets below.
"""
from dataclasses import dataclass

from Services.layout_parser import parse_layout
from Services.style_parser import (
    has_text_style,
    is_text_node,
    parse_border_radius,
    parse_effects,
    parse_fills,
    parse_strokes,
    parse_text_style,
)
from Services.style_registry import StyleRegistry

# Errors a malformed raw field can raise while being parsed. The field is
# dropped and the walk goes on.
FIELD_ERRORS = (TypeError, ValueError, KeyError, AttributeError, ZeroDivisionError)


@dataclass
class TraversalContext:
    registry: StyleRegistry
    parent: dict | None = None
    depth: int = 0


def _safe(fn, *args):
    try:
        return fn(*args)
    except FIELD_ERRORS:
        return None


def _has_children(node) -> bool:
    children = node.get("children")
    return isinstance(children, list) and len(children) > 0


class NodeExtractor:
    name = "base"

    def extract(self, node: dict, result: dict, context: TraversalContext):
        raise NotImplementedError


class LayoutExtractor(NodeExtractor):
    name = "layout"

    def extract(self, node, result, context):
        layout = _safe(parse_layout, node, context.parent)
        # "mode" alone is the default and carries nothing
        if layout and len(layout) > 1:
            result["layout"] = context.registry.register(layout, "layout")


class TextExtractor(NodeExtractor):
    name = "text"

    def extract(self, node, result, context):
        if is_text_node(node) and isinstance(node.get("characters"), str):
            result["text"] = node["characters"]

        if not has_text_style(node):
            return
        text_style = _safe(parse_text_style, node)
        if not text_style:
            return

        registry = context.registry
        style_name = registry.style_name(node, ["text", "typography"])
        if style_name:
            result["textStyle"] = registry.register_named(style_name, text_style)
        else:
            result["textStyle"] = registry.register(text_style, "style")


class VisualsExtractor(NodeExtractor):
    name = "visuals"

    def extract(self, node, result, context):
        registry = context.registry
        has_children = _has_children(node)

        fills = _safe(parse_fills, node, has_children)
        if fills:
            style_name = registry.style_name(node, ["fill", "fills"])
            if style_name:
                result["fills"] = registry.register_named(style_name, fills)
            else:
                result["fills"] = registry.register(fills, "fill")

        strokes = _safe(parse_strokes, node, has_children)
        if strokes and strokes["colors"]:
            style_name = registry.style_name(node, ["stroke", "strokes"])
            if style_name:
                result["strokes"] = registry.register_named(style_name, strokes["colors"])
                for key in ("strokeWeight", "strokeDashes", "strokeWeights"):
                    if key in strokes:
                        result[key] = strokes[key]
            else:
                result["strokes"] = registry.register(strokes, "stroke")

        effects = _safe(parse_effects, node)
        if effects:
            style_name = registry.style_name(node, ["effect", "effects"])
            if style_name:
                result["effects"] = registry.register_named(style_name, effects)
            else:
                result["effects"] = registry.register(effects, "effect")

        opacity = node.get("opacity")
        if isinstance(opacity, (int, float)) and not isinstance(opacity, bool) and opacity != 1:
            result["opacity"] = opacity

        radius = _safe(parse_border_radius, node)
        if radius:
            result["borderRadius"] = radius


class ComponentExtractor(NodeExtractor):
    name = "component"

    def extract(self, node, result, context):
        if node.get("type") != "INSTANCE":
            return

        if node.get("componentId"):
            result["componentId"] = node["componentId"]

        props = node.get("componentProperties")
        if isinstance(props, dict) and props:
            flattened = []
            for prop_name, prop in props.items():
                if not isinstance(prop, dict) or "value" not in prop:
                    continue
                value = prop["value"]
                if isinstance(value, bool):
                    value = "true" if value else "false"
                flattened.append({
                    "name": prop_name,
                    "value": str(value),
                    "type": prop.get("type"),
                })
            if flattened:
                result["componentProperties"] = flattened


layout_extractor = LayoutExtractor()
text_extractor = TextExtractor()
visuals_extractor = VisualsExtractor()
component_extractor = ComponentExtractor()

ALL_EXTRACTORS = (layout_extractor, text_extractor, visuals_extractor, component_extractor)
LAYOUT_AND_TEXT = (layout_extractor, text_extractor)
CONTENT_ONLY = (text_extractor,)
VISUALS_ONLY = (visuals_extractor,)
LAYOUT_ONLY = (layout_extractor,)

PRESETS = {
    "all": ALL_EXTRACTORS,
    "layout-and-text": LAYOUT_AND_TEXT,
    "content-only": CONTENT_ONLY,
    "visuals-only": VISUALS_ONLY,
    "layout-only": LAYOUT_ONLY,
}


# ===============================
# SVG COLLAPSING
# ===============================

SVG_MARKER_TYPE = "IMAGE-SVG"

# The marker is eligible itself, so collapsed groups fold into their parents.
SVG_ELIGIBLE_TYPES = frozenset({
    SVG_MARKER_TYPE,
    "STAR",
    "LINE",
    "ELLIPSE",
    "REGULAR_POLYGON",
    "RECTANGLE",
})

SVG_CONTAINER_TYPES = frozenset({"FRAME", "GROUP", "INSTANCE"})


def collapse_svg_containers(node: dict, result: dict, children: list) -> list:
    """afterChildren hook: a container of only vector leaves becomes one IMAGE-SVG node."""
    if (
        node.get("type") in SVG_CONTAINER_TYPES
        and children
        and all(child.get("type") in SVG_ELIGIBLE_TYPES for child in children)
    ):
        result["type"] = SVG_MARKER_TYPE
        return []
    return children
