from Services.style_parser import css_shorthand, pixel_round

# ===============================
# AXIS ALIGNMENT
# ===============================

_AXIS_ALIGN = {
    "MAX": "flex-end",
    "CENTER": "center",
    "SPACE_BETWEEN": "space-between",
    "BASELINE": "baseline",
}

_SELF_ALIGN = {
    "MAX": "flex-end",
    "CENTER": "center",
    "STRETCH": "stretch",
}

_SIZING = {
    "FIXED": "fixed",
    "FILL": "fill",
    "HUG": "hug",
}


def _children_all_stretch(node, mode):
    children = [c for c in node.get("children") or [] if isinstance(c, dict)]
    if not children:
        return False
    if mode == "row":
        return all(c.get("layoutSizingVertical") == "FILL" for c in children)
    return all(c.get("layoutSizingHorizontal") == "FILL" for c in children)


def convert_align(axis_align, node=None, mode=None):
    # counter axis: every child filling the cross axis reads as stretch
    if node is not None and mode in {"row", "column"} and _children_all_stretch(node, mode):
        return "stretch"
    return _AXIS_ALIGN.get(axis_align)


def is_frame(node) -> bool:
    return isinstance(node, dict) and "layoutMode" in node


def is_in_auto_layout_flow(node, parent) -> bool:
    return (
        is_frame(parent)
        and parent.get("layoutMode", "NONE") != "NONE"
        and node.get("layoutPositioning") != "ABSOLUTE"
    )


# ===============================
# AUTO-LAYOUT (container side)
# ===============================

def parse_frame_values(node) -> dict:
    if not is_frame(node):
        return {"mode": "none"}

    layout_mode = node.get("layoutMode")
    mode = {"HORIZONTAL": "row", "VERTICAL": "column"}.get(layout_mode, "none")
    out = {"mode": mode}
    if mode == "none":
        return out

    out["justifyContent"] = convert_align(node.get("primaryAxisAlignItems"))
    out["alignItems"] = convert_align(node.get("counterAxisAlignItems"), node, mode)
    out["alignSelf"] = _SELF_ALIGN.get(node.get("layoutAlign"))
    out["wrap"] = True if node.get("layoutWrap") == "WRAP" else None

    spacing = node.get("itemSpacing")
    out["gap"] = f"{spacing}px" if spacing else None

    out["padding"] = css_shorthand(
        node.get("paddingTop", 0),
        node.get("paddingRight", 0),
        node.get("paddingBottom", 0),
        node.get("paddingLeft", 0),
    )
    return out


# ===============================
# POSITION & SIZE (child side)
# ===============================

def parse_layout_values(node, parent) -> dict:
    out = {}

    sizing = {
        "horizontal": _SIZING.get(node.get("layoutSizingHorizontal")),
        "vertical": _SIZING.get(node.get("layoutSizingVertical")),
    }
    sizing = {k: v for k, v in sizing.items() if v}
    if sizing:
        out["sizing"] = sizing

    if is_frame(parent) and node.get("layoutPositioning") == "ABSOLUTE":
        out["position"] = "absolute"

    bb = node.get("absoluteBoundingBox")
    parent_bb = parent.get("absoluteBoundingBox") if isinstance(parent, dict) else None

    if isinstance(bb, dict) and isinstance(parent_bb, dict) and not is_in_auto_layout_flow(node, parent):
        out["locationRelativeToParent"] = {
            "x": pixel_round(bb.get("x", 0) - parent_bb.get("x", 0)),
            "y": pixel_round(bb.get("y", 0) - parent_bb.get("y", 0)),
        }

    if isinstance(bb, dict):
        dimensions = {}
        if is_in_auto_layout_flow(node, parent):
            # sizes the parent flow decides (grow, stretch, fill) are left out
            grows = bool(node.get("layoutGrow"))
            stretches = node.get("layoutAlign") == "STRETCH"
            if parent.get("layoutMode") == "HORIZONTAL":
                keep_width, keep_height = not grows, not stretches
            else:
                keep_width, keep_height = not stretches, not grows
            if keep_width and node.get("layoutSizingHorizontal") in (None, "FIXED"):
                dimensions["width"] = pixel_round(bb.get("width", 0))
            if keep_height and node.get("layoutSizingVertical") in (None, "FIXED"):
                dimensions["height"] = pixel_round(bb.get("height", 0))
        else:
            dimensions["width"] = pixel_round(bb.get("width", 0))
            dimensions["height"] = pixel_round(bb.get("height", 0))

        if node.get("preserveRatio") and bb.get("height"):
            dimensions["aspectRatio"] = pixel_round(bb.get("width", 0) / bb["height"])

        if dimensions:
            out["dimensions"] = dimensions

    overflow = node.get("overflowDirection") or ""
    scroll = []
    if "HORIZONTAL" in overflow:
        scroll.append("x")
    if "VERTICAL" in overflow:
        scroll.append("y")
    if scroll:
        out["overflowScroll"] = scroll

    return out


def parse_layout(node, parent) -> dict:
    """Layout descriptor of `node` as placed inside `parent` (both raw)."""
    frame = parse_frame_values(node)
    values = parse_layout_values(node, parent)
    out = {**frame, **values}
    return {k: v for k, v in out.items() if v is not None}
