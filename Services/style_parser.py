# ===============================
# NUMBERS
# ===============================

def pixel_round(num) -> float:
    if isinstance(num, bool) or not isinstance(num, (int, float)) or num != num:
        raise TypeError("Input must be a valid number")
    value = round(float(num), 2)
    return int(value) if value.is_integer() else value


def _px(num) -> str:
    return f"{pixel_round(num)}px"


def css_shorthand(top, right, bottom, left, ignore_zero=True, suffix="px"):
    """
    top/right/bottom/left -> CSS shorthand.

    (10, 10, 10, 10) -> "10px", (10, 20, 10, 20) -> "10px 20px",
    (10, 20, 30, 20) -> "10px 20px 30px", otherwise all four values.
    """
    if ignore_zero and top == 0 and right == 0 and bottom == 0 and left == 0:
        return None
    if top == right == bottom == left:
        return f"{top}{suffix}"
    if right == left:
        if top == bottom:
            return f"{top}{suffix} {right}{suffix}"
        return f"{top}{suffix} {right}{suffix} {bottom}{suffix}"
    return f"{top}{suffix} {right}{suffix} {bottom}{suffix} {left}{suffix}"


def is_visible(element) -> bool:
    return element.get("visible", True) is not False


# ===============================
# COLOR
# ===============================

def color_to_hex(c) -> str:
    return "#{:02X}{:02X}{:02X}".format(
        round(c.get("r", 0) * 255),
        round(c.get("g", 0) * 255),
        round(c.get("b", 0) * 255),
    )


def convert_color(c, opacity=1):
    """Figma RGBA (0..1 floats) -> (hex, effective opacity)."""
    alpha = round(opacity * c.get("a", 1), 2)
    return color_to_hex(c), alpha


def format_rgba(c, opacity=1) -> str:
    r = round(c.get("r", 0) * 255)
    g = round(c.get("g", 0) * 255)
    b = round(c.get("b", 0) * 255)
    a = round(opacity * c.get("a", 1), 2)
    return f"rgba({r}, {g}, {b}, {a})"


# ===============================
# FILLS (solid, image, gradient)
# ===============================

def parse_paint(paint: dict, has_children: bool = False):
    paint_type = paint.get("type")

    if paint_type == "IMAGE":
        out = {
            "type": "IMAGE",
            "imageRef": paint.get("imageRef"),
            "scaleMode": paint.get("scaleMode"),
            "isBackground": has_children,
        }
        transform = paint.get("imageTransform")
        if paint.get("scaleMode") == "CROP" and transform:
            out["needsCropping"] = True
            out["cropTransform"] = transform
        return {k: v for k, v in out.items() if v is not None}

    if paint_type == "SOLID":
        color = paint["color"]
        hex_color, opacity = convert_color(color, paint.get("opacity", 1))
        if opacity == 1:
            return hex_color
        return format_rgba(color, paint.get("opacity", 1))

    if paint_type in {
        "GRADIENT_LINEAR",
        "GRADIENT_RADIAL",
        "GRADIENT_ANGULAR",
        "GRADIENT_DIAMOND",
    }:
        stops = []
        for stop in paint.get("gradientStops") or []:
            hex_color, opacity = convert_color(stop["color"])
            stops.append({
                "position": stop.get("position"),
                "color": {"hex": hex_color, "opacity": opacity},
            })
        return {
            "type": paint_type,
            "gradientHandlePositions": paint.get("gradientHandlePositions"),
            "gradientStops": stops,
        }

    return dict(paint)


def parse_fills(node: dict, has_children: bool):
    """Visible fills, topmost paint first."""
    fills = node.get("fills")
    if not isinstance(fills, list) or not fills:
        return None
    parsed = [parse_paint(f, has_children) for f in fills if isinstance(f, dict) and is_visible(f)]
    parsed.reverse()
    return parsed or None


# ===============================
# STROKES (borders)
# ===============================

def parse_strokes(node: dict, has_children: bool) -> dict:
    out = {"colors": []}

    strokes = node.get("strokes")
    if isinstance(strokes, list) and strokes:
        out["colors"] = [
            parse_paint(s, has_children)
            for s in strokes
            if isinstance(s, dict) and is_visible(s)
        ]

    weight = node.get("strokeWeight")
    if isinstance(weight, (int, float)) and weight > 0:
        out["strokeWeight"] = _px(weight)

    dashes = node.get("strokeDashes")
    if isinstance(dashes, list) and dashes:
        out["strokeDashes"] = dashes

    sides = node.get("individualStrokeWeights")
    if isinstance(sides, dict):
        shorthand = css_shorthand(
            sides.get("top", 0), sides.get("right", 0),
            sides.get("bottom", 0), sides.get("left", 0),
        )
        if shorthand:
            out["strokeWeights"] = shorthand

    return out


# ===============================
# EFFECTS (shadow, blur)
# ===============================

def _shadow(e: dict, inset: bool = False) -> str:
    offset = e.get("offset") or {}
    value = "{}px {}px {}px {}px {}".format(
        offset.get("x", 0),
        offset.get("y", 0),
        e.get("radius", 0),
        e.get("spread", 0),
        format_rgba(e.get("color") or {}),
    )
    return f"inset {value}" if inset else value


def parse_effects(node: dict) -> dict:
    effects = node.get("effects")
    if not isinstance(effects, list):
        return {}

    visible = [e for e in effects if isinstance(e, dict) and e.get("visible", True)]

    drop = [_shadow(e) for e in visible if e.get("type") == "DROP_SHADOW"]
    inner = [_shadow(e, inset=True) for e in visible if e.get("type") == "INNER_SHADOW"]
    layer_blur = [f"blur({e.get('radius', 0)}px)" for e in visible if e.get("type") == "LAYER_BLUR"]
    backdrop = [f"blur({e.get('radius', 0)}px)" for e in visible if e.get("type") == "BACKGROUND_BLUR"]

    out = {}
    shadow = ", ".join(drop + inner)
    if shadow:
        if node.get("type") == "TEXT":
            out["textShadow"] = shadow
        else:
            out["boxShadow"] = shadow
    if layer_blur:
        out["filter"] = " ".join(layer_blur)
    if backdrop:
        out["backdropFilter"] = " ".join(backdrop)
    return out


# ===============================
# RADIUS
# ===============================

def parse_border_radius(node: dict):
    radii = node.get("rectangleCornerRadii")
    if (
        isinstance(radii, list)
        and len(radii) == 4
        and all(isinstance(r, (int, float)) for r in radii)
    ):
        return " ".join(f"{r}px" for r in radii)

    radius = node.get("cornerRadius")
    if isinstance(radius, (int, float)) and not isinstance(radius, bool):
        return f"{radius}px"
    return None


# ===============================
# TEXT
# ===============================

def is_text_node(node: dict) -> bool:
    return node.get("type") == "TEXT"


def has_text_style(node: dict) -> bool:
    style = node.get("style")
    return isinstance(style, dict) and bool(style)


def parse_text_style(node: dict):
    s = node["style"]
    font_size = s.get("fontSize")

    line_height = None
    if s.get("lineHeightPx") and font_size:
        line_height = f"{pixel_round(s['lineHeightPx'] / font_size)}em"

    letter_spacing = None
    if s.get("letterSpacing") and font_size:
        letter_spacing = f"{pixel_round(s['letterSpacing'] / font_size * 100)}%"

    out = {
        "fontFamily": s.get("fontFamily"),
        "fontWeight": s.get("fontWeight"),
        "fontSize": font_size,
        "lineHeight": line_height,
        "letterSpacing": letter_spacing,
        "textCase": s.get("textCase"),
        "textAlignHorizontal": s.get("textAlignHorizontal"),
        "textAlignVertical": s.get("textAlignVertical"),
    }
    out = {k: v for k, v in out.items() if v is not None}
    return out or None
