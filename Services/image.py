import html
import re
from dataclasses import dataclass

from Services.errors import AssetCountMismatch, MissingAssetMapping
from Services.extractors import SVG_MARKER_TYPE

# ------------------------------------------------------------------
# PATH POLICY (how an asset path is written into markup)
# ------------------------------------------------------------------

FILENAME_ONLY = "filename-only"
ABSOLUTE = "absolute"
STRIP_PREFIX = "strip-prefix"


@dataclass(frozen=True)
class PathPolicy:
    mode: str = FILENAME_ONLY
    base: str | None = None

    def __post_init__(self):
        if self.mode not in (FILENAME_ONLY, ABSOLUTE, STRIP_PREFIX):
            raise ValueError(f"Unknown path policy: {self.mode}")
        if self.mode == STRIP_PREFIX and not self.base:
            raise ValueError("strip-prefix path policy needs a base path")

    @classmethod
    def filename_only(cls):
        return cls(FILENAME_ONLY)

    @classmethod
    def absolute(cls):
        return cls(ABSOLUTE)

    @classmethod
    def strip_prefix(cls, base: str):
        return cls(STRIP_PREFIX, base)

    @classmethod
    def coerce(cls, value):
        """
        Accept the loose forms callers pass around:
        None/True/"" -> filename-only, False -> absolute, str -> strip-prefix(str).
        """
        if isinstance(value, PathPolicy):
            return value
        if value is None or value is True or value == "":
            return cls.filename_only()
        if value is False:
            return cls.absolute()
        if isinstance(value, str):
            return cls.strip_prefix(value)
        raise ValueError(f"Unsupported path policy value: {value!r}")


def _file_name(path: str) -> str:
    return re.split(r"[/\\]", path)[-1]


def render_image_path(file_path: str, policy: PathPolicy) -> str:
    if policy.mode == ABSOLUTE:
        return file_path

    if policy.mode == STRIP_PREFIX:
        base = policy.base.replace("\\", "/")
        if not base.endswith("/"):
            base += "/"
        normalized = file_path.replace("\\", "/")
        if normalized.startswith(base):
            return "./" + normalized[len(base):]

    return "./" + _file_name(file_path)


# ------------------------------------------------------------------
# ASSET DISCOVERY
# ------------------------------------------------------------------

def image_fill(node: dict, global_vars: dict):
    """First IMAGE paint in the node's dereferenced fills, if any."""
    fills_ref = node.get("fills")
    if not fills_ref or not isinstance(fills_ref, str):
        return None

    fill_data = ((global_vars or {}).get("styles") or {}).get(fills_ref)
    if not isinstance(fill_data, list):
        return None

    for fill in fill_data:
        if isinstance(fill, dict) and fill.get("type") == "IMAGE":
            return fill
    return None


def has_image_fill(node: dict, global_vars: dict) -> bool:
    return image_fill(node, global_vars) is not None


def find_image_assets(nodes: list, global_vars: dict) -> list:
    """
    Image-bearing nodes of a simplified tree, in pre-order document order.

    Enrichment with a positional list relies on this exact order.
    """
    assets = []

    def _walk(node):
        fill = image_fill(node, global_vars)
        if node.get("type") == SVG_MARKER_TYPE or fill is not None:
            asset = {"id": node.get("id"), "name": node.get("name") or ""}
            if fill is not None:
                asset["imageFill"] = fill
            assets.append(asset)

        for child in node.get("children") or []:
            _walk(child)

    for node in nodes:
        _walk(node)
    return assets


def sanitize_file_name(name: str) -> str:
    name = re.sub(r"[^a-z0-9]", "-", name, flags=re.IGNORECASE)
    name = re.sub(r"-+", "-", name)
    return name.strip("-").lower()


def build_image_nodes(assets: list, image_format: str = "png") -> list:
    """
    Renderer requests for auto mode. Equal sanitized names share one file.

    Only png requests may fetch the raw fill bitmap; any other format is
    rendered by Figma so the bytes match the file extension.
    """
    image_nodes = []
    for asset in assets:
        base = sanitize_file_name(asset["name"]) or sanitize_file_name(asset["id"])
        request = {
            "nodeId": asset["id"],
            "fileName": f"{base}.{image_format}",
        }

        fill = asset.get("imageFill")
        if fill and image_format == "png":
            if fill.get("imageRef"):
                request["imageRef"] = fill["imageRef"]
            if fill.get("needsCropping"):
                request["needsCropping"] = True
                request["cropTransform"] = fill.get("cropTransform")
            if fill.get("scaleMode") == "TILE":
                request["requiresImageDimensions"] = True

        image_nodes.append(request)
    return image_nodes


# ------------------------------------------------------------------
# ENRICHMENT
# ------------------------------------------------------------------

def build_downloaded_image(asset: dict, result: dict, policy: PathPolicy) -> dict:
    file_path = result["filePath"]
    path_for_markup = render_image_path(file_path, policy)
    dimensions = dict(result.get("finalDimensions") or {"width": 0, "height": 0})
    alt = html.escape(asset["name"], quote=True)

    downloaded = {
        "filePath": file_path,
        "relativePath": path_for_markup,
        "dimensions": dimensions,
        "wasCropped": bool(result.get("wasCropped", False)),
        "markdown": f"![{asset['name']}]({path_for_markup})",
        "html": (
            f'<img src="{path_for_markup}" alt="{alt}" '
            f'width="{dimensions.get("width", 0)}" height="{dimensions.get("height", 0)}">'
        ),
    }
    if result.get("cssVariables"):
        downloaded["cssVariables"] = result["cssVariables"]
    return downloaded


def enrich_nodes_with_images(nodes: list, image_assets: list, download_results: list, path_policy=None) -> list:
    """
    Copy of `nodes` where each asset node carries a `downloadedImage` bundle.

    `download_results[i]` belongs to `image_assets[i]`. Results without a
    filePath (buffers) attach nothing. The input tree is left untouched.
    """
    if len(download_results) != len(image_assets):
        raise AssetCountMismatch(len(image_assets), len(download_results))

    policy = PathPolicy.coerce(path_policy)
    image_map = {}
    for asset, result in zip(image_assets, download_results):
        if result and result.get("filePath"):
            image_map[asset["id"]] = build_downloaded_image(asset, result, policy)

    def _enrich(node):
        enriched = dict(node)
        if node.get("id") in image_map:
            enriched["downloadedImage"] = dict(image_map[node["id"]])
        if isinstance(node.get("children"), list):
            enriched["children"] = [_enrich(child) for child in node["children"]]
        return enriched

    return [_enrich(node) for node in nodes]


def get_image_node_info(metadata: dict) -> list:
    if not metadata.get("images"):
        return []
    assets = find_image_assets(metadata["nodes"], metadata.get("globalVars"))
    return [{"nodeId": a["id"], "name": a["name"]} for a in assets]


def enrich_metadata_with_images(metadata: dict, image_paths, path_policy=None) -> dict:
    """
    Attach caller-supplied paths or URLs (e.g. after uploading buffers).

    `image_paths` is either a list matched by index to find_image_assets()
    order, or a dict keyed by node id that must cover every asset.
    """
    assets = find_image_assets(metadata["nodes"], metadata.get("globalVars"))
    images = metadata.get("images") or []

    if isinstance(image_paths, (list, tuple)):
        if len(image_paths) != len(assets):
            raise AssetCountMismatch(len(assets), len(image_paths))
        download_results = []
        for index, file_path in enumerate(image_paths):
            image_meta = images[index] if index < len(images) else {}
            download_results.append(_substitute(file_path, image_meta))
    elif isinstance(image_paths, dict):
        by_id = {img.get("nodeId"): img for img in images if img.get("nodeId")}
        download_results = []
        for asset in assets:
            file_path = image_paths.get(asset["id"])
            if not file_path:
                raise MissingAssetMapping(asset["id"])
            download_results.append(_substitute(file_path, by_id.get(asset["id"], {})))
    else:
        raise TypeError("image_paths must be a list of paths or a dict of node id -> path")

    return {
        **metadata,
        "nodes": enrich_nodes_with_images(metadata["nodes"], assets, download_results, path_policy),
    }


def _substitute(file_path: str, image_meta: dict) -> dict:
    return {
        "filePath": file_path,
        "finalDimensions": image_meta.get("finalDimensions") or {"width": 0, "height": 0},
        "wasCropped": image_meta.get("wasCropped", False),
        "cssVariables": image_meta.get("cssVariables"),
    }
