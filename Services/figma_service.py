"""
Figma REST access: raw documents in, image bytes out.

Nothing here knows about simplified nodes; the rest of the project only
relies on the response shapes and on the DownloadResult dicts returned by
download_images().
"""
import asyncio
import io
import os
import re

import requests
from PIL import Image

from Services import config
from Services.concurrency import run_with_concurrency
from Services.errors import AuthError, DownloadFailure, InputFormatError, UpstreamError
from Services.logger import Logger

# ------------------------------------------------------------------
# URL HELPERS
# ------------------------------------------------------------------

def extract_file_key(figma_url: str) -> str:
    figma_url = str(figma_url)

    match = re.search(r"figma\.com/(file|design|make)/([a-zA-Z0-9]+)", figma_url)
    if not match:
        raise InputFormatError(f"Invalid Figma URL format: {figma_url}")

    return match.group(2)


def extract_node_id(figma_url: str) -> str | None:
    match = re.search(r"node-id=([^&#]+)", str(figma_url))
    if not match:
        return None
    return normalize_node_id(match.group(1))


def normalize_node_id(node_id: str) -> str:
    # URLs carry 1-2, the API wants 1:2
    node_id = node_id.replace("%3A", ":").replace("-", ":")
    if not re.fullmatch(r"I?\d+:\d+(;\d+:\d+)*", node_id):
        raise InputFormatError(f"Invalid Figma node id: {node_id}")
    return node_id


# ------------------------------------------------------------------
# SERVICE
# ------------------------------------------------------------------

class FigmaService:
    def __init__(
        self,
        api_key: str = "",
        oauth_token: str = "",
        use_oauth: bool = False,
        base_url: str | None = None,
        timeout: float | None = None,
        logger: Logger | None = None,
    ):
        if not api_key and not oauth_token:
            raise AuthError()

        self.api_key = api_key
        self.oauth_token = oauth_token
        self.use_oauth = bool(oauth_token) and (use_oauth or not api_key)
        self.base_url = base_url or config.FIGMA_API_BASE
        self.timeout = timeout or config.FIGMA_REQUEST_TIMEOUT
        self.logger = logger or Logger(False)

    @property
    def headers(self) -> dict:
        if self.use_oauth:
            return {"Authorization": f"Bearer {self.oauth_token}"}
        return {"X-Figma-Token": self.api_key}

    def _get(self, path: str, file_key: str, params: dict | None = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            self.logger.error(f"Figma request {path} failed:", e)
            raise UpstreamError(file_key, e) from e
        except ValueError as e:
            raise UpstreamError(file_key, f"invalid JSON from {path}") from e

    # -------------------- documents --------------------

    def get_raw_file(self, file_key: str, depth: int | None = None) -> dict:
        params = {"depth": depth} if depth else None
        self.logger.log(f"GET file {file_key}" + (f" depth={depth}" if depth else ""))
        return self._get(f"/files/{file_key}", file_key, params)

    def get_raw_node(self, file_key: str, node_id: str, depth: int | None = None) -> dict:
        params = {"ids": node_id}
        if depth:
            params["depth"] = depth
        self.logger.log(f"GET node {node_id} of file {file_key}")
        return self._get(f"/files/{file_key}/nodes", file_key, params)

    # -------------------- image urls --------------------

    def get_image_fill_urls(self, file_key: str) -> dict:
        """imageRef -> temporary download URL for every image fill in the file."""
        data = self._get(f"/files/{file_key}/images", file_key)
        images = (data.get("meta") or {}).get("images") or data.get("images") or {}
        self.logger.log("Fetched", len(images), "image fills from Figma")
        return images

    def get_node_render_urls(self, file_key: str, node_ids: list, image_format: str = "png", scale: float | None = None) -> dict:
        if not node_ids:
            return {}

        images = {}
        for i in range(0, len(node_ids), 100):
            chunk = node_ids[i : i + 100]
            params = {"ids": ",".join(chunk), "format": image_format}
            if image_format == "png" and scale:
                params["scale"] = scale
            data = self._get(f"/images/{file_key}", file_key, params)
            images.update(data.get("images") or {})
        return images

    # -------------------- downloads --------------------

    async def download_images(
        self,
        file_key: str,
        local_path: str,
        image_nodes: list,
        image_format: str = "png",
        scale: float | None = None,
        return_buffer: bool = False,
        concurrency: int | None = None,
    ) -> list:
        """
        Fetch every requested image and return DownloadResult dicts in request order.

        Nodes with an imageRef download the original fill; the rest are
        rendered by Figma in `image_format`.
        """
        if not image_nodes:
            return []

        fill_urls = {}
        if any(n.get("imageRef") for n in image_nodes):
            fill_urls = await asyncio.to_thread(self.get_image_fill_urls, file_key)

        render_ids = [n["nodeId"] for n in image_nodes if not n.get("imageRef")]
        render_urls = {}
        if render_ids:
            render_urls = await asyncio.to_thread(
                self.get_node_render_urls, file_key, render_ids, image_format, scale
            )

        def _task(image_node):
            if image_node.get("imageRef"):
                url = fill_urls.get(image_node["imageRef"])
            else:
                url = render_urls.get(image_node["nodeId"])

            async def run():
                if not url:
                    raise DownloadFailure(image_node["nodeId"], "no image URL returned by Figma")
                try:
                    return await asyncio.to_thread(
                        self._download_one, url, local_path, image_node, return_buffer
                    )
                except DownloadFailure:
                    raise
                except (requests.RequestException, OSError, ValueError) as e:
                    raise DownloadFailure(image_node["nodeId"], e) from e

            return run

        limit = concurrency or config.FIGMA_IMAGE_CONCURRENCY
        self.logger.log(f"Downloading {len(image_nodes)} images, {limit} at a time")
        return await run_with_concurrency([_task(n) for n in image_nodes], limit)

    def _download_one(self, url: str, local_path: str, image_node: dict, return_buffer: bool) -> dict:
        response = requests.get(url, timeout=self.timeout)
        response.raise_for_status()
        data = response.content
        if not data:
            raise DownloadFailure(image_node["nodeId"], "downloaded image is empty")

        file_name = image_node["fileName"]
        suffix = image_node.get("filenameSuffix")
        if suffix:
            stem, ext = os.path.splitext(file_name)
            file_name = f"{stem}-{suffix}{ext}"

        data, dimensions, was_cropped, original = _process_image(
            data, file_name, image_node.get("cropTransform") if image_node.get("needsCropping") else None
        )

        result = {
            "nodeId": image_node["nodeId"],
            "finalDimensions": dimensions,
            "wasCropped": was_cropped,
        }
        if image_node.get("requiresImageDimensions"):
            result["cssVariables"] = (
                f"--original-width: {original['width']}px; "
                f"--original-height: {original['height']}px;"
            )

        if return_buffer:
            result["buffer"] = data
            return result

        os.makedirs(local_path, exist_ok=True)
        full_path = os.path.join(local_path, file_name)
        with open(full_path, "wb") as f:
            f.write(data)
        result["filePath"] = full_path
        return result


# ------------------------------------------------------------------
# PIXEL HANDLING
# ------------------------------------------------------------------

def _process_image(data: bytes, file_name: str, crop_transform):
    """Returns (bytes, final dimensions, cropped?, original dimensions)."""
    if file_name.lower().endswith(".svg"):
        empty = {"width": 0, "height": 0}
        return data, empty, False, empty

    with Image.open(io.BytesIO(data)) as img:
        width, height = img.size
        original = {"width": width, "height": height}
        if not crop_transform:
            return data, dict(original), False, original

        # imageTransform is [[scaleX, skewX, offsetX], [skewY, scaleY, offsetY]] in 0..1 units
        (scale_x, _, offset_x), (_, scale_y, offset_y) = crop_transform[0], crop_transform[1]
        left = max(0, round(offset_x * width))
        top = max(0, round(offset_y * height))
        right = min(width, left + max(1, round(scale_x * width)))
        bottom = min(height, top + max(1, round(scale_y * height)))

        cropped = img.crop((left, top, right, bottom))
        out = io.BytesIO()
        cropped.save(out, format=img.format or "PNG")
        return out.getvalue(), {"width": cropped.width, "height": cropped.height}, True, original
