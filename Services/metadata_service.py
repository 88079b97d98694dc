import asyncio
import base64
import json

import yaml

from models import FrameImageOptions, ImageOptions, MetadataOptions
from Services.design_extractor import simplify_raw_figma_object
from Services.errors import FigmaSimplifierError, InputFormatError, UpstreamError
from Services.extractors import ALL_EXTRACTORS, collapse_svg_containers
from Services.figma_service import (
    FigmaService,
    extract_file_key,
    extract_node_id,
    normalize_node_id,
)
from Services.image import (
    PathPolicy,
    build_image_nodes,
    enrich_nodes_with_images,
    find_image_assets,
)
from Services.logger import Logger


def _service(options, logger) -> FigmaService:
    return FigmaService(
        api_key=options.api_key,
        oauth_token=options.oauth_token,
        use_oauth=options.use_oauth,
        logger=logger,
    )


def encode_buffers(images: list) -> list:
    """Copies of DownloadResult dicts with raw `buffer` bytes as base64 text."""
    out = []
    for image in images:
        image = dict(image)
        if isinstance(image.get("buffer"), (bytes, bytearray)):
            image["buffer"] = base64.b64encode(image["buffer"]).decode("utf-8")
        out.append(image)
    return out


def serialize(result: dict, output_format: str):
    if output_format == "json":
        if "images" in result:
            result = {**result, "images": encode_buffers(result["images"])}
        return json.dumps(result, indent=2, default=str)
    if output_format == "yaml":
        return yaml.safe_dump(result, sort_keys=False, allow_unicode=True)
    return result


async def get_figma_metadata(figma_url: str, options: MetadataOptions | None = None):
    """
    Fetch a Figma file (or the node in its URL), simplify it and optionally
    download and attach its image assets.
    """
    options = options or MetadataOptions()
    logger = Logger(options.enable_logging)

    file_key = extract_file_key(figma_url)
    node_id = extract_node_id(figma_url)

    if options.download_images and not options.return_buffer and not options.local_path:
        raise InputFormatError("local_path is required when download_images is true and return_buffer is false")

    service = _service(options, logger)
    depth = options.depth or None

    try:
        logger.log(
            f"Fetching {f'{depth} layers deep' if depth else 'all layers'} of "
            f"{f'node {node_id} from file' if node_id else 'full file'} {file_key}"
        )
        if node_id:
            raw = await asyncio.to_thread(service.get_raw_node, file_key, node_id, depth)
        else:
            raw = await asyncio.to_thread(service.get_raw_file, file_key, depth)
        logger.write_logs("figma-raw.json", raw)

        design = simplify_raw_figma_object(
            raw,
            ALL_EXTRACTORS,
            max_depth=depth,
            after_children=collapse_svg_containers,
        )
        logger.write_logs("figma-simplified.json", design)
        logger.log(
            f"Successfully extracted data: {len(design['nodes'])} nodes, "
            f"{len(design['globalVars']['styles'])} styles"
        )

        result = {
            "metadata": {
                "name": design["name"],
                "components": design["components"],
                "componentSets": design["componentSets"],
            },
            "nodes": design["nodes"],
            "globalVars": design["globalVars"],
        }

        if options.download_images:
            logger.log("Discovering and downloading image assets...")
            assets = find_image_assets(result["nodes"], result["globalVars"])
            logger.log(f"Found {len(assets)} image assets to download")

            if assets:
                downloads = await service.download_images(
                    file_key,
                    options.local_path or "",
                    build_image_nodes(assets, options.image_format),
                    image_format=options.image_format,
                    scale=options.png_scale if options.image_format == "png" else None,
                    return_buffer=options.return_buffer,
                    concurrency=options.concurrency,
                )
                if options.return_buffer:
                    result["images"] = downloads
                    logger.log(f"Successfully downloaded {len(downloads)} images as buffers")
                else:
                    result["images"] = [
                        {k: v for k, v in d.items() if k != "buffer"} for d in downloads
                    ]
                    result["nodes"] = enrich_nodes_with_images(
                        result["nodes"],
                        assets,
                        downloads,
                        PathPolicy.coerce(options.use_relative_paths),
                    )
                    logger.log(f"Successfully downloaded and enriched {len(downloads)} images")

        return serialize(result, options.output_format)

    except FigmaSimplifierError:
        raise
    except Exception as e:
        logger.error(f"Error fetching file {file_key}:", e)
        raise UpstreamError(file_key, e) from e


async def download_figma_images(figma_url: str, image_nodes: list, options: ImageOptions | None = None) -> list:
    options = options or ImageOptions()
    logger = Logger(options.enable_logging)

    if not options.return_buffer and not options.local_path:
        raise InputFormatError("local_path is required when return_buffer is false")

    file_key = extract_file_key(figma_url)
    service = _service(options, logger)

    processed = [
        {**node, "nodeId": normalize_node_id(node["nodeId"])}
        for node in image_nodes
    ]
    return await service.download_images(
        file_key,
        options.local_path or "",
        processed,
        image_format=options.image_format,
        scale=options.png_scale if options.image_format == "png" else None,
        return_buffer=options.return_buffer,
        concurrency=options.concurrency,
    )


async def download_figma_frame_image(figma_url: str, options: FrameImageOptions | None = None) -> dict:
    options = options or FrameImageOptions()
    logger = Logger(options.enable_logging)

    if not options.return_buffer and (not options.local_path or not options.file_name):
        raise InputFormatError("local_path and file_name are required when return_buffer is false")

    file_key = extract_file_key(figma_url)
    node_id = extract_node_id(figma_url)
    if not node_id:
        raise InputFormatError(
            "No frame node-id found in URL. Please provide a Figma URL with a node-id parameter (e.g., ?node-id=123-456)"
        )

    if options.file_name and not options.file_name.lower().endswith(f".{options.format}"):
        raise InputFormatError(f"Filename must end with .{options.format} for {options.format} format")

    service = _service(options, logger)
    logger.log(f"Downloading {options.format.upper()} image for frame {node_id} from file {file_key}")

    results = await service.download_images(
        file_key,
        options.local_path or "",
        [{"nodeId": node_id, "fileName": options.file_name or f"temp.{options.format}"}],
        image_format=options.format,
        scale=options.png_scale if options.format == "png" else None,
        return_buffer=options.return_buffer,
    )
    return results[0]
