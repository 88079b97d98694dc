from typing import Literal

from pydantic import BaseModel, Field

from Services import config


class FigmaAuth(BaseModel):
    api_key: str = Field(default_factory=lambda: config.FIGMA_API_KEY)
    oauth_token: str = Field(default_factory=lambda: config.FIGMA_OAUTH_TOKEN)
    use_oauth: bool = False
    enable_logging: bool = Field(default_factory=lambda: config.FIGMA_ENABLE_LOGGING)


class MetadataOptions(FigmaAuth):
    output_format: Literal["object", "json", "yaml"] = "object"
    depth: int | None = Field(default=None, ge=0)
    download_images: bool = False
    local_path: str | None = None
    image_format: Literal["png", "svg"] = "png"
    png_scale: float = Field(default_factory=lambda: config.FIGMA_PNG_SCALE, gt=0)
    # True: "./icon.png", False: absolute path, str: strip this base path
    use_relative_paths: bool | str = True
    return_buffer: bool = False
    concurrency: int = Field(default_factory=lambda: config.FIGMA_IMAGE_CONCURRENCY, ge=1)


class ImageOptions(FigmaAuth):
    png_scale: float = Field(default_factory=lambda: config.FIGMA_PNG_SCALE, gt=0)
    image_format: Literal["png", "svg"] = "png"
    local_path: str | None = None
    return_buffer: bool = False
    concurrency: int = Field(default_factory=lambda: config.FIGMA_IMAGE_CONCURRENCY, ge=1)


class FrameImageOptions(FigmaAuth):
    png_scale: float = Field(default_factory=lambda: config.FIGMA_PNG_SCALE, gt=0)
    local_path: str | None = None
    file_name: str | None = None
    format: Literal["png", "svg"] = "png"
    return_buffer: bool = False


class ImageNode(BaseModel):
    nodeId: str
    fileName: str
    imageRef: str | None = None
    needsCropping: bool | None = None
    cropTransform: list[list[float]] | None = None
    requiresImageDimensions: bool | None = None
    filenameSuffix: str | None = None


# ---------- HTTP request bodies ----------

class MetadataRequest(BaseModel):
    figma_url: str
    options: MetadataOptions = Field(default_factory=MetadataOptions)


class ImagesRequest(BaseModel):
    figma_url: str
    nodes: list[ImageNode]
    options: ImageOptions = Field(default_factory=ImageOptions)


class FrameImageRequest(BaseModel):
    figma_url: str
    options: FrameImageOptions = Field(default_factory=FrameImageOptions)


class EnrichRequest(BaseModel):
    metadata: dict
    image_paths: list[str] | dict[str, str]
    use_relative_paths: bool | str = True
