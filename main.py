import traceback

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from models import EnrichRequest, FrameImageRequest, ImagesRequest, MetadataRequest
from Services.errors import (
    AssetCountMismatch,
    AuthError,
    DownloadFailure,
    FigmaSimplifierError,
    InputFormatError,
    MissingAssetMapping,
    UpstreamError,
)
from Services.image import enrich_metadata_with_images
from Services.metadata_service import (
    download_figma_frame_image,
    download_figma_images,
    encode_buffers,
    get_figma_metadata,
)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_STATUS = {
    InputFormatError: 400,
    AuthError: 401,
    AssetCountMismatch: 422,
    MissingAssetMapping: 422,
    UpstreamError: 502,
    DownloadFailure: 502,
}


def to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, FigmaSimplifierError):
        for error_type, status in _STATUS.items():
            if isinstance(e, error_type):
                return HTTPException(status_code=status, detail=str(e))
    traceback.print_exc()
    return HTTPException(status_code=500, detail=str(e))


@app.get("/")
def root():
    return {"message": "Figma simplifier running"}


@app.post("/metadata")
async def metadata(req: MetadataRequest):
    try:
        result = await get_figma_metadata(req.figma_url, req.options)
    except Exception as e:
        raise to_http_error(e)

    if isinstance(result, str):
        return {"format": req.options.output_format, "content": result}
    if "images" in result:
        result["images"] = encode_buffers(result["images"])
    return result


@app.post("/images")
async def images(req: ImagesRequest):
    try:
        results = await download_figma_images(
            req.figma_url,
            [n.model_dump(exclude_none=True) for n in req.nodes],
            req.options,
        )
    except Exception as e:
        raise to_http_error(e)
    return {"images": encode_buffers(results)}


@app.post("/frame-image")
async def frame_image(req: FrameImageRequest):
    try:
        result = await download_figma_frame_image(req.figma_url, req.options)
    except Exception as e:
        raise to_http_error(e)
    return encode_buffers([result])[0]


@app.post("/enrich")
def enrich(req: EnrichRequest):
    try:
        return enrich_metadata_with_images(req.metadata, req.image_paths, req.use_relative_paths)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise to_http_error(e)
