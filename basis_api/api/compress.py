"""
Compression endpoints.

POST /compress runs basisu on an uploaded image and returns links to the
resulting .basis and .ktx2 files; GET /latest-ktx2 points the previewer at
the newest KTX2 output.
"""
import logging
from pathlib import Path
from typing import BinaryIO, Optional, Tuple

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from basis_api.config import Settings
from basis_api.core.compressor import CompressionResult, compress_image
from basis_api.core.errors import CompressionError, InputError
from basis_api.core.imaging import validate_image_dimensions
from basis_api.models.compression import (
    CompressedFileInfo,
    CompressionMode,
    CompressionRequest,
    CompressionResponse,
    DEFAULT_OPTIONS,
    ErrorResponse,
    HDR_MODES,
    LatestKtx2Response,
    MODE_DESCRIPTIONS,
    ModeInfo,
    ModesResponse,
    OPTION_CONSTRAINTS,
)
from basis_api.utils.file_handling import (
    cleanup_old_files,
    cleanup_old_job_dirs,
    find_latest_file,
    remove_file,
    save_upload,
)
from basis_api.utils.metrics import compression_percentage, format_file_size

# Set up logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(tags=["Basis Compression"])

MODE_OPTIONS = {
    CompressionMode.ETC1S: ["quality"],
    CompressionMode.UASTC: [],
    CompressionMode.UASTC_RDO: ["rdoQuality"],
    CompressionMode.HDR_4X4: [],
    CompressionMode.HDR_6X6: ["lambda", "level"],
    CompressionMode.HDR_6X6I: ["lambda", "level"],
}


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def run_housekeeping(settings: Settings) -> None:
    """Sweep stale uploads and job directories; never raises."""
    cleanup_old_files(settings.upload_dir, settings.file_age_limit)
    cleanup_old_job_dirs(settings.preview_dir, settings.file_age_limit)


def process_upload(
    stream: BinaryIO,
    filename: str,
    options: CompressionRequest,
    settings: Settings
) -> Tuple[str, int, CompressionResult]:
    """
    Store, validate and compress one upload. Blocking; run in a worker thread.

    The stored upload is always deleted before returning.

    Returns:
        (stored upload name, upload size in bytes, compression result)
    """
    run_housekeeping(settings)
    upload_path = save_upload(stream, settings.upload_dir, filename)

    try:
        original_size = upload_path.stat().st_size
        logger.info(f"Compressing {filename} ({original_size} bytes) with mode {options.mode}")

        if original_size > settings.max_file_size:
            raise InputError(
                f"File is too large. Maximum size is {settings.max_file_size // 1_000_000}MB."
            )

        validate_image_dimensions(upload_path)
        result = compress_image(upload_path, options, settings, Path(filename).stem)
    finally:
        remove_file(upload_path)

    return upload_path.name, original_size, result


@router.post(
    "/compress",
    response_model=CompressionResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def compress(
    request: Request,
    image: Optional[UploadFile] = File(None),
    name: str = Form(""),
    mode: str = Form(CompressionMode.ETC1S.value),
    quality: Optional[str] = Form(None),
    rdo_quality: Optional[str] = Form(None, alias="rdoQuality"),
    lambda_: Optional[str] = Form(None, alias="lambda"),
    level: Optional[str] = Form(None),
    generate_mipmaps: str = Form("false", alias="generateMipmaps"),
):
    """
    Compress an uploaded image into .basis and .ktx2 textures.

    - **image**: Source image, width and height must be multiples of 4
    - **mode**: etc1s, uastc, uastc_rdo, hdr_4x4, hdr_6x6 or hdr_6x6i
    - **quality**: ETC1S quality (default 128)
    - **rdoQuality**: UASTC RDO quality (default 1.0)
    - **lambda** / **level**: HDR 6x6 options (defaults 500 / 3)
    - **generateMipmaps**: "true" to generate mipmaps
    - **name**: Base name of the produced files

    Returns:
        Download URLs and sizes for both containers
    """
    if image is None or not image.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    settings = get_app_settings(request)

    try:
        options = CompressionRequest.model_validate({
            "mode": mode,
            "quality": quality,
            "rdoQuality": rdo_quality,
            "lambda": lambda_,
            "level": level,
            "generateMipmaps": generate_mipmaps,
            "name": name,
        })
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise HTTPException(status_code=400, detail=f"Invalid compression options: {fields}")

    original_stem = Path(image.filename).stem

    try:
        stored_name, original_size, result = await run_in_threadpool(
            process_upload, image.file, image.filename, options, settings
        )
    except CompressionError as e:
        logger.error(f"Error: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))

    files = [
        CompressedFileInfo(
            download_url=f"/preview/{result.job_id}/{artifact.path.name}",
            filename=f"{original_stem}.{artifact.type.value}",
            type=artifact.type,
            size=format_file_size(artifact.size),
            size_bytes=artifact.size,
            reduction_percent=compression_percentage(original_size, artifact.size),
        )
        for artifact in result.artifacts
    ]

    logger.info(
        f"Compressed {image.filename} into {len(files)} files in {result.compression_time}s"
    )

    return CompressionResponse(
        success=True,
        files=files,
        original_size=format_file_size(original_size),
        original_image=stored_name,
        compression_time=result.compression_time,
    )


@router.get(
    "/latest-ktx2",
    response_model=LatestKtx2Response,
    responses={404: {"model": ErrorResponse}},
)
async def latest_ktx2(request: Request):
    """Return the most recently written KTX2 file in the preview area."""
    settings = get_app_settings(request)
    try:
        latest = find_latest_file(settings.preview_dir, ".ktx2")
    except OSError as e:
        logger.error(f"Error getting latest KTX2: {e}")
        raise HTTPException(status_code=500, detail="Failed to get latest KTX2 file")

    if latest is None:
        raise HTTPException(status_code=404, detail="No KTX2 files found")

    relative = latest.relative_to(settings.preview_dir).as_posix()
    return LatestKtx2Response(filename=latest.name, url=f"/preview/{relative}")


@router.get("/modes", response_model=ModesResponse)
async def list_modes():
    """List compression modes with their defaults and option ranges."""
    modes = [
        ModeInfo(
            mode=mode,
            description=MODE_DESCRIPTIONS[mode],
            hdr=mode in HDR_MODES,
            options=MODE_OPTIONS[mode],
        )
        for mode in CompressionMode
    ]
    return ModesResponse(modes=modes, defaults=DEFAULT_OPTIONS, constraints=OPTION_CONSTRAINTS)
