"""
Models for basisu compression requests and results.

The request model mirrors the multipart form posted by the web client, so
field aliases keep the client's camelCase names.
"""
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CompressionMode(str, Enum):
    """Compression modes understood by basisu"""
    ETC1S = "etc1s"
    UASTC = "uastc"
    UASTC_RDO = "uastc_rdo"
    HDR_4X4 = "hdr_4x4"
    HDR_6X6 = "hdr_6x6"
    HDR_6X6I = "hdr_6x6i"


class ArtifactType(str, Enum):
    """Container formats produced for every request"""
    BASIS = "basis"
    KTX2 = "ktx2"


HDR_MODES = (CompressionMode.HDR_4X4, CompressionMode.HDR_6X6, CompressionMode.HDR_6X6I)

MODE_DESCRIPTIONS: Dict[CompressionMode, str] = {
    CompressionMode.ETC1S: (
        "ETC1S: Suitable for general web images, supports transparency, "
        "smaller file size but lower quality."
    ),
    CompressionMode.UASTC: "UASTC LDR: High quality mode, suitable for scenes requiring the best visual effect.",
    CompressionMode.UASTC_RDO: "UASTC LDR RDO: High quality mode, optimized size through extra processing.",
    CompressionMode.HDR_4X4: "UASTC HDR 4x4: High quality HDR mode, supports HDR displays.",
    CompressionMode.HDR_6X6: "UASTC HDR 6x6: HDR mode with smaller files, 3.56 bits/pixel.",
    CompressionMode.HDR_6X6I: "GPU Photo: Special intermediate format, can quickly convert to other HDR formats.",
}

DEFAULT_QUALITY = 128
DEFAULT_RDO_QUALITY = 1.0
DEFAULT_LAMBDA = 500
DEFAULT_LEVEL = 3

DEFAULT_OPTIONS = {
    "quality": DEFAULT_QUALITY,
    "rdoQuality": DEFAULT_RDO_QUALITY,
    "lambda": DEFAULT_LAMBDA,
    "level": DEFAULT_LEVEL,
}

# Inclusive ranges enforced by the client
OPTION_CONSTRAINTS = {
    "quality": {"min": 1, "max": 255},
    "rdoQuality": {"min": 0.2, "max": 3.0, "step": 0.1},
    "lambda": {"min": 0, "max": 1000},
    "level": {"min": 1, "max": 5},
}


class CompressionRequest(BaseModel):
    """Compression options posted alongside the image"""
    model_config = ConfigDict(populate_by_name=True)

    mode: str = Field(CompressionMode.ETC1S.value, description="Compression mode")
    quality: Optional[int] = Field(None, description="ETC1S quality (1-255)")
    rdo_quality: Optional[float] = Field(None, alias="rdoQuality", description="UASTC RDO quality (0.2-3.0)")
    lambda_: Optional[int] = Field(None, alias="lambda", description="HDR 6x6 rate/distortion lambda (0-1000)")
    level: Optional[int] = Field(None, description="HDR 6x6 encoder level (1-5)")
    generate_mipmaps: bool = Field(False, alias="generateMipmaps", description="Generate a mipmap chain")
    name: str = Field("", description="Base name for the output files")

    @field_validator("quality", "rdo_quality", "lambda_", "level", mode="before")
    @classmethod
    def _blank_is_missing(cls, value):
        # HTML forms post empty strings for untouched inputs
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("mode", mode="before")
    @classmethod
    def _default_mode(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return CompressionMode.ETC1S.value
        return value

    @field_validator("generate_mipmaps", mode="before")
    @classmethod
    def _parse_mipmaps(cls, value):
        # Only the literal string "true" turns mipmaps on
        if isinstance(value, str):
            return value.strip().lower() == "true"
        return bool(value)

    @property
    def known_mode(self) -> Optional[CompressionMode]:
        try:
            return CompressionMode(self.mode)
        except ValueError:
            return None


class CompressedArtifact(BaseModel):
    """A compressed output file after magic number resolution"""
    path: Path = Field(..., description="Location of the renamed output file")
    type: ArtifactType = Field(..., description="Container format detected from the file header")
    size: int = Field(..., description="Size of the file in bytes")


class CompressedFileInfo(BaseModel):
    """Public description of one compressed output"""
    model_config = ConfigDict(populate_by_name=True)

    download_url: str = Field(..., alias="downloadUrl", description="URL serving the compressed file")
    filename: str = Field(..., description="Suggested download filename")
    type: ArtifactType = Field(..., description="Container format")
    size: str = Field(..., description="Human readable file size")
    size_bytes: int = Field(..., alias="sizeBytes", description="File size in bytes")
    reduction_percent: float = Field(
        ..., alias="reductionPercent", description="Size reduction relative to the uploaded image (%)"
    )


class CompressionResponse(BaseModel):
    """Response model for a successful compression"""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    files: List[CompressedFileInfo] = Field(..., description="One entry per container format")
    original_size: str = Field(..., alias="originalSize", description="Human readable upload size")
    original_image: str = Field(..., alias="originalImage", description="Stored name of the upload")
    compression_time: float = Field(
        ..., alias="compressionTime", description="Time spent running basisu in seconds"
    )


class LatestKtx2Response(BaseModel):
    """Most recent KTX2 output available for preview"""
    filename: str
    url: str


class ErrorResponse(BaseModel):
    error: str


class ModeInfo(BaseModel):
    mode: CompressionMode
    description: str
    hdr: bool
    options: List[str] = Field(..., description="Options consulted by this mode")


class ModesResponse(BaseModel):
    modes: List[ModeInfo]
    defaults: Dict[str, float]
    constraints: Dict[str, Dict[str, float]]
