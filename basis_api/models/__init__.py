"""
Data models for the basis compression API.

Pydantic models for request parsing, response validation and documentation.
"""
from basis_api.models.compression import (
    ArtifactType,
    CompressedArtifact,
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

__all__ = [
    'ArtifactType',
    'CompressedArtifact',
    'CompressedFileInfo',
    'CompressionMode',
    'CompressionRequest',
    'CompressionResponse',
    'DEFAULT_OPTIONS',
    'ErrorResponse',
    'HDR_MODES',
    'LatestKtx2Response',
    'MODE_DESCRIPTIONS',
    'ModeInfo',
    'ModesResponse',
    'OPTION_CONSTRAINTS',
]
