"""
Core compression pipeline for the basis compression service.

This package wraps the external basisu executable:
- command: mode/options to basisu flags
- basisu: process invocation
- resolver: magic number identification of outputs
- imaging: dimension checks, format conversion and padding
- compressor: the full per-request pipeline
"""
from basis_api.core.errors import (
    CompressionError,
    InputError,
    DimensionError,
    ToolError,
    ResolutionError
)

from basis_api.core.command import (
    build_mode_flags,
    build_basisu_invocations,
    build_basisu_command,
    render_command
)

from basis_api.core.resolver import (
    KTX2_MAGIC,
    BASIS_MAGIC,
    classify_file,
    resolve_outputs
)

from basis_api.core.imaging import (
    PaddedImage,
    pad_to_multiple_of_four,
    validate_image_dimensions
)

from basis_api.core.compressor import (
    CompressionResult,
    compress_image
)

__all__ = [
    # Errors
    'CompressionError',
    'InputError',
    'DimensionError',
    'ToolError',
    'ResolutionError',

    # Command building
    'build_mode_flags',
    'build_basisu_invocations',
    'build_basisu_command',
    'render_command',

    # Output resolution
    'KTX2_MAGIC',
    'BASIS_MAGIC',
    'classify_file',
    'resolve_outputs',

    # Imaging
    'PaddedImage',
    'pad_to_multiple_of_four',
    'validate_image_dimensions',

    # Pipeline
    'CompressionResult',
    'compress_image'
]
