"""
Translation of compression options into basisu command lines.

Only the options relevant to the selected mode end up on the command line;
everything else in the request is ignored.
"""
import shlex
from typing import List, Sequence, Tuple

from basis_api.models.compression import (
    ArtifactType,
    CompressionMode,
    CompressionRequest,
    DEFAULT_LAMBDA,
    DEFAULT_LEVEL,
    DEFAULT_QUALITY,
    DEFAULT_RDO_QUALITY,
)


def _or_default(value, default):
    return default if value is None else value


def build_mode_flags(request: CompressionRequest) -> List[str]:
    """
    Build the mode specific basisu flags for a request.

    Args:
        request: Parsed compression options

    Returns:
        List of command line flags, without output selection
    """
    mode = request.known_mode

    if mode is CompressionMode.ETC1S:
        flags = ["-q", str(_or_default(request.quality, DEFAULT_QUALITY))]
    elif mode is CompressionMode.UASTC:
        flags = ["-uastc"]
    elif mode is CompressionMode.UASTC_RDO:
        flags = ["-uastc", "-uastc_rdo_l", str(_or_default(request.rdo_quality, DEFAULT_RDO_QUALITY))]
    elif mode is CompressionMode.HDR_4X4:
        flags = ["-hdr"]
    elif mode is CompressionMode.HDR_6X6:
        flags = [
            "-hdr_6x6",
            "-lambda", str(_or_default(request.lambda_, DEFAULT_LAMBDA)),
            "-hdr_6x6_level", str(_or_default(request.level, DEFAULT_LEVEL)),
        ]
    elif mode is CompressionMode.HDR_6X6I:
        flags = [
            "-hdr_6x6i",
            "-lambda", str(_or_default(request.lambda_, DEFAULT_LAMBDA)),
            "-hdr_6x6i_level", str(_or_default(request.level, DEFAULT_LEVEL)),
        ]
    else:
        flags = ["-q", str(DEFAULT_QUALITY)]

    if request.generate_mipmaps:
        flags.append("-mipmap")

    return flags


def build_basisu_invocations(
    basisu_path: str,
    input_filename: str,
    request: CompressionRequest
) -> List[Tuple[ArtifactType, List[str]]]:
    """
    Build the two basisu invocations issued per request.

    The .basis file is produced first, then the .ktx2 file, both from the
    same source image. Paths are relative to the job directory basisu runs in.

    Returns:
        List of (expected artifact type, argv) pairs in execution order
    """
    base_name = input_filename.rsplit(".", 1)[0] if "." in input_filename else input_filename
    flags = build_mode_flags(request)

    invocations = []
    for artifact_type in (ArtifactType.BASIS, ArtifactType.KTX2):
        argv = [
            str(basisu_path),
            *flags,
            f"-{artifact_type.value}",
            "-output_file", f"{base_name}.{artifact_type.value}",
            input_filename,
        ]
        invocations.append((artifact_type, argv))
    return invocations


def render_command(argv: Sequence[str]) -> str:
    """Render an argument list as a single shell-quoted command string."""
    return shlex.join(argv)


def build_basisu_command(basisu_path: str, input_filename: str, request: CompressionRequest) -> str:
    """Shell rendering of both invocations, joined the way a shell would chain them."""
    return " && ".join(
        render_command(argv)
        for _, argv in build_basisu_invocations(basisu_path, input_filename, request)
    )
