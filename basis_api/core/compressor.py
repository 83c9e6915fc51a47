"""
End-to-end basisu compression of one uploaded image.

Each call works in its own job directory below the preview root, so
concurrent requests never see each other's files:
    preview/{job_id}/source.png      input copy (deleted afterwards)
    preview/{job_id}/{name}.basis    resolved outputs
    preview/{job_id}/{name}.ktx2
"""
import shutil
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from basis_api.config import Settings
from basis_api.core.basisu import run_basisu
from basis_api.core.command import build_basisu_invocations
from basis_api.core.errors import CompressionError, InputError, ResolutionError, ToolError
from basis_api.core.imaging import convert_to_png
from basis_api.core.resolver import resolve_outputs
from basis_api.models.compression import CompressedArtifact, CompressionRequest
from basis_api.utils.file_handling import create_job_dir, remove_dir, remove_file
from basis_api.utils.metrics import PerformanceTimer

# Set up logging
logger = logging.getLogger(__name__)

JOB_INPUT_STEM = "source"
CONVERT_TO_PNG = {".webp"}


@dataclass
class CompressionResult:
    job_id: str
    job_dir: Path
    artifacts: List[CompressedArtifact] = field(default_factory=list)
    compression_time: float = 0.0


def output_name_for(request: CompressionRequest, fallback: str) -> str:
    """Base name for the renamed outputs, stripped of any directory part."""
    name = Path(request.name.strip()).name if request.name else ""
    if name in ("", ".", ".."):
        return fallback
    return name


def stage_input(upload_path: Path, job_dir: Path) -> Path:
    """Copy the upload into the job directory, converting formats basisu cannot read."""
    suffix = upload_path.suffix.lower()
    if suffix in CONVERT_TO_PNG:
        return convert_to_png(upload_path, job_dir / f"{JOB_INPUT_STEM}.png")

    target = job_dir / f"{JOB_INPUT_STEM}{suffix or '.png'}"
    shutil.copyfile(upload_path, target)
    return target


def compress_image(
    upload_path: Path,
    request: CompressionRequest,
    settings: Settings,
    fallback_name: Optional[str] = None
) -> CompressionResult:
    """
    Compress an uploaded image to .basis and .ktx2.

    Args:
        upload_path: Validated source image
        request: Compression options
        settings: Service settings (basisu path, preview root)
        fallback_name: Output base name used when the request names none

    Returns:
        CompressionResult with the renamed artifacts

    Raises:
        ToolError: If basisu fails, message prefixed with "Compression failed:"
        ResolutionError: If basisu produced no usable files, same prefix
    """
    job_dir = create_job_dir(settings.preview_dir)
    result = CompressionResult(job_id=job_dir.name, job_dir=job_dir)
    staged_input = None

    try:
        staged_input = stage_input(upload_path, job_dir)
        invocations = build_basisu_invocations(settings.basisu_path, staged_input.name, request)

        with PerformanceTimer() as timer:
            for artifact_type, argv in invocations:
                logger.debug(f"Producing {artifact_type.value} output")
                run_basisu(argv, cwd=job_dir)
        result.compression_time = round(timer.execution_time, 4)

        remove_file(staged_input)

        name = output_name_for(request, fallback_name or upload_path.stem)
        result.artifacts = resolve_outputs(job_dir, JOB_INPUT_STEM, name)
        return result

    except (ToolError, ResolutionError) as e:
        logger.error(f"Compression failed for {upload_path.name}: {e}")
        remove_file(staged_input)
        remove_dir(job_dir)
        raise type(e)(f"Compression failed: {e}") from e
    except OSError as e:
        logger.error(f"Compression failed for {upload_path.name}: {e}")
        remove_dir(job_dir)
        raise CompressionError(f"Compression failed: {e}") from e
    except InputError:
        remove_dir(job_dir)
        raise
