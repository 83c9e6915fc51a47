"""
Identification of basisu output files.

basisu's choice of file names is not trusted: every candidate output is
classified by the 4-byte magic number at the start of the file.
File header signatures (little-endian uint32):
- KTX2:  0x58544BAB ("\\xabKTX")
- Basis: 0x31734273
"""
import os
import struct
import logging
import uuid
from pathlib import Path
from typing import Dict, List, Optional

from basis_api.core.errors import ResolutionError
from basis_api.models.compression import ArtifactType, CompressedArtifact

# Set up logging
logger = logging.getLogger(__name__)

KTX2_MAGIC = 0x58544BAB
BASIS_MAGIC = 0x31734273

MAGIC_TYPES = {
    KTX2_MAGIC: ArtifactType.KTX2,
    BASIS_MAGIC: ArtifactType.BASIS,
}

OUTPUT_EXTENSIONS = tuple(f".{t.value}" for t in ArtifactType)


def read_magic(path: Path) -> Optional[int]:
    """Read the leading 4 bytes of a file as a little-endian uint32."""
    with open(path, 'rb') as f:
        header = f.read(4)
    if len(header) < 4:
        return None
    return struct.unpack('<I', header)[0]


def classify_file(path: Path) -> ArtifactType:
    """
    Determine the container type of a basisu output file.

    The magic number decides; an unknown signature keeps the type implied by
    the file extension.
    """
    extension_type = ArtifactType(path.suffix.lstrip('.').lower())
    magic = read_magic(path)
    detected = MAGIC_TYPES.get(magic)

    magic_label = "none" if magic is None else f"0x{magic:08x}"
    if detected is None:
        logger.warning(f"Magic number: {magic_label} File {path.name} has unknown format")
        return extension_type
    if detected is not extension_type:
        logger.info(
            f"Magic number: {magic_label} File {path.name} is actually "
            f"{detected.value.upper()} format, correcting type"
        )
    else:
        logger.info(f"Magic number: {magic_label} File {path.name} is confirmed {detected.value.upper()} format")
    return detected


def find_candidates(directory: Path, base_name: str) -> List[Path]:
    """List output files in directory produced from the given input base name."""
    return [
        directory / name
        for name in sorted(os.listdir(directory))
        if name.startswith(base_name)
        and name.endswith(OUTPUT_EXTENSIONS)
        and (directory / name).is_file()
    ]


def select_outputs(candidates: List[Path]) -> Dict[ArtifactType, Path]:
    """
    Keep at most one file per resolved type.

    The first candidate of a type wins, unless a later candidate's extension
    already matches its resolved type, in which case it replaces the earlier one.
    """
    selected: Dict[ArtifactType, Path] = {}
    for path in candidates:
        resolved = classify_file(path)
        if resolved not in selected or path.suffix == f".{resolved.value}":
            selected[resolved] = path
    return selected


def resolve_outputs(directory: Path, base_name: str, output_name: str) -> List[CompressedArtifact]:
    """
    Identify, deduplicate and rename basisu outputs.

    Args:
        directory: Directory basisu wrote its outputs to
        base_name: Base name of the input file given to basisu
        output_name: Requested base name for the renamed outputs

    Returns:
        Artifacts renamed to {output_name}.{type}, basis first

    Raises:
        ResolutionError: If no candidate output files exist
    """
    candidates = find_candidates(directory, base_name)
    logger.info(f"Files in job directory: {[p.name for p in candidates]}")

    if not candidates:
        raise ResolutionError("No compressed files found")

    selected = select_outputs(candidates)

    # Move kept files aside first so a target name can never clobber a
    # candidate that has not been renamed yet
    staged: Dict[ArtifactType, Path] = {}
    for artifact_type, path in selected.items():
        staging = directory / f".{uuid.uuid4().hex}.{artifact_type.value}.tmp"
        os.replace(path, staging)
        staged[artifact_type] = staging

    for path in candidates:
        if path.exists():
            logger.debug(f"Discarding duplicate output {path.name}")
            path.unlink()

    artifacts = []
    for artifact_type in ArtifactType:
        if artifact_type not in staged:
            continue
        target = directory / f"{output_name}.{artifact_type.value}"
        os.replace(staged[artifact_type], target)
        artifacts.append(CompressedArtifact(
            path=target,
            type=artifact_type,
            size=target.stat().st_size
        ))

    logger.info(f"Compressed files found: {[(a.type.value, a.path.name) for a in artifacts]}")
    return artifacts
