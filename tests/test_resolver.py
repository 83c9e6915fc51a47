import pytest

from basis_api.core.errors import ResolutionError
from basis_api.core.resolver import (
    BASIS_MAGIC,
    KTX2_MAGIC,
    classify_file,
    read_magic,
    resolve_outputs,
)
from basis_api.models.compression import ArtifactType

from tests.conftest import magic_bytes


def write(directory, name, magic):
    path = directory / name
    path.write_bytes(magic_bytes(magic))
    return path


def test_read_magic_little_endian(tmp_path):
    path = tmp_path / "a.ktx2"
    path.write_bytes(b"\xabKTX 20\xbb\r\n\x1a\n")
    assert read_magic(path) == KTX2_MAGIC


def test_read_magic_short_file(tmp_path):
    path = tmp_path / "a.basis"
    path.write_bytes(b"sB")
    assert read_magic(path) is None
    assert classify_file(path) is ArtifactType.BASIS


def test_basis_extension_with_ktx2_magic_is_ktx2(tmp_path):
    write(tmp_path, "source.basis", KTX2_MAGIC)

    artifacts = resolve_outputs(tmp_path, "source", "photo")

    assert len(artifacts) == 1
    assert artifacts[0].type is ArtifactType.KTX2
    assert artifacts[0].path == tmp_path / "photo.ktx2"
    assert not (tmp_path / "source.basis").exists()


def test_unknown_magic_keeps_extension_type(tmp_path):
    write(tmp_path, "source.basis", 0xDEADBEEF)
    assert classify_file(tmp_path / "source.basis") is ArtifactType.BASIS


def test_classification_is_idempotent(tmp_path):
    write(tmp_path, "source.basis", BASIS_MAGIC)
    write(tmp_path, "source.ktx2", KTX2_MAGIC)

    artifacts = resolve_outputs(tmp_path, "source", "photo")

    for artifact in artifacts:
        assert classify_file(artifact.path) is artifact.type
        assert classify_file(artifact.path) is classify_file(artifact.path)


def test_resolves_both_types_and_sizes(tmp_path):
    write(tmp_path, "source.basis", BASIS_MAGIC)
    write(tmp_path, "source.ktx2", KTX2_MAGIC)
    write(tmp_path, "other.ktx2", KTX2_MAGIC)

    artifacts = resolve_outputs(tmp_path, "source", "photo")

    assert [a.type for a in artifacts] == [ArtifactType.BASIS, ArtifactType.KTX2]
    assert [a.path.name for a in artifacts] == ["photo.basis", "photo.ktx2"]
    assert all(a.size == 64 for a in artifacts)
    # Files from other inputs are left alone
    assert (tmp_path / "other.ktx2").exists()


def test_matching_extension_replaces_earlier_candidate(tmp_path):
    # Both files are KTX2; the one already named .ktx2 wins
    write(tmp_path, "source.basis", KTX2_MAGIC)
    ktx2 = write(tmp_path, "source.ktx2", KTX2_MAGIC)
    ktx2.write_bytes(magic_bytes(KTX2_MAGIC, size=128))

    artifacts = resolve_outputs(tmp_path, "source", "photo")

    assert len(artifacts) == 1
    assert artifacts[0].type is ArtifactType.KTX2
    assert artifacts[0].size == 128


def test_first_seen_wins_without_extension_match(tmp_path):
    first = write(tmp_path, "source.a.basis", KTX2_MAGIC)
    first.write_bytes(magic_bytes(KTX2_MAGIC, size=100))
    write(tmp_path, "source.b.basis", KTX2_MAGIC)

    artifacts = resolve_outputs(tmp_path, "source", "photo")

    assert len(artifacts) == 1
    assert artifacts[0].size == 100


def test_output_name_equal_to_input_name(tmp_path):
    write(tmp_path, "source.basis", KTX2_MAGIC)
    write(tmp_path, "source.ktx2", BASIS_MAGIC)

    artifacts = resolve_outputs(tmp_path, "source", "source")

    assert {a.type for a in artifacts} == {ArtifactType.BASIS, ArtifactType.KTX2}
    assert read_magic(tmp_path / "source.ktx2") == KTX2_MAGIC
    assert read_magic(tmp_path / "source.basis") == BASIS_MAGIC


def test_no_candidates_raises(tmp_path):
    (tmp_path / "source.png").write_bytes(b"png")
    with pytest.raises(ResolutionError, match="No compressed files found"):
        resolve_outputs(tmp_path, "source", "photo")
