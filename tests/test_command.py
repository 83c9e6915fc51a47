import pytest

from basis_api.core.command import (
    build_basisu_command,
    build_basisu_invocations,
    build_mode_flags,
)
from basis_api.models.compression import ArtifactType, CompressionRequest


def flags_for(**fields):
    return build_mode_flags(CompressionRequest.model_validate(fields))


@pytest.mark.parametrize("fields, expected", [
    ({"mode": "etc1s"}, ["-q", "128"]),
    ({"mode": "etc1s", "quality": "100"}, ["-q", "100"]),
    ({"mode": "uastc"}, ["-uastc"]),
    ({"mode": "uastc_rdo"}, ["-uastc", "-uastc_rdo_l", "1.0"]),
    ({"mode": "uastc_rdo", "rdoQuality": "2.5"}, ["-uastc", "-uastc_rdo_l", "2.5"]),
    ({"mode": "hdr_4x4"}, ["-hdr"]),
    ({"mode": "hdr_6x6"}, ["-hdr_6x6", "-lambda", "500", "-hdr_6x6_level", "3"]),
    ({"mode": "hdr_6x6", "lambda": "200", "level": "5"},
     ["-hdr_6x6", "-lambda", "200", "-hdr_6x6_level", "5"]),
    ({"mode": "hdr_6x6i"}, ["-hdr_6x6i", "-lambda", "500", "-hdr_6x6i_level", "3"]),
    ({"mode": "mystery"}, ["-q", "128"]),
])
def test_mode_flags(fields, expected):
    assert flags_for(**fields) == expected


def test_irrelevant_options_are_ignored():
    flags = flags_for(mode="uastc", quality="10", rdoQuality="2.0", level="4", **{"lambda": "7"})
    assert flags == ["-uastc"]

    flags = flags_for(mode="etc1s", quality="64", rdoQuality="2.0", level="4")
    assert flags == ["-q", "64"]


def test_blank_form_values_use_defaults():
    assert flags_for(mode="etc1s", quality="") == ["-q", "128"]
    assert flags_for(mode="", quality="") == ["-q", "128"]


def test_unknown_mode_ignores_quality():
    assert flags_for(mode="bogus", quality="12") == ["-q", "128"]


def test_mipmap_flag_only_for_literal_true():
    assert flags_for(mode="uastc", generateMipmaps="true") == ["-uastc", "-mipmap"]
    assert flags_for(mode="uastc", generateMipmaps="false") == ["-uastc"]
    assert flags_for(mode="uastc", generateMipmaps="yes") == ["-uastc"]


def test_two_invocations_basis_then_ktx2():
    request = CompressionRequest(mode="etc1s", quality=100)
    invocations = build_basisu_invocations("/opt/basisu", "source.png", request)

    assert [t for t, _ in invocations] == [ArtifactType.BASIS, ArtifactType.KTX2]
    basis_argv = invocations[0][1]
    ktx2_argv = invocations[1][1]
    assert basis_argv == ["/opt/basisu", "-q", "100", "-basis", "-output_file", "source.basis", "source.png"]
    assert ktx2_argv == ["/opt/basisu", "-q", "100", "-ktx2", "-output_file", "source.ktx2", "source.png"]


def test_command_string_quotes_paths():
    request = CompressionRequest(mode="uastc")
    command = build_basisu_command("/opt/basis u/basisu", "source.png", request)

    assert command.startswith("'/opt/basis u/basisu' -uastc -basis")
    assert " && " in command
    assert command.endswith("-ktx2 -output_file source.ktx2 source.png")
