import struct
import subprocess
from io import BytesIO
from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from basis_api.api import create_app
from basis_api.config import Settings
from basis_api.core import basisu
from basis_api.core.resolver import BASIS_MAGIC, KTX2_MAGIC


def make_png(width, height, color=(255, 0, 0, 255)):
    buffer = BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def magic_bytes(magic, size=64):
    return struct.pack('<I', magic) + b"\0" * (size - 4)


class FakeBasisu:
    """Stand-in for subprocess.run that writes basisu-like output files."""

    def __init__(self):
        self.calls = []
        self.magic_for = {".basis": BASIS_MAGIC, ".ktx2": KTX2_MAGIC}
        self.fail_with = None
        self.write_outputs = True

    def __call__(self, argv, cwd=None, **kwargs):
        argv = list(argv)
        self.calls.append(argv)

        if "-output_file" not in argv:
            return subprocess.CompletedProcess(argv, 0, stdout="Basis Universal v1.60\n", stderr="")

        if self.fail_with is not None:
            raise subprocess.CalledProcessError(1, argv, output="", stderr=self.fail_with)

        if self.write_outputs:
            output = Path(cwd) / argv[argv.index("-output_file") + 1]
            output.write_bytes(magic_bytes(self.magic_for[output.suffix]))
        return subprocess.CompletedProcess(argv, 0, stdout="Compression succeeded\n", stderr="")


@pytest.fixture
def settings(tmp_path):
    public = tmp_path / "public"
    s = Settings(
        basisu_path=tmp_path / "bin" / "basisu",
        public_dir=public,
        upload_dir=public / "uploads",
        preview_dir=public / "preview",
    )
    s.ensure_directories()
    return s


@pytest.fixture
def fake_basisu(monkeypatch):
    fake = FakeBasisu()
    # Replace only the subprocess module seen by basis_api.core.basisu
    fake_subprocess = SimpleNamespace(
        run=fake,
        CalledProcessError=subprocess.CalledProcessError,
        SubprocessError=subprocess.SubprocessError,
    )
    monkeypatch.setattr(basisu, "subprocess", fake_subprocess)
    return fake


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)
