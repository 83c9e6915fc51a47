"""
HTTP client for the compression service.

Mirrors what the web front-end does before and after an upload: validate the
file and options, pad the image to multiples of 4, post it to /compress and
keep track of the single in-flight request.
"""
import logging
import mimetypes
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import httpx

from basis_api.core.errors import InputError
from basis_api.core.imaging import PaddedImage, load_image_bytes, pad_to_multiple_of_four
from basis_api.models.compression import CompressionMode, DEFAULT_OPTIONS, OPTION_CONSTRAINTS

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3001"
SUPPORTED_FORMATS = ("image/png", "image/jpeg", "image/gif")
MAX_FILE_SIZE = 50 * 1000 * 1000

# Options posted for each mode
MODE_FIELDS = {
    CompressionMode.ETC1S.value: ("quality",),
    CompressionMode.UASTC_RDO.value: ("rdoQuality",),
    CompressionMode.HDR_6X6.value: ("lambda", "level"),
    CompressionMode.HDR_6X6I.value: ("lambda", "level"),
}


class UploadState(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"


class ClientError(Exception):
    """Raised when a compression request fails"""


def validate_image_file(filename: str, size: int, content_type: Optional[str] = None) -> Optional[str]:
    """
    Check an image file before upload.

    Returns:
        Error message, or None if the file is acceptable
    """
    content_type = content_type or mimetypes.guess_type(filename)[0]
    if content_type not in SUPPORTED_FORMATS:
        return "Unsupported file format. Please use PNG, JPG, or GIF."
    if size > MAX_FILE_SIZE:
        return "File is too large. Maximum size is 50MB."
    return None


def validate_option(value: float, minimum: float, maximum: float, step: Optional[float] = None) -> bool:
    """True if value lies in [minimum, maximum] and on the step grid."""
    if value < minimum or value > maximum:
        return False
    if step:
        steps = (value - minimum) / step
        if abs(steps - round(steps)) > 1e-6:
            return False
    return True


def mode_options(mode: str, options: Optional[Dict[str, float]] = None) -> Dict[str, float]:
    """Options relevant to mode, with defaults filled in."""
    options = options or {}
    return {
        field: options.get(field, DEFAULT_OPTIONS[field])
        for field in MODE_FIELDS.get(mode, ())
    }


def validate_options(mode: str, options: Optional[Dict[str, float]] = None) -> Optional[str]:
    for field, value in mode_options(mode, options).items():
        limits = OPTION_CONSTRAINTS[field]
        if not validate_option(value, limits["min"], limits["max"], limits.get("step")):
            return f"{field} must be between {limits['min']} and {limits['max']}"
    return None


def _format_value(field: str, value: float) -> str:
    # rdoQuality is the only fractional option
    if field == "rdoQuality":
        return str(float(value))
    return str(int(value))


class CompressionClient:
    """
    Client tracking one compression request at a time.

    State moves idle -> uploading -> success | error. After success, files
    holds the compressed outputs reported by the server.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL, http: Optional[httpx.Client] = None, timeout: float = 300.0):
        self.base_url = base_url.rstrip("/")
        self._http = http or httpx.Client(base_url=self.base_url, timeout=timeout)
        self.reset()

    def reset(self) -> None:
        self.state = UploadState.IDLE
        self.message = ""
        self.files: List[Dict[str, Any]] = []
        self.original_size = ""
        self.padding: Optional[PaddedImage] = None

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _fail(self, message: str) -> None:
        self.state = UploadState.ERROR
        self.message = message
        logger.error(f"Compression request failed: {message}")
        raise ClientError(message)

    def prepare(self, source: Union[str, Path, bytes], filename: Optional[str] = None) -> PaddedImage:
        """
        Validate an image and pad it to multiples of 4.

        Args:
            source: Path to the image or its encoded bytes
            filename: Name to report, required when source is bytes

        Returns:
            PaddedImage ready for upload
        """
        if filename is None:
            if isinstance(source, bytes):
                raise ValueError("filename is required when uploading raw bytes")
            filename = Path(source).name

        data = load_image_bytes(source)
        error = validate_image_file(filename, len(data))
        if error:
            raise InputError(error)

        padded = pad_to_multiple_of_four(data, filename)
        logger.info(f"Prepared {filename}: {padded.summary}")
        return padded

    def compress(
        self,
        source: Union[str, Path, bytes],
        filename: Optional[str] = None,
        mode: str = CompressionMode.ETC1S.value,
        options: Optional[Dict[str, float]] = None,
        generate_mipmaps: bool = False,
        name: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Pad, upload and compress an image.

        Returns:
            The list of compressed file descriptions from the server

        Raises:
            ClientError: If validation, padding or the request fails
        """
        if self.state is UploadState.UPLOADING:
            raise ClientError("A compression request is already in progress")

        self.reset()
        self.state = UploadState.UPLOADING
        self.message = "Processing..."

        try:
            return self._upload(source, filename, mode, options, generate_mipmaps, name)
        except ClientError:
            raise
        except Exception as e:
            self._fail(f"Failed to process image: {e}")

    def _upload(self, source, filename, mode, options, generate_mipmaps, name) -> List[Dict[str, Any]]:
        try:
            padded = self.prepare(source, filename)
        except ValueError as e:
            self._fail(str(e))
        self.padding = padded

        option_error = validate_options(mode, options)
        if option_error:
            self._fail(option_error)

        data = {
            "name": name or Path(padded.filename).stem,
            "mode": mode,
            "generateMipmaps": "true" if generate_mipmaps else "false",
        }
        for field, value in mode_options(mode, options).items():
            data[field] = _format_value(field, value)

        content_type = mimetypes.guess_type(padded.filename)[0] or "application/octet-stream"
        files = {"image": (padded.filename, padded.data, content_type)}

        response = self._http.post("/compress", data=data, files=files)

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if response.status_code != 200:
            self._fail(payload.get("error") or "Failed to process image")

        self.files = payload.get("files", [])
        self.original_size = payload.get("originalSize", "")
        self.state = UploadState.SUCCESS
        self.message = "Compression complete!"
        return self.files

    def latest_ktx2(self) -> Optional[Dict[str, str]]:
        """Newest KTX2 output known to the server, or None."""
        response = self._http.get("/latest-ktx2")
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()

    def download(self, file_info: Dict[str, Any]) -> bytes:
        """Fetch the bytes of a compressed file returned by compress()."""
        response = self._http.get(file_info["downloadUrl"])
        response.raise_for_status()
        return response.content
