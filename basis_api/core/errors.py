"""
Exceptions raised while handling a compression request.

Each error carries the HTTP status the API layer answers with.
"""


class CompressionError(Exception):
    """Base class for failures that end a compression request"""
    status_code = 500


class InputError(CompressionError, ValueError):
    """The uploaded file or its options cannot be processed"""
    status_code = 400


class DimensionError(InputError):
    """Image width or height is not a multiple of 4"""
    status_code = 500

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        super().__init__(
            f"Image dimensions must be multiples of 4. Current: {width}x{height}"
        )


class ToolError(CompressionError):
    """The basisu executable failed or could not be started"""


class ResolutionError(CompressionError):
    """No usable output files were found after running basisu"""
