"""
Basis Texture Compression API Application

This package implements a FastAPI application that converts uploaded images
into GPU texture formats using the external basisu compressor:
- ETC1S and UASTC LDR modes
- UASTC HDR 4x4, 6x6 and 6x6 intermediate modes

Every request produces both a .basis and a .ktx2 file, identified by their
magic numbers and served back for preview and download.
"""
from basis_api.config import Settings, get_settings
from basis_api.api import create_app

__all__ = ['create_app', 'Settings', 'get_settings']
