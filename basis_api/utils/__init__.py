"""
Utility functions for the basis compression service.
"""
from basis_api.utils.metrics import (
    get_cpu_mem,
    format_file_size,
    compression_percentage,
    PerformanceTimer
)

from basis_api.utils.file_handling import (
    save_upload,
    create_job_dir,
    remove_file,
    remove_dir,
    cleanup_old_files,
    cleanup_old_job_dirs,
    clear_directory,
    find_latest_file
)

__all__ = [
    # Metrics utilities
    'get_cpu_mem',
    'format_file_size',
    'compression_percentage',
    'PerformanceTimer',

    # File handling utilities
    'save_upload',
    'create_job_dir',
    'remove_file',
    'remove_dir',
    'cleanup_old_files',
    'cleanup_old_job_dirs',
    'clear_directory',
    'find_latest_file'
]
