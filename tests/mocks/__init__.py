"""
Mock implementations for external dependencies in tests.
"""

from .mock_s3_service import MockVideoS3Service
from .mock_ffmpeg_service import MockFFmpegProcess, create_mock_ffmpeg_exec

__all__ = [
    'MockVideoS3Service',
    'MockFFmpegProcess',
    'create_mock_ffmpeg_exec',
]
