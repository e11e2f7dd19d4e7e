from .uploader import (
    MediaUploader,
    UploadedMedia,
    CloudinaryUploader,
    UnconfiguredUploader,
    MediaUploadError,
    TransientMediaError,
)
from .validation import AvatarFile, validate_avatar

__all__ = [
    "MediaUploader",
    "UploadedMedia",
    "CloudinaryUploader",
    "UnconfiguredUploader",
    "MediaUploadError",
    "TransientMediaError",
    "AvatarFile",
    "validate_avatar",
]
