from .upload_service import MultipartUploadService

__all__ = [
    "MultipartUploadService",
]
