"""Storage backends."""

from .abstract_storage import AbstractStorage
from .local_storage import LocalStorage
from .s3_storage import S3Storage

__all__ = ["AbstractStorage", "LocalStorage", "S3Storage", "build_storage"]


def build_storage(config) -> AbstractStorage:
    """Return the media backend selected by ``MEDIA_BACKEND``."""

    backend = (config.get("MEDIA_BACKEND") or "local").lower()
    if backend == "s3":
        return S3Storage(
            config["S3_BUCKET_NAME"],
            config.get("AWS_REGION", "ap-south-1"),
            public_url=config.get("S3_PUBLIC_URL"),
            access_key=config.get("AWS_ACCESS_KEY_ID"),
            secret_key=config.get("AWS_SECRET_ACCESS_KEY"),
        )
    if backend == "local":
        return LocalStorage(
            config.get("UPLOAD_DIR"), config.get("MEDIA_URL_PREFIX", "/media")
        )
    raise ValueError(f"Unknown MEDIA_BACKEND: {backend}")
