import logging
import os
import shutil
import uuid

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from flask import current_app

from order_portal.utils.exceptions import UploadFailed, UploadTimeout
from order_portal.utils.files import safe_name
from order_portal.utils.tokens import utcnow

logger = logging.getLogger(__name__)

LOCAL_PREFIX = "orders"


def unique_object_name(file_name, uploaded_at=None):
    uploaded_at = uploaded_at or utcnow()
    millis = int(uploaded_at.timestamp() * 1000)
    return f"{millis}-{uuid.uuid4().hex[:8]}-{safe_name(file_name)}"


class StorageUploader:
    """Pushes a staged file to object storage and returns an opaque reference to it."""

    def upload(self, path, file_name, content_type=None, timeout=None):
        raise NotImplementedError


class CloudinaryUploader(StorageUploader):
    def __init__(self, cloud_name, api_key, api_secret, folder=None):
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True
        )
        self.folder = folder

    def upload(self, path, file_name, content_type=None, timeout=None):
        public_id = os.path.splitext(unique_object_name(file_name))[0]
        options = {"resource_type": "auto", "public_id": public_id}
        if self.folder:
            options["folder"] = self.folder
        if timeout:
            options["timeout"] = timeout

        try:
            result = cloudinary.uploader.upload(path, **options)
        except cloudinary.exceptions.Error as e:
            reason = str(e)
            if "timed out" in reason.lower():
                raise UploadTimeout(reason) from e
            raise UploadFailed(reason) from e
        except TimeoutError as e:
            raise UploadTimeout(str(e) or "storage provider did not respond in time") from e
        except OSError as e:
            raise UploadFailed(str(e)) from e

        url = result.get("secure_url")
        if not url:
            raise UploadFailed("storage provider returned no URL")
        return url


class LocalStorageUploader(StorageUploader):
    """Copies files under a local folder; references are folder-relative keys."""

    def __init__(self, root):
        self.root = root

    def upload(self, path, file_name, content_type=None, timeout=None):
        key = f"{LOCAL_PREFIX}/{unique_object_name(file_name)}"
        dest = os.path.join(self.root, key)
        try:
            os.makedirs(os.path.dirname(dest), exist_ok=True)
            shutil.copyfile(path, dest)
        except OSError as e:
            raise UploadFailed(str(e)) from e
        return key


def build_uploader(config):
    backend = (config.get("STORAGE_BACKEND") or "cloudinary").lower()

    if backend == "local":
        return LocalStorageUploader(config["STORAGE_FOLDER"])

    if backend == "cloudinary":
        required = ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET")
        missing = [k for k in required if not config.get(k)]
        if missing:
            raise RuntimeError(f"Missing storage credentials: {', '.join(missing)}")
        return CloudinaryUploader(
            config["CLOUDINARY_CLOUD_NAME"],
            config["CLOUDINARY_API_KEY"],
            config["CLOUDINARY_API_SECRET"],
            folder=config.get("CLOUDINARY_FOLDER"),
        )

    raise RuntimeError(f"Unknown STORAGE_BACKEND: {backend}")


def init_storage(app, uploader=None):
    uploader = uploader or build_uploader(app.config)
    app.extensions["storage_uploader"] = uploader
    logger.info("Storage backend: %s", type(uploader).__name__)
    return uploader


def get_uploader():
    return current_app.extensions["storage_uploader"]
