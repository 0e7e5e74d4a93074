import logging, time
from fastapi import UploadFile
from typing import List
from urllib.parse import urlparse, unquote
from app.database import paths

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/webp"]


def validate_image_files(files: List[UploadFile], max_files: int):
    """
    Raises ValueError when the upload set is empty, too large or contains a
    file that is not an image type we accept.
    """
    if not files:
        raise ValueError("Please upload at least one image of your property.")
    if len(files) > max_files:
        raise ValueError(f"You can upload a maximum of {max_files} images.")
    for file in files:
        if file.content_type not in ALLOWED_IMAGE_TYPES:
            raise ValueError(f"Unsupported file type: {file.content_type}")


def upload_to_path(bucket, file: UploadFile, path: str) -> str:
    """Uploads a file to the given storage path and returns its public URL."""
    blob = bucket.blob(path)
    file.file.seek(0)
    blob.upload_from_file(file.file, content_type=file.content_type)
    blob.make_public()
    return blob.public_url


def upload_listing_images(bucket, uid: str, files: List[UploadFile]) -> List[str]:
    """
    Uploads listing images to listings/{uid}/{timestamp}_{index}_{filename},
    keeping the order in which they were submitted.
    """
    timestamp = int(time.time() * 1000)
    urls = []
    for index, file in enumerate(files):
        try:
            urls.append(upload_to_path(bucket, file, paths.listing_image_path(uid, timestamp, index, file.filename)))
        except Exception as e:
            logger.error(f"Error uploading image {index} for UID {uid}: {str(e)}")
            # do not leave half of a listing's images behind
            delete_files_by_url(bucket, urls)
            raise RuntimeError(f"Failed to upload image {index}. Please try again.") from e
    return urls


def upload_profile_picture(bucket, uid: str, file: UploadFile) -> str:
    return upload_to_path(bucket, file, paths.profile_picture_path(uid))


def blob_path_from_url(url: str) -> str:
    """https://storage.googleapis.com/<bucket>/<path> → <path>"""
    path = urlparse(url).path
    return unquote("/".join(path.split("/")[2:]))


def delete_files_by_url(bucket, urls: List[str]) -> List[str]:
    """Deletes the blobs behind the given public URLs and returns the deleted paths."""
    deleted = []
    for url in urls:
        file_path = blob_path_from_url(url)
        if not file_path:
            continue

        blob = bucket.blob(file_path)
        if blob.exists():
            blob.delete()
            deleted.append(file_path)

    if deleted:
        logger.info(f"Deleted files from storage: {deleted}")
    else:
        logger.info("No files found to delete")
    return deleted
