from supabase import Client
from app.config import settings
import logging

logger = logging.getLogger(__name__)


class PropertyStorage:
    """Object storage for listing media (Supabase storage bucket)."""

    def __init__(self, supabase: Client, bucket_name: str = None):
        self.bucket_name = bucket_name or settings.storage_bucket
        if not self.bucket_name:
            raise ValueError("Storage bucket name must be configured")
        self.bucket = supabase.storage.from_(self.bucket_name)

    def upload_file(self, file_content: bytes, key: str, content_type: str = "image/jpeg", upsert: bool = False) -> str:
        """Upload file to the bucket and return its public URL"""
        options = {"content-type": content_type, "cache-control": "3600", "upsert": "true" if upsert else "false"}
        try:
            self.bucket.upload(key, file_content, options)
        except Exception as e:
            logger.error(f"Failed to upload {key} to storage: {str(e)}")
            raise
        return self.bucket.get_public_url(key)

    def delete_file(self, key: str) -> bool:
        """Delete file from the bucket"""
        try:
            self.bucket.remove([key])
            return True
        except Exception as e:
            logger.error(f"Failed to delete {key} from storage: {str(e)}")
            return False
