"""Object storage adapters implementing IObjectStorage."""

from coteacher.providers.storage.local_file_storage_provider import LocalFileStorageProvider
from coteacher.providers.storage.supabase_storage_provider import SupabaseStorageProvider

__all__ = ["LocalFileStorageProvider", "SupabaseStorageProvider"]
