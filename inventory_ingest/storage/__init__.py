"""
Storage Package
===============

Filesystem side effects kept out of the parsing code.

Components:
    - ImageStore / LocalImageStore: persistent storage for bundled images
    - scratch_directory: temporary extraction directories
"""

from inventory_ingest.storage.image_store import ImageStore, LocalImageStore, StoredImage
from inventory_ingest.storage.scratch import scratch_directory

__all__ = [
    "ImageStore",
    "LocalImageStore",
    "StoredImage",
    "scratch_directory",
]
