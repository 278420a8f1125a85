"""File store lifespan event."""

import asyncio

from wifi_upload.core.lifespan import BaseEvent
from wifi_upload.core.settings import settings as st
from wifi_upload.storage.file_store import LocalFileStore


class FileStoreEvent(BaseEvent[LocalFileStore]):
    """Opens the media library root, creating it on first run."""

    name = "file_store"

    async def startup(self) -> LocalFileStore:
        store = LocalFileStore(st.STORAGE_PATH, media_extensions=st.ALLOWED_EXTENSIONS)
        await asyncio.to_thread(store.ensure_root)
        return store
