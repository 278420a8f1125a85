"""wifi-upload-server - upload music to the media library over the local network."""

import asyncio
import signal

from wifi_upload.core.lifespan import create_lifespan
from wifi_upload.core.logger import LogIcon, logger
from wifi_upload.core.settings import settings as st
from wifi_upload.events.file_store import FileStoreEvent
from wifi_upload.events.upload_server import UploadServerEvent
from wifi_upload.events.upload_status import UploadStatusEvent


async def serve() -> None:
    """Run the lifespan until SIGINT or SIGTERM."""
    lifespan = create_lifespan()
    lifespan.register(FileStoreEvent).register(UploadStatusEvent).register(UploadServerEvent)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    try:
        await lifespan.startup()
        await stop.wait()
    finally:
        await lifespan.shutdown()


def main() -> None:
    logger.info("Starting %s | host=%s | port=%s", st.API_NAME, st.API_HOST, st.API_PORT, icon=LogIcon.START)
    asyncio.run(serve())


if __name__ == "__main__":
    main()
