"""Upload status board lifespan event."""

from wifi_upload.core.lifespan import BaseEvent
from wifi_upload.core.settings import settings as st
from wifi_upload.core.status import UploadStatusBoard


class UploadStatusEvent(BaseEvent[UploadStatusBoard]):
    """Creates the board that records per-file upload outcomes."""

    name = "upload_status"

    async def startup(self) -> UploadStatusBoard:
        return UploadStatusBoard(grace_period=st.STATUS_GRACE_PERIOD)

    async def shutdown(self, instance: UploadStatusBoard) -> None:
        instance.clear()
