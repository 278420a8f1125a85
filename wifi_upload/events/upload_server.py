"""Upload server lifespan event."""

from wifi_upload.api.routes import create_app
from wifi_upload.core.lifespan import BaseEvent
from wifi_upload.core.settings import settings as st
from wifi_upload.http.server import UploadServer


class UploadServerEvent(BaseEvent[UploadServer]):
    """Binds the listener over the app built from the stored file store."""

    name = "upload_server"
    requires = ("file_store", "upload_status")

    async def startup(self) -> UploadServer:
        server = UploadServer.from_settings(create_app(self.state), st, status_board=self.state.upload_status)
        await server.start()
        return server

    async def shutdown(self, instance: UploadServer) -> None:
        await instance.stop()
