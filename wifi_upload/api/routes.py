"""Application factory wiring middlewares and routers."""

from wifi_upload.api.folders import router as folders_router
from wifi_upload.api.pages import router as pages_router
from wifi_upload.api.upload import router as upload_router
from wifi_upload.core.application import Application
from wifi_upload.core.lifespan import State
from wifi_upload.middlewares.base import MiddlewareHandler
from wifi_upload.middlewares.cors import CORSMiddleware


def create_app(state: State) -> Application:
    app = Application(state)

    # Middlewares
    middlewares = MiddlewareHandler(app)
    middlewares.register(CORSMiddleware())

    # Routers
    app.include_router(pages_router)
    app.include_router(folders_router)
    app.include_router(upload_router)
    return app
