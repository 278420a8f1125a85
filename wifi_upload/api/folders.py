"""Folder listing and creation endpoints."""

import asyncio
from http import HTTPStatus

from wifi_upload.core.lifespan import State
from wifi_upload.core.logger import LogIcon, logger
from wifi_upload.core.router import Router
from wifi_upload.http.response import Response, error_response
from wifi_upload.models.core import CreateFolderRequest
from wifi_upload.storage.file_store import FolderExistsError, InvalidNameError, StorageError

router = Router(prefix="/api")


@router.get("/folders")
async def list_folders(state: State) -> list[str]:
    return await asyncio.to_thread(state.file_store.list_folders)


@router.post("/createFolder")
async def create_folder(body: CreateFolderRequest, state: State) -> Response | str:
    name = body.folderName.strip()
    try:
        await asyncio.to_thread(state.file_store.create_folder, name)
    except InvalidNameError:
        logger.warning("Rejected folder name", icon=LogIcon.FORBIDDEN, folder=name)
        return error_response(HTTPStatus.BAD_REQUEST, "Invalid folder name")
    except FolderExistsError:
        logger.info("Folder already exists", icon=LogIcon.FOLDER, folder=name)
        return error_response(HTTPStatus.CONFLICT, f"Folder already exists: {name}")
    except (StorageError, OSError) as ex:
        logger.error("Folder creation failed", icon=LogIcon.ERROR, folder=name, error=str(ex))
        return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Error creating folder")

    return f"Folder created: {name}"
