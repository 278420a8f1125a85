"""Multipart file upload endpoint."""

import asyncio
from http import HTTPStatus

from wifi_upload.core.lifespan import State
from wifi_upload.core.logger import LogIcon, logger
from wifi_upload.core.router import Router
from wifi_upload.core.settings import settings as st
from wifi_upload.core.status import UploadStatusBoard
from wifi_upload.http.response import Response, error_response
from wifi_upload.models.core import FilePart, UploadForm
from wifi_upload.storage.file_store import FileStore, FolderExistsError, InvalidNameError, StorageError, validate_name

router = Router(prefix="/api")


def is_allowed(part: FilePart, extensions: tuple[str, ...] = st.ALLOWED_EXTENSIONS) -> bool:
    return part.extension in {ext.lower() for ext in extensions}


async def store_file(store: FileStore, board: UploadStatusBoard, folder: str, part: FilePart) -> bool:
    """Write one file part, creating the folder when missing. Failures are recorded, not raised."""
    board.start(folder, part.filename)
    try:
        folder_path = store.folder_path(folder)
        if not await asyncio.to_thread(store.file_exists, folder_path):
            try:
                await asyncio.to_thread(store.create_folder, folder)
            except FolderExistsError:
                # Another upload created it in the meantime
                logger.info("Folder appeared concurrently", icon=LogIcon.FOLDER, folder=folder)
        await asyncio.to_thread(store.write_file, folder_path, part.filename, part.data)
    except (StorageError, OSError) as ex:
        logger.error("Upload failed", icon=LogIcon.ERROR, file=part.filename, error=str(ex))
        board.fail(folder, part.filename, str(ex))
        return False

    board.succeed(folder, part.filename)
    logger.info("Upload stored", icon=LogIcon.UPLOAD, file=part.filename, folder=folder, size=len(part.data))
    return True


@router.post("/upload")
async def upload_files(form: UploadForm, state: State) -> Response | str:
    folder = form.folder
    if not folder:
        return error_response(HTTPStatus.BAD_REQUEST, "No folder specified")
    try:
        validate_name(folder)
    except InvalidNameError:
        return error_response(HTTPStatus.BAD_REQUEST, "Invalid folder name")

    accepted = []
    for part in form.files:
        if is_allowed(part):
            accepted.append(part)
        else:
            logger.info("Skipping unsupported file", icon=LogIcon.WARNING, file=part.filename)

    board: UploadStatusBoard = state.upload_status
    for part in accepted:
        board.queue(folder, part.filename)

    uploaded = 0
    for part in accepted:
        if await store_file(state.file_store, board, folder, part):
            uploaded += 1

    return f"{uploaded} file(s) uploaded successfully" if uploaded else "No files uploaded"
