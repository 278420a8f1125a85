"""Upload page served at the root path."""

import asyncio
import html
from string import Template

import orjson

from wifi_upload.core.lifespan import State
from wifi_upload.core.logger import LogIcon, logger
from wifi_upload.core.router import Router
from wifi_upload.core.settings import settings as st
from wifi_upload.http.response import Response, html_response

router = Router(prefix="/")

# JavaScript below avoids "$" so Template only sees the placeholders.
UPLOAD_PAGE = Template("""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Music Upload</title>
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>
        body { font-family: -apple-system, Arial, sans-serif; max-width: 800px; margin: 0 auto; padding: 20px; color: #222; }
        h1 { font-size: 1.6em; }
        section { margin: 24px 0; }
        select, input[type=text] { padding: 10px; font-size: 16px; }
        select { width: 100%; }
        button { background: #007AFF; color: white; padding: 10px 20px; border: none; border-radius: 8px; font-size: 16px; cursor: pointer; }
        button:hover { background: #0056b3; }
        .upload-area { border: 2px dashed #ccc; border-radius: 12px; padding: 40px; text-align: center; }
        .upload-area.dragover { border-color: #007AFF; background: #f0f8ff; }
        .file-input { display: none; }
        .progress-container { margin: 12px 0; }
        .progress-bar { width: 100%; height: 16px; background: #eee; border-radius: 8px; overflow: hidden; }
        .progress-fill { height: 100%; width: 0%; background: #007AFF; transition: width 0.3s; }
        .status-success { color: #28a745; font-weight: 600; }
        .status-error { color: #dc3545; font-weight: 600; }
    </style>
</head>
<body>
    <h1>Music Upload</h1>

    <section>
        <h2>Create Folder</h2>
        <input type="text" id="folderName" placeholder="Folder name">
        <button onclick="createFolder()">Create</button>
    </section>

    <section>
        <h2>Target Folder</h2>
        <select id="folderSelect">
            <option value="">-- Select a folder --</option>
$folder_options
        </select>
    </section>

    <section class="upload-area" id="uploadArea">
        <p>Drop $extension_label files here or</p>
        <input type="file" id="fileInput" class="file-input" multiple accept="$accept">
        <button onclick="document.getElementById('fileInput').click()">Select Files</button>
    </section>

    <div id="uploadStatus"></div>

    <script>
        const allowedExtensions = $extensions_json;
        const folderSelect = document.getElementById('folderSelect');
        const uploadArea = document.getElementById('uploadArea');

        function createFolder() {
            const name = document.getElementById('folderName').value.trim();
            if (!name) {
                alert('Please enter a folder name');
                return;
            }
            fetch('/api/createFolder', {
                method: 'POST',
                headers: { 'Content-Type': 'application/json' },
                body: JSON.stringify({ action: 'createFolder', folderName: name })
            })
            .then(response => response.text())
            .then(text => { alert(text); location.reload(); })
            .catch(error => alert('Error: ' + error));
        }

        function extensionOf(name) {
            const dot = name.lastIndexOf('.');
            return dot < 0 ? '' : name.slice(dot + 1).toLowerCase();
        }

        function uploadFile(file, index, folder) {
            const progressId = 'progress-' + index;
            const statusId = 'status-' + index;
            const container = document.createElement('div');
            container.className = 'progress-container';
            const label = document.createElement('div');
            label.textContent = file.name;
            container.appendChild(label);
            container.insertAdjacentHTML('beforeend',
                '<div class="progress-bar"><div class="progress-fill" id="' + progressId + '"></div></div>' +
                '<div id="' + statusId + '">Preparing...</div>');
            document.getElementById('uploadStatus').appendChild(container);

            const formData = new FormData();
            formData.append('folder', folder);
            formData.append('file', file);

            const xhr = new XMLHttpRequest();
            xhr.upload.addEventListener('progress', event => {
                if (event.lengthComputable) {
                    const percent = Math.round(event.loaded / event.total * 100);
                    document.getElementById(progressId).style.width = percent + '%';
                    document.getElementById(statusId).textContent = 'Uploading: ' + percent + '%';
                }
            });
            xhr.addEventListener('load', () => {
                const status = document.getElementById(statusId);
                if (xhr.status === 200) {
                    status.textContent = xhr.responseText;
                    status.className = 'status-success';
                } else {
                    status.textContent = 'Upload failed: ' + xhr.responseText;
                    status.className = 'status-error';
                }
            });
            xhr.addEventListener('error', () => {
                const status = document.getElementById(statusId);
                status.textContent = 'Upload error';
                status.className = 'status-error';
            });
            xhr.open('POST', '/api/upload');
            xhr.send(formData);
        }

        function uploadFiles(files) {
            const folder = folderSelect.value;
            if (!folder) {
                alert('Please select a folder first');
                return;
            }
            document.getElementById('uploadStatus').innerHTML = '';
            Array.from(files).forEach((file, index) => {
                if (!allowedExtensions.includes(extensionOf(file.name))) {
                    alert(file.name + ' is not a supported audio file');
                    return;
                }
                uploadFile(file, index, folder);
            });
        }

        uploadArea.addEventListener('dragover', event => {
            event.preventDefault();
            uploadArea.classList.add('dragover');
        });
        uploadArea.addEventListener('dragleave', event => {
            event.preventDefault();
            uploadArea.classList.remove('dragover');
        });
        uploadArea.addEventListener('drop', event => {
            event.preventDefault();
            uploadArea.classList.remove('dragover');
            uploadFiles(event.dataTransfer.files);
        });
        document.getElementById('fileInput').addEventListener('change', event => uploadFiles(event.target.files));
    </script>
</body>
</html>
""")


def render_upload_page(folders: list[str], extensions: tuple[str, ...]) -> str:
    """Render the page with one <option> per folder."""
    folder_options = "\n".join(
        f'            <option value="{html.escape(folder)}">{html.escape(folder)}</option>' for folder in folders
    )
    return UPLOAD_PAGE.substitute(
        folder_options=folder_options,
        extension_label=html.escape(" / ".join(ext.upper() for ext in extensions)),
        accept=html.escape(",".join(f".{ext}" for ext in extensions)),
        extensions_json=orjson.dumps(list(extensions)).decode().replace("</", "<\\/"),
    )


@router.get("/")
async def upload_page(state: State) -> Response:
    folders = await asyncio.to_thread(state.file_store.list_folders)
    logger.info("Upload page requested", icon=LogIcon.NETWORK, folders=len(folders))
    return html_response(render_upload_page(folders, st.ALLOWED_EXTENSIONS))
