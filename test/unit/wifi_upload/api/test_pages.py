"""Tests for the upload page."""

from wifi_upload.api.pages import render_upload_page


class TestRenderUploadPage:
    """Tests for render_upload_page."""

    def test_one_option_per_folder(self) -> None:
        """Verify every folder becomes an option after the placeholder."""
        page = render_upload_page(["Rock", "Jazz"], ("mp3", "m4a"))

        assert page.count("<option value=") == 3
        assert '<option value="Rock">Rock</option>' in page
        assert '<option value="Jazz">Jazz</option>' in page

    def test_folder_names_are_escaped(self) -> None:
        """Verify folder names are HTML-escaped."""
        page = render_upload_page(['<b>"Loud"</b>'], ("mp3",))
        assert "<b>" not in page
        assert "&lt;b&gt;&quot;Loud&quot;&lt;/b&gt;" in page

    def test_extensions(self) -> None:
        """Verify the allowed extensions reach the picker, the label and the script."""
        page = render_upload_page([], ("mp3", "m4a"))

        assert 'accept=".mp3,.m4a"' in page
        assert "MP3 / M4A" in page
        assert 'const allowedExtensions = ["mp3","m4a"];' in page

    def test_page_talks_to_the_api(self) -> None:
        """Verify the script posts to both API endpoints."""
        page = render_upload_page([], ("mp3",))

        assert "fetch('/api/createFolder'" in page
        assert "xhr.open('POST', '/api/upload')" in page
        assert "formData.append('folder', folder)" in page
        assert "formData.append('file', file)" in page


class TestUploadPageRoute:
    """Tests for GET /."""

    async def test_lists_current_folders(self, app, make_request, memory_store) -> None:
        """Verify the page reflects folders created after startup."""
        memory_store.folders["Fresh"] = {}
        response = await app.dispatch(make_request("GET", "/"))

        assert response.status_code == 200
        assert response.content_type == "text/html; charset=utf-8"
        assert '<option value="Fresh">Fresh</option>' in response.text

    async def test_query_string_ignored(self, app, make_request) -> None:
        """Verify a query string still serves the page."""
        response = await app.dispatch(make_request("GET", "/?refresh=1"))
        assert response.status_code == 200
