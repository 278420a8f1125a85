"""CORS handling: preflight answers and the allow-origin header."""

from http import HTTPStatus

from wifi_upload.http.request import Method, Request
from wifi_upload.http.response import Response
from wifi_upload.middlewares.base import BaseMiddleware


class CORSMiddleware(BaseMiddleware):
    """Answers every OPTIONS request and marks all responses as open to any origin."""

    allow_origin = "*"
    allow_methods = ("GET", "POST", "OPTIONS")
    allow_headers = ("Content-Type",)

    def before(self, request: Request) -> Request | Response:
        if request.method != Method.OPTIONS:
            return request
        return Response(
            status_code=HTTPStatus.OK,
            headers={
                "Access-Control-Allow-Methods": ", ".join(self.allow_methods),
                "Access-Control-Allow-Headers": ", ".join(self.allow_headers),
            },
        )

    def after(self, response: Response) -> Response:
        response.headers.setdefault("Access-Control-Allow-Origin", self.allow_origin)
        return response
