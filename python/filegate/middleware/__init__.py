"""Middleware modules for the file gateway."""

from filegate.middleware.file_cors import FileCORSMiddleware
from filegate.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware

__all__ = ["FileCORSMiddleware", "RequestIDMiddleware", "REQUEST_ID_HEADER"]
