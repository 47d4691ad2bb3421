"""Async client for the dashboard REST API."""

from marches_dashboard.api.base import ApiClient, build_url, TOKEN_COOKIE
from marches_dashboard.api.records import RecordsApi, RecordFilters
from marches_dashboard.api.documents import DocumentsApi, PiecesApi
from marches_dashboard.api.geometries import GeometriesApi
from marches_dashboard.api.auth import AuthApi

__all__ = [
    # Base
    "ApiClient",
    "build_url",
    "TOKEN_COOKIE",
    # Resources
    "RecordsApi",
    "RecordFilters",
    "DocumentsApi",
    "PiecesApi",
    "GeometriesApi",
    "AuthApi",
]
