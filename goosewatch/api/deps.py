from fastapi import Request

from goosewatch.storage import ReportStore


def get_store(request: Request) -> ReportStore:
    """The storage backend chosen at startup."""
    return request.app.state.store
