import logging

from starlette.requests import Request
from starlette.responses import JSONResponse

from sample_buckets.services.errors import (
    EmptySelectionException,
    FetchFailure,
    InstallSubmissionFailure,
    SampleBucketsException,
)
from sample_buckets.transport import ClusterRequestError

ERROR_STATUS = {
    EmptySelectionException: 400,
    FetchFailure: 502,
    InstallSubmissionFailure: 502,
}

logger = logging.getLogger(__name__)


def _status_for(exc: Exception) -> int:
    if isinstance(exc, InstallSubmissionFailure) and getattr(exc.cause, "timed_out", False):
        return 504
    return ERROR_STATUS.get(type(exc), 500)


def _exception_handler(request: Request, exc: Exception):
    status = _status_for(exc)
    if status >= 500:
        logger.exception("Request failed path=%s status=%s: %s", request.url.path, status, exc)
    else:
        logger.warning("Request failed path=%s status=%s error=%s", request.url.path, status, exc)
    body = {"detail": str(exc)}
    if isinstance(exc, FetchFailure):
        body["sources"] = exc.sources
    return JSONResponse(body, status_code=status)


def _cluster_error_handler(request: Request, exc: ClusterRequestError):
    logger.exception("Cluster request failed path=%s: %s", request.url.path, exc)
    return JSONResponse({"detail": str(exc)}, status_code=504 if exc.timed_out else 502)


def register_exception_handlers(app):
    app.exception_handler(SampleBucketsException)(_exception_handler)
    app.exception_handler(ClusterRequestError)(_cluster_error_handler)
