"""
Pipeline error to HTTP error mapping.
"""

from fastapi import HTTPException, status

from core.errors import DeviceError, ModelLoadError, ModelNotLoadedError, PoseSenseError

from .constants import APIErrorCode


def to_http_exception(error: Exception) -> HTTPException:
    """
    Convert an exception raised by a lifecycle command.

    Returns:
        HTTPException with an ``{"error": {"message", "type"}}`` detail
    """
    if isinstance(error, ModelLoadError):
        status_code = status.HTTP_404_NOT_FOUND if error.missing else status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, ModelNotLoadedError):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(error, DeviceError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(error, PoseSenseError):
        detail = {"error": error.to_dict()}
    else:
        detail = {
            "error": {
                "message": str(error),
                "type": APIErrorCode.INTERNAL_ERROR.value,
            }
        }
    return HTTPException(status_code=status_code, detail=detail)
