"""Error types raised outside the numeric core"""
from typing import Optional


class TrajectoryLabError(Exception):
    """Base exception for the projection service"""

    pass


class ProjectionWorkerError(TrajectoryLabError):
    """The projection worker answered a request with an error response"""

    def __init__(self, message: str, request_id: Optional[int] = None):
        super().__init__(message)
        self.request_id = request_id


class WorkerTerminatedError(TrajectoryLabError):
    """The worker client was terminated before the request completed"""

    pass
