"""
Background execution of projections.

Requests and responses are plain pydantic models so they can cross a
process boundary. handle_request is the worker side: it runs the engine
and turns any failure into an ErrorResponse. ProjectionWorkerClient is
the caller side: it numbers requests, keeps a pending map keyed by request
id, and resolves each awaiting caller when its response arrives.
"""
import asyncio
import logging
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from functools import partial
from typing import Annotated, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .comparator import compare_trajectories
from .exceptions import ProjectionWorkerError, WorkerTerminatedError
from .models import FinancialProfile
from .projector import generate_trajectory, generate_quick_trajectory
from .schemas import Change, Comparison, Trajectory

logger = logging.getLogger(__name__)


class GenerateRequest(BaseModel):
    type: Literal["generate"] = "generate"
    request_id: int
    profile: FinancialProfile

class GenerateQuickRequest(BaseModel):
    type: Literal["generate_quick"] = "generate_quick"
    request_id: int
    profile: FinancialProfile
    years: int = 10

class CompareRequest(BaseModel):
    type: Literal["compare"] = "compare"
    request_id: int
    baseline: Trajectory
    alternate: Trajectory
    changes: List[Change] = []
    name: str = "Comparison"

WorkerRequest = Annotated[
    Union[GenerateRequest, GenerateQuickRequest, CompareRequest],
    Field(discriminator="type"),
]

class TrajectoryResponse(BaseModel):
    type: Literal["trajectory"] = "trajectory"
    request_id: int
    trajectory: Trajectory

class ComparisonResponse(BaseModel):
    type: Literal["comparison"] = "comparison"
    request_id: int
    comparison: Comparison

class ErrorResponse(BaseModel):
    type: Literal["error"] = "error"
    request_id: int
    error: str

WorkerResponse = Annotated[
    Union[TrajectoryResponse, ComparisonResponse, ErrorResponse],
    Field(discriminator="type"),
]


def handle_request(request: WorkerRequest) -> WorkerResponse:
    """Run one request. Never raises; failures become an ErrorResponse."""
    try:
        if isinstance(request, GenerateRequest):
            return TrajectoryResponse(request_id=request.request_id, trajectory=generate_trajectory(request.profile))
        if isinstance(request, GenerateQuickRequest):
            return TrajectoryResponse(
                request_id=request.request_id,
                trajectory=generate_quick_trajectory(request.profile, request.years),
            )
        if isinstance(request, CompareRequest):
            return ComparisonResponse(
                request_id=request.request_id,
                comparison=compare_trajectories(request.baseline, request.alternate, request.changes, request.name),
            )
        return ErrorResponse(request_id=request.request_id, error=f"Unknown request type: {request.type}")
    except Exception as e:
        logger.exception("Projection request %s failed", request.request_id)
        return ErrorResponse(request_id=request.request_id, error=str(e) or type(e).__name__)


class ProjectionWorkerClient:
    """
    Async front end to a pool running handle_request.

    mode is "thread" (default) or "process". Pass executor to supply your
    own pool; the client then leaves shutting it down to you.
    """

    def __init__(self, mode: str = "thread", max_workers: int = 1, executor: Optional[Executor] = None):
        if executor is not None:
            self._executor = executor
            self._owns_executor = False
        elif mode == "thread":
            self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="projection-worker")
            self._owns_executor = True
        elif mode == "process":
            self._executor = ProcessPoolExecutor(max_workers=max_workers)
            self._owns_executor = True
        else:
            raise ValueError(f"Unknown worker mode: {mode}")

        self._next_request_id = 0
        self._pending: Dict[int, asyncio.Future] = {}
        self._terminated = False

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_terminated(self) -> bool:
        return self._terminated

    async def generate_trajectory(self, profile: FinancialProfile) -> Trajectory:
        response = await self._send(lambda request_id: GenerateRequest(request_id=request_id, profile=profile))
        return response.trajectory

    async def generate_quick_trajectory(self, profile: FinancialProfile, years: int = 10) -> Trajectory:
        response = await self._send(
            lambda request_id: GenerateQuickRequest(request_id=request_id, profile=profile, years=years)
        )
        return response.trajectory

    async def compare_trajectories(
        self,
        baseline: Trajectory,
        alternate: Trajectory,
        changes: List[Change],
        name: str = "Comparison"
    ) -> Comparison:
        response = await self._send(
            lambda request_id: CompareRequest(
                request_id=request_id, baseline=baseline, alternate=alternate, changes=changes, name=name
            )
        )
        return response.comparison

    def terminate(self) -> None:
        """Fail every pending request and stop accepting new ones."""
        if self._terminated:
            return
        self._terminated = True

        pending = list(self._pending.items())
        self._pending.clear()
        for request_id, future in pending:
            if not future.done():
                future.set_exception(WorkerTerminatedError(f"Worker terminated before request {request_id} completed"))

        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        logger.info("Projection worker terminated with %d pending requests", len(pending))

    async def _send(self, build_request: Callable[[int], BaseModel]):
        if self._terminated:
            raise WorkerTerminatedError("Worker has been terminated")

        request_id = self._next_request_id
        self._next_request_id += 1
        request = build_request(request_id)

        loop = asyncio.get_running_loop()
        response_future = loop.create_future()
        self._pending[request_id] = response_future

        try:
            execution = loop.run_in_executor(self._executor, handle_request, request)
            execution.add_done_callback(partial(self._on_execution_done, request_id))
            return await response_future
        finally:
            self._pending.pop(request_id, None)

    def _on_execution_done(self, request_id: int, execution: asyncio.Future) -> None:
        if execution.cancelled():
            self._fail(request_id, WorkerTerminatedError(f"Request {request_id} was cancelled"))
            return
        error = execution.exception()
        if error is not None:
            # The pool itself failed (e.g. a worker process died)
            self._fail(request_id, ProjectionWorkerError(str(error) or type(error).__name__, request_id))
            return
        self._dispatch_response(execution.result())

    def _dispatch_response(self, response: WorkerResponse) -> None:
        future = self._pending.pop(response.request_id, None)
        if future is None:
            logger.debug("Ignoring response for unknown request %s", response.request_id)
            return
        if future.done():
            return
        if isinstance(response, ErrorResponse):
            future.set_exception(ProjectionWorkerError(response.error, response.request_id))
        else:
            future.set_result(response)

    def _fail(self, request_id: int, error: Exception) -> None:
        future = self._pending.pop(request_id, None)
        if future is not None and not future.done():
            future.set_exception(error)
