from __future__ import annotations

import json
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from ..errors import ValidationError
from ..handlers import HandlerResult, TaskHandlers
from ..schemas import ErrorOut, StatusUpdate, TaskCreate, TaskOut

MALFORMED_BODY = "Malformed JSON in request body."

router = APIRouter(
    prefix="/api/tasks",
    tags=["tasks"],
)


def get_handlers(request: Request) -> TaskHandlers:
    """
    Dependency binding the handler core to the repository created at startup.
    """
    return TaskHandlers(request.app.state.repository)


async def json_body(request: Request) -> Dict[str, Any]:
    """
    Read the request body as a JSON object.

    An empty body or a JSON value that is not an object reads as {} so the
    handlers report the missing fields; malformed JSON is a 400.
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise ValidationError(MALFORMED_BODY) from e
    return data if isinstance(data, dict) else {}


def _respond(result: HandlerResult) -> Response:
    if result.body is None:
        return Response(status_code=result.status_code)
    return JSONResponse(status_code=result.status_code, content=result.body)


def _body_doc(model: type) -> Dict[str, Any]:
    # Bodies are read by json_body, so describe them for the OpenAPI schema by hand
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema(by_alias=True)}},
        }
    }


_ERRORS: Dict[int, Dict[str, Any]] = {
    400: {"model": ErrorOut, "description": "Invalid input"},
    404: {"model": ErrorOut, "description": "Task not found"},
    500: {"model": ErrorOut, "description": "Storage failure"},
}


# PUBLIC_INTERFACE
@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new task. title, status and dueDate are required; dueDate is ISO 8601.",
    response_model=TaskOut,
    responses={201: {"description": "Task created"}, 400: _ERRORS[400], 500: _ERRORS[500]},
    openapi_extra=_body_doc(TaskCreate),
)
def create_task(
    payload: Dict[str, Any] = Depends(json_body),
    handlers: TaskHandlers = Depends(get_handlers),
) -> Response:
    """
    Create a task and return it with its generated id and timestamps.
    """
    return _respond(handlers.create(payload))


# PUBLIC_INTERFACE
@router.get(
    "",
    summary="List Tasks",
    description="List all tasks, most recently created first.",
    response_model=List[TaskOut],
    responses={200: {"description": "Tasks retrieved"}, 500: _ERRORS[500]},
)
def list_tasks(handlers: TaskHandlers = Depends(get_handlers)) -> Response:
    return _respond(handlers.list_all())


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    summary="Get Task",
    description="Get a single task by ID.",
    response_model=TaskOut,
    responses={200: {"description": "Task found"}, **_ERRORS},
)
def get_task(task_id: str, handlers: TaskHandlers = Depends(get_handlers)) -> Response:
    """
    Retrieve a single task by its ID.
    """
    return _respond(handlers.get(task_id))


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}/status",
    summary="Update Task Status",
    description="Set the status of a task. Only status and updatedAt change.",
    response_model=TaskOut,
    responses={200: {"description": "Task updated"}, **_ERRORS},
    openapi_extra=_body_doc(StatusUpdate),
)
def update_task_status(
    task_id: str,
    payload: Dict[str, Any] = Depends(json_body),
    handlers: TaskHandlers = Depends(get_handlers),
) -> Response:
    return _respond(handlers.update_status(task_id, payload))


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Task",
    description="Delete a task by ID.",
    responses={204: {"description": "Task deleted"}, **_ERRORS},
)
def delete_task(task_id: str, handlers: TaskHandlers = Depends(get_handlers)) -> Response:
    """
    Delete a task. Returns 204 on success, 404 if not found.
    """
    return _respond(handlers.delete(task_id))
