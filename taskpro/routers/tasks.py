from fastapi import APIRouter, Depends, HTTPException, status

from taskpro.models import (
    MessageResponse,
    TaskCreate,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)
from taskpro.services.task_service import CompletedTaskEditError, TaskService
from taskpro.store import TaskStore, get_store

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _not_found(task_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Task with id {task_id} not found",
    )


@router.get("", response_model=TaskListResponse)
async def get_tasks(store: TaskStore = Depends(get_store)):
    """List all tasks"""
    return {"data": TaskService.get_all_tasks(store)}


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str, store: TaskStore = Depends(get_store)):
    """Get a specific task by ID"""
    task = TaskService.get_task(task_id, store)
    if not task:
        raise _not_found(task_id)
    return {"data": task}


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(task_data: TaskCreate, store: TaskStore = Depends(get_store)):
    """Create a new task"""
    return {"data": TaskService.create_task(task_data, store)}


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str, task_data: TaskUpdate, store: TaskStore = Depends(get_store)
):
    try:
        task = TaskService.update_task(task_id, task_data, store)
    except CompletedTaskEditError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not task:
        raise _not_found(task_id)
    return {"data": task}


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(task_id: str, store: TaskStore = Depends(get_store)):
    """Delete a task"""
    if not TaskService.delete_task(task_id, store):
        raise _not_found(task_id)
    return {"message": "Task deleted successfully"}
