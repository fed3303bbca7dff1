from pydantic import BaseModel, Field

from taskboard.schemas.user import Timestamp


class TaskCreate(BaseModel):
    title: str | None = None
    description: str | None = None
    status: str | None = None


class TaskUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    status: str | None = None


class Task(BaseModel):
    id: int
    title: str
    description: str | None = None
    status: str
    user_id: int = Field(alias="userId")
    created_at: Timestamp = Field(alias="createdAt")
    updated_at: Timestamp = Field(alias="updatedAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class TaskCreated(BaseModel):
    success: bool = True
    message: str = "Task created successfully"
    task_id: int = Field(alias="taskId")
    title: str
    description: str | None = None
    status: str

    class Config:
        populate_by_name = True


class TaskList(BaseModel):
    page: int
    limit: int
    total: int
    tasks: list[Task] = []
