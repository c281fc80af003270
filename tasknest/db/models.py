from __future__ import annotations

from datetime import UTC, datetime
from datetime import date as date_type

from sqlalchemy import Column, Date, String
from sqlmodel import Field, SQLModel

from tasknest.db.enums import TaskStatus

DUE_DATE_DISPLAY_FORMAT = "%Y/%m/%d"


def utc_now() -> datetime:
    return datetime.now(UTC)


def persisted_id(row: User | Folder | Task) -> int:
    """Primary key of a row that has been flushed; rows are only handed out after commit."""
    if row.id is None:
        raise RuntimeError(f"{type(row).__name__} has no primary key yet")
    return row.id


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(length=120), nullable=False))
    email: str = Field(sa_column=Column(String(length=255), nullable=False, unique=True))
    created_at: datetime = Field(default_factory=utc_now, nullable=False)
    updated_at: datetime = Field(default_factory=utc_now, nullable=False)


class Folder(SQLModel, table=True):
    __tablename__ = "folders"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    title: str = Field(sa_column=Column(String(length=20), nullable=False))
    created_at: datetime = Field(default_factory=utc_now, nullable=False)
    updated_at: datetime = Field(default_factory=utc_now, nullable=False)


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: int | None = Field(default=None, primary_key=True)
    folder_id: int = Field(foreign_key="folders.id", nullable=False, index=True)
    title: str = Field(sa_column=Column(String(length=100), nullable=False))
    status: TaskStatus = Field(
        default=TaskStatus.NOT_STARTED,
        sa_column=Column(String(length=32), nullable=False, index=True),
    )
    due_date: date_type = Field(sa_column=Column(Date(), nullable=False))
    created_at: datetime = Field(default_factory=utc_now, nullable=False)
    updated_at: datetime = Field(default_factory=utc_now, nullable=False)

    @property
    def status_value(self) -> TaskStatus:
        # Rows loaded from the store carry the raw string.
        return TaskStatus(self.status)

    @property
    def status_label(self) -> str:
        return self.status_value.label

    @property
    def status_class(self) -> str:
        return self.status_value.css_class

    @property
    def formatted_due_date(self) -> str:
        return self.due_date.strftime(DUE_DATE_DISPLAY_FORMAT)
