"""Pytest fixtures: a throwaway SQLite database, the ASGI app and data factories."""
import itertools
import os
import tempfile
from datetime import date, timedelta

_tmpdir = tempfile.mkdtemp(prefix="tracker-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmpdir}/test.db"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["EMAIL_HOST"] = ""

import httpx
import pytest
from sqlalchemy import select

from app.database import AsyncSessionLocal, Base, engine
from app.main import app
from app.models.comment import Comment
from app.models.enums import Role, CommentableType
from app.models.project import Project
from app.models.tasks import Task
from app.models.user import User
from app.utils.security import create_access_token, get_password_hash

PASSWORD = "password123"
HASHED_PASSWORD = get_password_hash(PASSWORD)


@pytest.fixture
async def reset_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture
async def db(reset_db):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def client(reset_db):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    async def _make(role: Role = Role.USER, name: str | None = None) -> User:
        n = next(counter)
        user = User(
            name=name or f"{role.value.title()} {n}",
            email=f"{role.value}{n}@example.com",
            role=role,
            hashed_password=HASHED_PASSWORD,
        )
        db.add(user)
        await db.commit()
        return user

    return _make


@pytest.fixture
def make_project(db):
    counter = itertools.count(1)

    async def _make(manager: User, members=(), **fields) -> Project:
        fields.setdefault("title", f"Project {next(counter)}")
        fields.setdefault("deadline", date.today() + timedelta(days=30))
        project = Project(manager_id=manager.user_id, **fields)
        project.members = list(members)
        db.add(project)
        await db.commit()
        return project

    return _make


@pytest.fixture
def make_task(db):
    counter = itertools.count(1)

    async def _make(project: Project, creator: User, assignee: User | None = None, **fields) -> Task:
        fields.setdefault("title", f"Task {next(counter)}")
        fields.setdefault("due_date", date.today() + timedelta(days=7))
        task = Task(
            project=project,
            project_id=project.project_id,
            created_by_id=creator.user_id,
            assigned_to_id=assignee.user_id if assignee else None,
            **fields,
        )
        db.add(task)
        await db.commit()
        return task

    return _make


@pytest.fixture
def make_comment(db):
    async def _make(author: User, target, body: str = "A comment") -> Comment:
        if isinstance(target, Project):
            kind, target_id = CommentableType.PROJECT, target.project_id
        else:
            kind, target_id = CommentableType.TASK, target.task_id
        comment = Comment(body=body, commentable_type=kind, commentable_id=target_id, user_id=author.user_id)
        db.add(comment)
        await db.commit()
        return comment

    return _make


async def reload(db, model, pk):
    """Fetch a row as the database has it now, bypassing the session's identity map."""
    return await db.get(model, pk, populate_existing=True)


async def count_rows(db, model, *criteria) -> int:
    result = await db.execute(select(model).where(*criteria))
    return len(result.scalars().all())
