import pandas as pd
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.services.query import TaskFilters, build_task_query

EXPORT_COLUMNS = [
    "ID", "Title", "Status", "Priority", "Assigned User Name", "Project Title", "Due Date",
]


async def get_export_dataframe(db: AsyncSession, actor: User, filters: TaskFilters, sort: str | None) -> pd.DataFrame:
    """The task list the actor would see with these filters, one row per task."""
    result = await db.execute(build_task_query(actor, filters, sort))
    tasks = result.scalars().all()

    rows = [
        {
            "ID": task.task_id,
            "Title": task.title,
            "Status": task.status.value,
            "Priority": task.priority.value,
            "Assigned User Name": task.assignee.name if task.assignee else "Unassigned",
            "Project Title": task.project.title if task.project else "N/A",
            "Due Date": task.due_date.isoformat() if task.due_date else "N/A",
        }
        for task in tasks
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


async def generate_tasks_csv(db: AsyncSession, actor: User, filters: TaskFilters, sort: str | None) -> str:
    df = await get_export_dataframe(db, actor, filters, sort)
    return df.to_csv(index=False)
