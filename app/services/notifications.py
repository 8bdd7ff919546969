from app.models.tasks import Task
from app.services.email_worker import enqueue_email


async def notify_task_assigned(task: Task) -> int | None:
    """Queue the 'new task assigned' email for the task's current assignee."""
    assignee = task.assignee
    if assignee is None:
        return None

    subject = f"New Task Assigned: {task.title}"
    body = (
        f"Hello {assignee.name},\n\n"
        f"You have been assigned to a new task in Project: {task.project.title}.\n"
        f"Task: {task.title} (ID: {task.task_id})\n"
        f"Priority: {task.priority.value}\n"
        f"Due: {task.due_date.isoformat() if task.due_date else 'no due date'}\n\n"
        f"Please review it at your earliest convenience.\n"
    )
    return await enqueue_email(subject, body, to_email=assignee.email, task_id=task.task_id)
