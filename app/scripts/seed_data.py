"""
Realistic seed data for the project tracker.

Creates an admin, a few managers and plain users, projects with members,
tasks spread over statuses and priorities (a few of them trashed) and
comments on both projects and tasks.

    python -m app.scripts.seed_data

All seeded accounts share the password ``password123``.
"""
import asyncio
import logging
import random
from datetime import date, datetime, timedelta, timezone

from faker import Faker
from sqlalchemy import delete

from app.database import AsyncSessionLocal, Base, engine
from app.models.comment import Comment
from app.models.email import EmailLog
from app.models.enums import Role, ProjectStatus, TaskStatus, TaskPriority, CommentableType
from app.models.project import Project, project_members
from app.models.tasks import Task
from app.models.user import User
from app.utils.security import get_password_hash

logger = logging.getLogger(__name__)

fake = Faker()

DEFAULT_PASSWORD = "password123"

PROJECT_TEMPLATES = {
    "Software Development": [
        ("User Authentication System", "Implement secure JWT-based authentication with role management"),
        ("API Performance Optimization", "Reduce API response times and improve caching"),
        ("CI/CD Pipeline Implementation", "Automate testing and deployment workflows"),
        ("Payment Gateway Integration", "Integrate a payment provider for subscriptions"),
    ],
    "Marketing": [
        ("Q1 Digital Marketing Campaign", "Launch multi-channel campaign for new product line"),
        ("Brand Identity Refresh", "Update logo, colors and brand guidelines"),
        ("SEO Optimization Project", "Improve organic search rankings for key terms"),
    ],
    "Operations": [
        ("Disaster Recovery Plan", "Develop and test a backup and restore strategy"),
        ("Security Audit and Compliance", "Complete the yearly compliance certification"),
        ("Customer Support Portal", "Build a self-service knowledge base and ticketing"),
    ],
}

TASK_VERBS = ["Draft", "Review", "Implement", "Test", "Document", "Plan", "Deploy", "Research"]


async def clear_existing_data(db):
    logger.info("Clearing existing data")
    for statement in (
        delete(Comment),
        delete(EmailLog),
        delete(Task),
        delete(project_members),
        delete(Project),
        delete(User),
    ):
        await db.execute(statement)
    await db.commit()


async def create_users(db, managers=3, users=12):
    hashed = get_password_hash(DEFAULT_PASSWORD)
    used_emails = set()

    def new_user(role, name=None, email=None):
        while email is None or email in used_emails:
            email = fake.unique.email()
        used_emails.add(email)
        return User(name=name or fake.name(), email=email, role=role, hashed_password=hashed)

    admin = new_user(Role.ADMIN, "Admin", "admin@example.com")
    manager_list = [new_user(Role.MANAGER) for _ in range(managers)]
    user_list = [new_user(Role.USER) for _ in range(users)]

    db.add_all([admin, *manager_list, *user_list])
    await db.flush()
    logger.info("Created %s users", 1 + len(manager_list) + len(user_list))
    return admin, manager_list, user_list


async def create_projects(db, managers, users):
    projects = []
    for domain, entries in PROJECT_TEMPLATES.items():
        for title, description in entries:
            project = Project(
                title=title,
                description=f"{domain}: {description}",
                deadline=date.today() + timedelta(days=random.randint(14, 180)),
                status=random.choices(list(ProjectStatus), weights=[70, 20, 10])[0],
                manager_id=random.choice(managers).user_id,
            )
            project.members = random.sample(users, k=random.randint(2, 5))
            db.add(project)
            projects.append(project)

    await db.flush()
    logger.info("Created %s projects", len(projects))
    return projects


async def create_tasks(db, projects, per_project=(3, 8)):
    tasks = []
    for project in projects:
        members = list(project.members)
        for _ in range(random.randint(*per_project)):
            status = random.choice(list(TaskStatus))
            task = Task(
                title=f"{random.choice(TASK_VERBS)} {fake.bs()}"[:255],
                description=fake.paragraph(nb_sentences=3),
                status=status,
                priority=random.choices(list(TaskPriority), weights=[30, 50, 20])[0],
                due_date=date.today() + timedelta(days=random.randint(1, 60)),
                project_id=project.project_id,
                # Some tasks stay unassigned so members can pick them up
                assigned_to_id=random.choice(members).user_id if random.random() < 0.75 else None,
                created_by_id=project.manager_id,
            )
            if random.random() < 0.1:
                task.deleted_at = datetime.now(timezone.utc) - timedelta(days=random.randint(1, 10))
            db.add(task)
            tasks.append(task)

    await db.flush()
    logger.info("Created %s tasks", len(tasks))
    return tasks


async def create_comments(db, projects, tasks):
    by_id = {p.project_id: p for p in projects}
    count = 0

    for project in projects:
        authors = [*project.members]
        for _ in range(random.randint(0, 3)):
            db.add(Comment(
                body=fake.sentence(nb_words=12),
                commentable_type=CommentableType.PROJECT,
                commentable_id=project.project_id,
                user_id=random.choice(authors).user_id,
            ))
            count += 1

    for task in tasks:
        authors = [*by_id[task.project_id].members]
        for _ in range(random.randint(0, 2)):
            db.add(Comment(
                body=fake.sentence(nb_words=10),
                commentable_type=CommentableType.TASK,
                commentable_id=task.task_id,
                user_id=random.choice(authors).user_id,
            ))
            count += 1

    await db.flush()
    logger.info("Created %s comments", count)


async def main():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        try:
            await clear_existing_data(db)
            admin, managers, users = await create_users(db)
            projects = await create_projects(db, managers, users)
            tasks = await create_tasks(db, projects)
            await create_comments(db, projects, tasks)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    await engine.dispose()
    logger.info("Seed complete. Log in as %s / %s", admin.email, DEFAULT_PASSWORD)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    asyncio.run(main())
