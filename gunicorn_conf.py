import multiprocessing
import os

# gunicorn -c gunicorn_conf.py app.main:app

bind = os.getenv("BIND", "0.0.0.0:8000")

# (2 x cores) + 1 unless overridden. Each worker runs its own email queue.
workers = int(os.getenv("WEB_CONCURRENCY", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"

timeout = int(os.getenv("GUNICORN_TIMEOUT", 120))
graceful_timeout = 30
keepalive = 5

# Access and error logs go to stdout/stderr next to the app's own logging
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

proc_name = "project_tracker_api"
