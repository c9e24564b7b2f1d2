"""
Gunicorn Configuration

Uvicorn workers under Gunicorn. Every worker opens its own database engine,
Redis pool and change listener in the application lifespan.
"""

import os

bind = os.getenv("BIND", f"0.0.0.0:{os.getenv('PORT', '8000')}")

# Dashboard traffic is light; a couple of workers is enough
workers = int(os.getenv("WORKERS", 2))
worker_class = "uvicorn.workers.UvicornWorker"
max_requests = 5000
max_requests_jitter = 500
timeout = 60
keepalive = 5
graceful_timeout = 30

proc_name = "scr-agro-admin-api"

errorlog = "-"
accesslog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
