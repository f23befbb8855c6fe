"""
Gunicorn configuration for ShiftGate production deployment.

Usage:
    gunicorn shiftgate.main:app -c gunicorn.conf.py
"""

import multiprocessing
import os

bind = os.getenv("BIND", "0.0.0.0:8000")

# Readiness requests are synchronous DB reads; scale with cores
workers = int(os.getenv("WEB_CONCURRENCY", multiprocessing.cpu_count() * 2 + 1))

# Use Uvicorn's ASGI worker for FastAPI
worker_class = "uvicorn.workers.UvicornWorker"

# Request timeout (seconds)
timeout = 30

keepalive = 5

# Logging
accesslog = "-"  # stdout
errorlog = "-"  # stderr
loglevel = "info"
