"""
Gunicorn configuration for EstagioPro alerts production deployment.

Usage:
    gunicorn estagiopro.main:app -c gunicorn.conf.py
"""

# Bind to all interfaces on port 8000
bind = "0.0.0.0:8000"

# Single worker: the alert scheduler runs inside the app process, and every
# extra worker would start its own daily sweep.
workers = 1

# Use Uvicorn's ASGI worker for FastAPI
worker_class = "uvicorn.workers.UvicornWorker"

# Request timeout (seconds) — manual checks sweep every expiring internship
timeout = 120

# Keep-alive connections (seconds)
keepalive = 5

# Logging
accesslog = "-"  # stdout
errorlog = "-"   # stderr
loglevel = "info"
