"""Sample gunicorn configuration for the Gas Town mail gateway.

Run with: gunicorn -c deploy/gunicorn.conf.py "gastown_mail.http:create_app()"
"""

import multiprocessing
from pathlib import Path

# Bind to the same port as the default settings; override via GUNICORN_CMD_ARGS if needed.
bind = "0.0.0.0:3001"

# Each request may block a worker thread on `gt` for up to MAIL_COMMAND_TIMEOUT_MS.
workers = multiprocessing.cpu_count() * 2 + 1
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5
graceful_timeout = 30
timeout = 60

pidfile = str(Path("/var/run/gastown-mail/gunicorn.pid"))
errorlog = "-"  # stderr
accesslog = "-"  # stdout
loglevel = "info"

forwarded_allow_ips = "*"
