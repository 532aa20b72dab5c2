"""Gunicorn configuration file for RailQual application."""

# Application
wsgi_app = "wsgi:app"

# Server socket
bind = "0.0.0.0:5000"
backlog = 2048

# Worker processes
workers = 4  # Number of worker processes
worker_class = "sync"
max_requests = 1000  # Restart workers after this many requests
max_requests_jitter = 100  # Randomize max_requests by this amount
timeout = 120  # Request timeout in seconds; bulk updates and recalculation stay well under it
keepalive = 5

# Security
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190

# Logging
accesslog = "logs/access.log"
errorlog = "logs/error.log"
loglevel = "info"
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process naming
proc_name = "railqual"

# Server mechanics
# Workers do not run the daily recalculation; cron calls POST /api/qualifications/recalculate
preload_app = True
daemon = False
pidfile = "/tmp/railqual.pid"
worker_tmp_dir = "/dev/shm"
