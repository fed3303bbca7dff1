# Gunicorn configuration file for the REST transport
# For FastAPI/Uvicorn, we use the UvicornWorker:
#   gunicorn -c gunicorn_conf.py taskboard.main:app

# Bind to all interfaces on port 5001
bind = "0.0.0.0:5001"

# Worker configuration
# One worker: the token revocation set (and the memory store) live in the
# worker process and must be shared by every request. Concurrency comes from
# the event loop, not from extra processes.
workers = 1
worker_class = "uvicorn.workers.UvicornWorker"

# Timeout and Keepalive
timeout = 120
keepalive = 5

# Logging
accesslog = "-" # Log to stdout
errorlog = "-"  # Log to stderr
loglevel = "info"

# Process management
name = "taskboard_api"
reload = False  # Set to True for development only
