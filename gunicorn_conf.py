# Gunicorn settings for the festpass API (run with: gunicorn -c gunicorn_conf.py main:app)
import multiprocessing
import os


def env(name, default, cast=str):
    """Read a setting from the environment; blank or unparseable values fall back to ``default``"""
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return cast(value)
    except ValueError:
        return default


bind = f"0.0.0.0:{env('PORT', 5051, int)}"

# Check-in gates hit the API in short bursts; 2 * cores + 1 covers a busy entrance
workers = env("GUNICORN_WORKERS", 2 * (multiprocessing.cpu_count() or 1) + 1, int)
worker_class = env("GUNICORN_WORKER_CLASS", "sync")

# Pass images are rendered in-process; recycle workers to keep memory flat
max_requests = env("GUNICORN_MAX_REQUESTS", 1000, int)
max_requests_jitter = env("GUNICORN_MAX_REQUESTS_JITTER", 100, int)

# Scanner stations poll over keep-alive connections
keepalive = env("GUNICORN_KEEPALIVE", 5, int)

# Ticket composition can fetch remote artwork
timeout = env("GUNICORN_TIMEOUT", 90, int)
graceful_timeout = env("GUNICORN_GRACEFUL_TIMEOUT", 30, int)

accesslog = "-"
errorlog = "-"
loglevel = env("GUNICORN_LOGLEVEL", "info")

# Scan payloads are tiny
limit_request_line = 4094
limit_request_fields = 50
limit_request_field_size = 8190
