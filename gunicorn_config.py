"""
gunicorn_config.py
──────────────────
Serving settings for the Bikeyard API:

    gunicorn -c gunicorn_config.py

Worker counts and timeouts can be overridden from the environment.
"""
import multiprocessing
import os


def _env_int(name, default):
    return int(os.environ.get(name, default))


wsgi_app = 'wsgi:app'
bind = f"0.0.0.0:{os.environ.get('PORT', '5000')}"

# One SQLAlchemy pool per worker process
workers = _env_int('WEB_CONCURRENCY', multiprocessing.cpu_count() + 1)
threads = _env_int('GUNICORN_THREADS', 4)
worker_class = 'gthread'

# Uploads of up to 16 MB on slow links
timeout = _env_int('GUNICORN_TIMEOUT', 60)
graceful_timeout = 30
keepalive = 5
max_requests = _env_int('GUNICORN_MAX_REQUESTS', 1000)
max_requests_jitter = 100

# Access lines come from the app's log_request hook
accesslog = None
errorlog = '-'
loglevel = os.environ.get('LOG_LEVEL', 'info').lower()
capture_output = True
