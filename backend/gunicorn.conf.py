import os

# Serve with: gunicorn -c gunicorn.conf.py "rentapp:create_app()"
wsgi_app = "rentapp:create_app()"

# Bind & workers
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.getenv("GUNICORN_WORKERS", "2"))
threads = 1
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr; the app emits JSON lines itself
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

# ProxyFix in the app does the header trust; gunicorn forwards everything
forwarded_allow_ips = "*"
proxy_protocol = False
