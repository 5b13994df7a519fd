"""Gunicorn production configuration."""

bind = "0.0.0.0:8000"
# The entity store lives in process memory; more workers would mean
# independent, diverging stores.
workers = 1
worker_class = "uvicorn.workers.UvicornWorker"
wsgi_app = "expenseflow.main:app"
timeout = 120
keepalive = 5
accesslog = "-"
errorlog = "-"
loglevel = "info"
