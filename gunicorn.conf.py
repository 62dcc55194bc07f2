"""Gunicorn configuration file.

Secrets are read by app.config.settings from /run/secrets (Docker secrets)
or the environment. The post_fork hook only reports what each worker will
find, so a missing mount shows up in the worker log instead of as a
RuntimeError deep in the first request.
"""
import os
from pathlib import Path

bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))
accesslog = "-"

REQUIRED_SECRETS = {
    "flask_secret_key": "FLASK_SECRET_KEY",
    "entra_client_secret": "ENTRA_CLIENT_SECRET",
}


def post_fork(server, worker):
    """Called just after a worker has been forked."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"
    if demo_mode:
        worker.log.warning("DEMO_MODE=true: temporary secrets are generated per worker")
        return

    secrets_dir = Path("/run/secrets")
    for secret_name, env_name in REQUIRED_SECRETS.items():
        if (secrets_dir / secret_name).is_file():
            worker.log.info(f"Secret '{secret_name}' available in /run/secrets")
        elif os.environ.get(env_name):
            worker.log.info(f"Secret '{secret_name}' taken from {env_name}")
        else:
            worker.log.error(f"Secret '{secret_name}' missing: mount /run/secrets/{secret_name} or set {env_name}")
