"""Test environment: settings are read at import time, so set them before any app import."""

import os

os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MASTER_KEY"] = "3f1c9a7e5b2d4f6081a3c5e7092b4d6f8a1c3e5f7092b4d6e8f0a1c3e5f70921"
os.environ["JWT_ACCESS_SECRET"] = "test-access-signing-secret-0123456789abcdef"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-signing-secret-0123456789abcdef"
os.environ["CORS_ORIGIN"] = "http://localhost:3000"
os.environ["FORCE_HTTPS"] = "false"
os.environ.pop("SECRETS_ENVIRONMENT", None)
