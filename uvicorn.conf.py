from app.core.config import get_settings

settings = get_settings()

host = settings.BACKEND_HOST
port = settings.BACKEND_PORT
log_level = "debug" if settings.DEBUG else "info"
# The in-memory store is per process.
workers = 1 if settings.DEBUG or settings.DOCUMENT_STORE.lower() == "memory" else 2
