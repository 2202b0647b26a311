from src.api.routers import auth, log_entries, projects, tasks

__all__ = ["auth", "log_entries", "projects", "tasks"]
