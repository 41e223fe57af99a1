"""Run the MatchWise API with uvicorn (auto-reload in debug mode)."""
import uvicorn

from matchwise.config import settings

if __name__ == "__main__":
    print(f"Starting {settings.app_name} v{settings.version}")
    print(f"Environment: {settings.environment.value}")
    print(f"Database: {settings.db.url.split('@')[-1] if '@' in settings.db.url else 'SQLite'}")
    print(f"Functions: {settings.functions.base_url}")
    print(f"Auto-reload: {'Enabled' if settings.debug else 'Disabled'}")
    print("-" * 50)

    uvicorn.run(
        "matchwise.api:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        reload_dirs=["matchwise", "ai"] if settings.debug else None,
        log_level=settings.logging.level.lower(),
    )
