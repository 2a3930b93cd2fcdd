from .routes import get_scraper, get_sync_runner, get_sync_settings, register_error_handlers, router

__all__ = ["router", "get_sync_settings", "get_sync_runner", "get_scraper", "register_error_handlers"]
