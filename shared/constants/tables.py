class EventTables:
    """Centralised ClickHouse event stream table definitions"""

    PAGE_VIEWS = "page_views_stream"
    CLICK_EVENTS = "click_events_stream"
    SESSIONS = "sessions_stream"
    SCROLL_DEPTH = "scroll_depth_stream"

    @classmethod
    def all_tables(cls) -> list[str]:
        """Get all event stream tables, in export order"""
        return [cls.PAGE_VIEWS, cls.CLICK_EVENTS, cls.SESSIONS, cls.SCROLL_DEPTH]

    @classmethod
    def qualified(cls, database: str, table: str) -> str:
        """Return ``database.table`` for a known event table."""
        if table not in cls.all_tables():
            raise ValueError(f"Unknown event table: {table}")
        return f"{database}.{table}"
