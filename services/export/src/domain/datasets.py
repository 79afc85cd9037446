"""Catalogue of exported data types.

Column lists are fixed per data type and declared ahead of query execution;
they are both the SELECT aliases and the CSV header, in this order.
"""

from typing import Tuple

from pydantic import BaseModel, ConfigDict

from shared.constants import EventTables


class DataType(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str  # metadata value and file name prefix
    folder: str  # top-level key prefix in the bucket
    table: str
    label: str  # human name logged with nothing_to_upload
    columns: Tuple[str, ...]


PAGE_VIEWS = DataType(
    name="page_views",
    folder="page-views",
    table=EventTables.PAGE_VIEWS,
    label="page views",
    columns=(
        "page_url",
        "page_title",
        "view_count",
        "unique_users",
        "unique_sessions",
        "avg_time_on_page",
        "device",
        "referrer",
        "user_agent",
        "ip_address",
        "avg_viewport_width",
        "avg_viewport_height",
        "time_bucket",
        "date",
        "hour",
        "minute",
    ),
)

CLICK_EVENTS = DataType(
    name="click_events",
    folder="click-events",
    table=EventTables.CLICK_EVENTS,
    label="click events",
    columns=(
        "page_url",
        "element_type",
        "element_text",
        "element_id",
        "element_class",
        "click_count",
        "unique_users",
        "unique_sessions",
        "avg_click_x",
        "avg_click_y",
        "time_bucket",
        "date",
        "hour",
        "minute",
    ),
)

SESSIONS = DataType(
    name="sessions",
    folder="sessions",
    table=EventTables.SESSIONS,
    label="session data",
    columns=(
        "user_id",
        "session_id",
        "start_time",
        "end_time",
        "duration",
        "page_count",
        "initial_referrer",
        "initial_user_agent",
        "ip_address",
        "hour_bucket",
        "date",
        "hour",
        "minute",
        "session_duration_category",
    ),
)

SCROLL_DEPTH = DataType(
    name="scroll_depth",
    folder="scroll-depth",
    table=EventTables.SCROLL_DEPTH,
    label="scroll depth data",
    columns=(
        "page_url",
        "total_scrolls",
        "unique_users",
        "unique_sessions",
        "avg_max_scroll_depth",
        "avg_time_to_max_scroll",
        "avg_page_height",
        "avg_viewport_height",
        "reached_25_percent",
        "reached_50_percent",
        "reached_75_percent",
        "reached_100_percent",
        "scroll_milestones",
        "time_bucket",
        "date",
        "hour",
        "minute",
    ),
)

ALL_DATA_TYPES: Tuple[DataType, ...] = (PAGE_VIEWS, CLICK_EVENTS, SESSIONS, SCROLL_DEPTH)
