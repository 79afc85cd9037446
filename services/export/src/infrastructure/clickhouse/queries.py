"""Export queries against the ClickHouse event streams.

Every query takes ``%(start_time)s`` / ``%(end_time)s`` bound client-side by
clickhouse-connect and filters the half-open window ``[start, end)``. The
SELECT aliases match the column catalogue in ``src.domain.datasets``.
"""

WINDOW_PREDICATE = "timestamp >= %(start_time)s AND timestamp < %(end_time)s"

COUNT_QUERY = """
SELECT COUNT(*) AS count
FROM {table}
WHERE """ + WINDOW_PREDICATE

TABLE_STATS_QUERY = """
SELECT COUNT(*) AS total, MAX(timestamp) AS latest
FROM {table}
"""

PAGE_VIEWS_QUERY = """
SELECT
    page_url,
    page_title,
    COUNT(*) AS view_count,
    COUNT(DISTINCT user_id) AS unique_users,
    COUNT(DISTINCT session_id) AS unique_sessions,
    AVG(time_on_page) AS avg_time_on_page,
    device,
    referrer,
    user_agent,
    ip_address,
    AVG(viewport_width) AS avg_viewport_width,
    AVG(viewport_height) AS avg_viewport_height,
    toStartOfMinute(timestamp) AS time_bucket,
    toDate(timestamp) AS date,
    toHour(timestamp) AS hour,
    toMinute(timestamp) AS minute
FROM {table}
WHERE """ + WINDOW_PREDICATE + """
GROUP BY page_url, page_title, device, referrer, user_agent, ip_address,
         time_bucket, date, hour, minute
ORDER BY time_bucket DESC, view_count DESC, page_url, page_title, device,
         referrer, user_agent, ip_address
"""

CLICK_EVENTS_QUERY = """
SELECT
    page_url,
    element_type,
    element_text,
    element_id,
    element_class,
    COUNT(*) AS click_count,
    COUNT(DISTINCT user_id) AS unique_users,
    COUNT(DISTINCT session_id) AS unique_sessions,
    AVG(click_x) AS avg_click_x,
    AVG(click_y) AS avg_click_y,
    toStartOfMinute(timestamp) AS time_bucket,
    toDate(timestamp) AS date,
    toHour(timestamp) AS hour,
    toMinute(timestamp) AS minute
FROM {table}
WHERE """ + WINDOW_PREDICATE + """
GROUP BY page_url, element_type, element_text, element_id, element_class,
         time_bucket, date, hour, minute
ORDER BY time_bucket ASC, page_url, element_type, element_text, element_id,
         element_class
"""

SESSIONS_QUERY = """
SELECT
    user_id,
    session_id,
    start_time,
    end_time,
    duration,
    page_count,
    initial_referrer,
    initial_user_agent,
    ip_address,
    toStartOfHour(start_time) AS hour_bucket,
    toDate(start_time) AS date,
    toHour(start_time) AS hour,
    toMinute(start_time) AS minute,
    multiIf(
        duration < 60, '0-1min',
        duration < 300, '1-5min',
        duration < 900, '5-15min',
        duration < 1800, '15-30min',
        '30min+'
    ) AS session_duration_category
FROM {table}
WHERE """ + WINDOW_PREDICATE + """
ORDER BY start_time ASC, session_id
"""

# Milestone counters are conditional counts inside the same grouped query.
SCROLL_DEPTH_QUERY = """
SELECT
    page_url,
    COUNT(*) AS total_scrolls,
    COUNT(DISTINCT user_id) AS unique_users,
    COUNT(DISTINCT session_id) AS unique_sessions,
    AVG(max_scroll_depth) AS avg_max_scroll_depth,
    AVG(time_to_max_scroll) AS avg_time_to_max_scroll,
    AVG(page_height) AS avg_page_height,
    AVG(viewport_height) AS avg_viewport_height,
    countIf(max_scroll_depth >= 25) AS reached_25_percent,
    countIf(max_scroll_depth >= 50) AS reached_50_percent,
    countIf(max_scroll_depth >= 75) AS reached_75_percent,
    countIf(max_scroll_depth >= 100) AS reached_100_percent,
    scroll_milestones,
    toStartOfMinute(timestamp) AS time_bucket,
    toDate(timestamp) AS date,
    toHour(timestamp) AS hour,
    toMinute(timestamp) AS minute
FROM {table}
WHERE """ + WINDOW_PREDICATE + """
GROUP BY page_url, scroll_milestones, time_bucket, date, hour, minute
ORDER BY time_bucket ASC, page_url, scroll_milestones
"""

AGGREGATE_QUERIES = {
    "page_views": PAGE_VIEWS_QUERY,
    "click_events": CLICK_EVENTS_QUERY,
    "sessions": SESSIONS_QUERY,
    "scroll_depth": SCROLL_DEPTH_QUERY,
}


def render(template: str, table: str) -> str:
    """Insert a (trusted, catalogue-defined) table name into a query template."""
    return template.format(table=table)
