"""
Canonical configuration for session date windows and report expressions.
Centralizing these values keeps the fetcher and the dashboard in agreement
about what "monthly" and "organic" mean.
"""

# Trailing window vs. the window right before it
MONTHLY_WINDOW_DAYS = 30
PREVIOUS_WINDOW_END_DAYS = 30
PREVIOUS_WINDOW_START_DAYS = 60

# Reporting API expressions
SESSIONS_METRIC = "ga:sessions"
ORGANIC_FILTER = "ga:medium==organic"

# Service account scopes
ANALYTICS_SCOPES = [
    "https://www.googleapis.com/auth/analytics",
    "https://www.googleapis.com/auth/analytics.edit",
]

# Literal site name that selects the global sums on /stats
ALL_SITES_TOKEN = "All"
