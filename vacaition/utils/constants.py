"""
Shared constants for the recommendation pipeline.

Limits on form input mirror the validation performed by the web form so that
API callers get the same answers as browser users.
"""

# Form input limits
MIN_LOCATION_LENGTH = 2
MIN_ACTIVITIES_LENGTH = 3
MAX_TRAVEL_AMOUNT = 10000

# Upper bound on placeholder entries synthesized from an unparseable reply
MAX_FALLBACK_ENTRIES = 5

# Upper bound on destinations requested in one batch
MAX_BATCH_SIZE = 10

# Labels for synthetic entries shown to the user
ERROR_ENTRY_NAME = 'Error'
UPSTREAM_ERROR_MESSAGE = (
    "Sorry, we couldn't fetch recommendations at this time. Please try again."
)
NO_RECOMMENDATIONS_MESSAGE = 'No recommendations found'

# Headers for streamed text/plain responses
STREAMING_HEADERS = {
    'Cache-Control': 'no-cache',
    'X-Content-Type-Options': 'nosniff',
}

# Body appended to a stream when the upstream call fails mid-flight
STREAM_ERROR_BODY = '{"error": "Internal Server Error"}'
