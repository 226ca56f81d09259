"""Domain constants shared by deterministic logic."""

ADDRESS_NA = "Address N/A"

DEFAULT_ADULTS = 1
DEFAULT_CHILDREN = 0

# Fallback itinerary content when a destination could not be generated.
DEGRADED_DAY_TITLE = "Free day in {city}"
DEGRADED_ACTIVITY = "Explore {city} at your own pace"

CONVERSATION_SCHEMA_VERSION = 1
DRAFT_SCHEMA_VERSION = 1
