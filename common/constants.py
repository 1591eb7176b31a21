"""Project-wide constants shared by the server and the CLI."""

MAIN_CATEGORY = "Main"
PUBLIC_CATEGORY = "Public"

# Categories a caller is subscribed to when picking a subject. The Public
# channel is shared by everybody and never joined per caller.
SUBSCRIPTION_CATEGORIES = ("Main", "Theory", "Practical")

DEFAULT_SERVER_PORT = 8000

API_KEY_PREFIX = "notes_"

DIRECTORY_STORAGE_KEY = "noteshare-channels"
