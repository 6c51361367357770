"""Default values shared across collab-utils."""

# Reported in bookmark etags so clients drop caches across releases.
CURRENT_VERSION = "0.1.0"

DEFAULT_SMTP_SERVER = "localhost"
DEFAULT_SMTP_PORT = 10025
DEFAULT_SMTP_TIMEOUT = 10  # seconds
