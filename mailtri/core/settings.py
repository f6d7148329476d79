"""
Mail intake configuration.

All settings are read from environment variables once, at import time.
Components take their defaults from here but accept explicit overrides,
so tests never need to touch the environment.
"""

import os

# ============================
# MIME Decomposition
# ============================

# MIME_PARSER: Backend used to split raw bytes into headers and parts
# - Values: 'flanker' (enhanced) or 'legacy' (Python standard library)
# - Default: 'flanker'
# - Note: Both backends produce the same decomposition structure
MIME_PARSER = os.getenv('MAILTRI_MIME_PARSER', 'flanker')

# MAX_EMAIL_SIZE: Largest raw message accepted by the parser, in bytes
# - Use Case: Keep oversized payloads out of the MIME backend
# - Default: 25 MiB
# - Note: Oversized input fails parsing and is recovered by the fallback
MAX_EMAIL_SIZE = int(os.getenv('MAILTRI_MAX_EMAIL_SIZE', str(25 * 1024 * 1024)))

# ============================
# Logging
# ============================

# LOG_LEVEL: Level applied by the command line entry point
# - Default: 'INFO'
# - Examples: 'DEBUG', 'WARNING'
LOG_LEVEL = os.getenv('MAILTRI_LOG_LEVEL', 'INFO').upper()

# FALLBACK_HEADER_PREVIEW: Number of scanned headers logged on parse errors
# - Use Case: Enough context to identify the message without dumping it
# - Default: 10
FALLBACK_HEADER_PREVIEW = int(
    os.getenv('MAILTRI_FALLBACK_HEADER_PREVIEW', '10')
)
