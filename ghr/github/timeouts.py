from __future__ import annotations

# API requests (get, list, create, update)
HTTP_TIMEOUT_SECONDS = 60.0

# Asset uploads can be large
UPLOAD_TIMEOUT_SECONDS = 15 * 60.0

# Rate-limited requests are retried once after the advised delay
RATE_LIMIT_RETRIES = 1
RATE_LIMIT_DEFAULT_DELAY_SECONDS = 60.0
RATE_LIMIT_MAX_DELAY_SECONDS = 15 * 60.0

# Releases are listed in pages of this size
RELEASES_PER_PAGE = 100

# Create-conflict retry policy
CREATE_RETRY_ATTEMPTS = 10
CREATE_RETRY_DELAY_SECONDS = 1.0
