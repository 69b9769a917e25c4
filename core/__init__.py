# Core package - foundational components
#
# Modules:
# - config: Application settings
# - logging: Structured logging
# - validation: Environment variable checks and summary
# - signing: HMAC signatures and the auth cookie
# - errors: Registration failures and error classification
# - admin_config: Admin configuration document
# - storage: Pluggable storage backends (Redis, Upstash, D1)
