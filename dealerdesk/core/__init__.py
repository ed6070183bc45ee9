"""DealerDesk Core Platform Module.

Shared infrastructure used across all DealerDesk sections:
- Base repository over the PostgreSQL connection pool
- Authentication (accounts, profiles, admin rules)
- Error taxonomy and API helpers
- Logging configuration
"""
