"""
Shared module for cross-cutting code used by the salon API.

STRUCTURE:
- shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging, audit helpers
  - constants.py: Roles, statuses, limits

- shared.infrastructure: Database and request plumbing
  - db.py: SQLAlchemy sessions, atomic() units of work
  - correlation.py: Request correlation IDs

- shared.utils: Utilities
  - exceptions.py: Typed application errors with auto-logging
  - schemas.py: Pydantic input/output schemas

IMPORT EXAMPLES:
    from shared.infrastructure.db import get_db, atomic
    from shared.config.settings import settings
    from shared.config.constants import Roles, OrderStatus
    from shared.utils.exceptions import NotFoundError, ValidationError
"""
