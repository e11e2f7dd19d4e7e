# intake/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py                    # repository-level errors (RepositoryError, DuplicateError, ...)
# │   ├── integrity_classifier.py    # classify raw DB IntegrityErrors
# │   └── mapper.py                  # map classified DB errors to repository-level errors

from .base import RepositoryError, NotFoundError, DuplicateError, InvalidFieldError

__all__ = ["RepositoryError", "NotFoundError", "DuplicateError", "InvalidFieldError"]
