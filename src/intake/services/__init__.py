from .pagination import Pagination
from .write_workflow import ConflictCheckedWriteWorkflow, ResourceSpec
from .application_service import ApplicationService, APPLICATION_RESOURCE
from .user_service import UserService, USER_RESOURCE

__all__ = [
    "Pagination",
    "ConflictCheckedWriteWorkflow",
    "ResourceSpec",
    "ApplicationService",
    "APPLICATION_RESOURCE",
    "UserService",
    "USER_RESOURCE",
]
