from .passwords import Hasher, BcryptHasher
from .tokens import TokenError, create_access_token, decode_access_token
from .gate import Principal, get_current_principal, get_optional_principal, require_roles

__all__ = [
    "Hasher",
    "BcryptHasher",
    "TokenError",
    "create_access_token",
    "decode_access_token",
    "Principal",
    "get_current_principal",
    "get_optional_principal",
    "require_roles",
]
