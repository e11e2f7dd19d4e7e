from dataclasses import dataclass

from intake.config.settings import Settings


@dataclass(frozen=True)
class AvatarFile:
    """An avatar read from the request, before upload."""
    content: bytes
    filename: str
    content_type: str


def validate_avatar(avatar: AvatarFile, settings: Settings) -> list[dict]:
    """
    Return validation problems for an avatar (empty list when it is acceptable).
    Each problem is `{"field": "avatar", "message": ...}`.
    """
    problems = []
    if avatar.content_type not in settings.ALLOWED_AVATAR_TYPES:
        allowed = ", ".join(settings.ALLOWED_AVATAR_TYPES)
        problems.append({"field": "avatar", "message": f"Unsupported image type '{avatar.content_type}'. Allowed: {allowed}"})
    if not avatar.content:
        problems.append({"field": "avatar", "message": "Avatar file is empty"})
    elif len(avatar.content) > settings.MAX_AVATAR_BYTES:
        problems.append({"field": "avatar", "message": f"Avatar exceeds {settings.MAX_AVATAR_BYTES} bytes"})
    return problems
