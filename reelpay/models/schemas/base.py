"""
Base schemas and shared validators used across the application.
"""
from datetime import datetime, timezone
from typing import Optional, Any, Dict, List
from urllib.parse import urlparse
from pydantic import BaseModel, Field, ConfigDict
from ..db.enums import Platform

class ResponseBase(BaseModel):
    """Base response format for API endpoints with an optional arbitrary data payload."""
    success: bool = True
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

def normalize_platform(value: Any) -> Platform:
    """yt/ig/fb aliases and any casing; anything else fails validation."""
    try:
        return Platform.normalize(value)
    except ValueError:
        allowed = ", ".join(p.value for p in Platform)
        raise ValueError(f"Unsupported platform '{value}'. Allowed: {allowed}")

def normalize_platform_list(values: Any) -> List[Platform]:
    if not isinstance(values, (list, tuple, set)):
        raise ValueError("platforms must be a list")
    return list(dict.fromkeys(normalize_platform(v) for v in values))

def validate_http_url(value: str) -> str:
    value = value.strip()
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Must be an absolute http(s) URL")
    return value
