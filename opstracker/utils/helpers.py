from typing import Dict, Any, Optional
import json
from datetime import datetime, timezone

def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored"""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize an incoming timestamp to naive UTC"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)

def format_error(message: str, code: str, status_code: int) -> Dict[str, Any]:
    """Format standard API error body"""
    return {
        "error": message,
        "code": code,
        "status_code": status_code,
    }

def sanitize_json(data: Any) -> str:
    """Safely convert data to JSON string"""
    try:
        return json.dumps(data, default=str, ensure_ascii=False, sort_keys=True)
    except Exception:
        return str(data)
