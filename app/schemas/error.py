"""
Pydantic schema for error responses.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Any, Dict, Optional


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""
    status: int
    code: str
    message: str
    path: str
    timestamp: datetime
    field_errors: Optional[Dict[str, str]] = None
    details: Optional[Dict[str, Any]] = None
