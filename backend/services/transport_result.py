from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class TransportResult:
    success: bool
    status: str  # sent | logged | failed
    message_id: Optional[str] = None
    provider_message_id: Optional[str] = None
    error: Optional[str] = None
    code: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
