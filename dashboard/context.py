from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional


@dataclass
class DashboardContext:
    user_id: str
    user_name: str
    today: date
    timezone: str = "UTC"
    quick_indicators: Dict[str, int] = field(default_factory=dict)
    carry_over_status: Optional[str] = None
    backend_ok: bool = True
    extras: Dict[str, Any] = field(default_factory=dict)

    def get(self, key, default=None):
        if hasattr(self, key):
            return getattr(self, key)
        return self.extras.get(key, default)

    @property
    def today_iso(self):
        return self.today.isoformat()
