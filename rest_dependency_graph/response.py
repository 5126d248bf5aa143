from dataclasses import dataclass
from typing import Any

@dataclass
class HttpResponse:
    """Status code plus the parsed JSON body (None when the body is not JSON)"""
    status: int
    data: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
