import json
import requests
from typing import Dict, Any, Optional
from .naming import json_default
from .response import HttpResponse

class HTTPTransport:
    """Perform one request and parse JSON when the response says it is JSON"""

    def __init__(self, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def request(self, method: str, url: str,
                headers: Optional[Dict[str, str]] = None,
                body: Optional[Any] = None,
                params: Optional[Dict[str, str]] = None,
                cookies: Optional[Dict[str, str]] = None) -> HttpResponse:
        """
        Raises requests.RequestException on network failure and ValueError when a
        JSON content type carries an unparseable body.
        """
        response = self.session.request(
            method,
            url,
            headers=headers or {},
            params=params or None,
            cookies=cookies or None,
            data=json.dumps(body, default=json_default) if body is not None else None,
            timeout=self.timeout
        )

        content_type = response.headers.get('content-type', '')
        data = response.json() if 'application/json' in content_type.lower() else None
        return HttpResponse(status=response.status_code, data=data)

    def close(self):
        self.session.close()
