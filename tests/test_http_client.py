"""
Unit tests for HTTPTransport using a stub requests session
"""

import datetime
import json
import pytest

from rest_dependency_graph import HTTPTransport


class StubResponse:
    def __init__(self, status_code=200, payload=None, content_type='application/json', text=None):
        self.status_code = status_code
        self.headers = {'content-type': content_type} if content_type else {}
        self._payload = payload
        self._text = text

    def json(self):
        if self._text is not None:
            return json.loads(self._text)
        return self._payload


class StubSession:
    def __init__(self, response):
        self.response = response
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        return self.response

    def close(self):
        self.closed = True


class TestHTTPTransport:
    """Tests for HTTPTransport"""

    def test_json_response_parsed(self):
        session = StubSession(StubResponse(201, {'id': 'cart-1'}, 'application/json; charset=utf-8'))
        response = HTTPTransport(session=session).request('POST', 'http://shop.test/carts')
        assert response.status == 201
        assert response.ok
        assert response.data == {'id': 'cart-1'}

    def test_non_json_response_has_no_data(self):
        session = StubSession(StubResponse(200, None, 'text/plain'))
        response = HTTPTransport(session=session).request('GET', 'http://shop.test/health')
        assert response.data is None
        assert response.ok

    def test_request_arguments(self):
        """Body is sent as JSON text, params and cookies are passed through"""
        session = StubSession(StubResponse(200, {}))
        HTTPTransport(timeout=2.5, session=session).request(
            'POST', 'http://shop.test/orders',
            headers={'Content-Type': 'application/json'},
            body={'cartId': 'cart-1'},
            params={'expand': 'items'},
            cookies={'session': 'abc'}
        )
        method, url, kwargs = session.calls[0]
        assert (method, url) == ('POST', 'http://shop.test/orders')
        assert json.loads(kwargs['data']) == {'cartId': 'cart-1'}
        assert kwargs['params'] == {'expand': 'items'}
        assert kwargs['cookies'] == {'session': 'abc'}
        assert kwargs['timeout'] == 2.5

    def test_date_body_sent_as_iso_text(self):
        session = StubSession(StubResponse(201, {}))
        HTTPTransport(session=session).request(
            'POST', 'http://shop.test/events', body={'day': datetime.date(2024, 1, 15)}
        )
        _, _, kwargs = session.calls[0]
        assert json.loads(kwargs['data']) == {'day': '2024-01-15'}

    def test_no_body_no_data(self):
        session = StubSession(StubResponse(200, {}))
        HTTPTransport(session=session).request('GET', 'http://shop.test/products')
        _, _, kwargs = session.calls[0]
        assert kwargs['data'] is None
        assert kwargs['timeout'] is None

    def test_invalid_json_raises(self):
        """A JSON content type with an unparseable body is an error"""
        session = StubSession(StubResponse(200, content_type='application/json', text='{not json'))
        with pytest.raises(ValueError):
            HTTPTransport(session=session).request('GET', 'http://shop.test/products')

    def test_error_status_is_not_ok(self):
        session = StubSession(StubResponse(401, {'message': 'unauthorized'}))
        response = HTTPTransport(session=session).request('GET', 'http://shop.test/orders/1')
        assert not response.ok
        assert response.data == {'message': 'unauthorized'}

    def test_close(self):
        session = StubSession(StubResponse())
        HTTPTransport(session=session).close()
        assert session.closed
