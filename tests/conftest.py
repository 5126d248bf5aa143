"""
Shared fixtures: a small shop API description and an in-process fake of the
service it describes (register, login, products, carts, cart items, orders).
"""

import pytest
import requests
from typing import Dict, Any, List, Optional
from urllib.parse import urlparse

from rest_dependency_graph import HttpResponse, OpenAPIParser


def _json_body(schema: Dict[str, Any]) -> Dict[str, Any]:
    return {'content': {'application/json': {'schema': schema}}}


@pytest.fixture
def shop_spec() -> Dict[str, Any]:
    """OpenAPI document for the sample shop service"""
    bearer = [{'bearerAuth': []}]
    return {
        'openapi': '3.0.3',
        'info': {'title': 'Shop', 'version': '1.0.0'},
        'paths': {
            '/auth/register': {
                'post': {
                    'operationId': 'register',
                    'requestBody': {
                        'content': {'application/json': {
                            'schema': {'$ref': '#/components/schemas/Credentials'},
                            'example': {'email': 'ada@example.com', 'password': 'secret'}
                        }}
                    },
                    'responses': {'201': _json_body({'$ref': '#/components/schemas/User'})}
                }
            },
            '/auth/login': {
                'post': {
                    'operationId': 'login',
                    'requestBody': {
                        'content': {'application/json': {
                            'schema': {'$ref': '#/components/schemas/Credentials'},
                            'example': {'email': 'ada@example.com', 'password': 'secret'}
                        }}
                    },
                    'responses': {
                        '200': _json_body({'type': 'object', 'properties': {'token': {'type': 'string'}}}),
                        '401': {'description': 'Bad credentials'}
                    }
                }
            },
            '/products': {
                'get': {
                    'operationId': 'listProducts',
                    'responses': {'200': _json_body({
                        'type': 'array', 'items': {'$ref': '#/components/schemas/Product'}
                    })}
                }
            },
            '/carts': {
                'post': {
                    'operationId': 'createCart',
                    'security': bearer,
                    'responses': {'201': _json_body({'$ref': '#/components/schemas/Cart'})}
                }
            },
            '/carts/{cartId}/items': {
                'post': {
                    'operationId': 'addCartItem',
                    'security': bearer,
                    'parameters': [
                        {'name': 'cartId', 'in': 'path', 'required': True,
                         'schema': {'type': 'string'}, 'example': 'cart-0'}
                    ],
                    'requestBody': {
                        'content': {'application/json': {
                            'schema': {'$ref': '#/components/schemas/CartItem'},
                            'example': {'productId': 'prod-1', 'quantity': 1}
                        }}
                    },
                    'responses': {'200': _json_body({'$ref': '#/components/schemas/Cart'})}
                }
            },
            '/orders': {
                'post': {
                    'operationId': 'createOrder',
                    'security': bearer,
                    'requestBody': {
                        'content': {'application/json': {
                            'schema': {'type': 'object', 'properties': {'cartId': {'type': 'string'}}},
                            'example': {'cartId': 'cart-0'}
                        }}
                    },
                    'responses': {'201': _json_body({'$ref': '#/components/schemas/Order'})}
                }
            },
            '/orders/{orderId}': {
                'get': {
                    'operationId': 'getOrder',
                    'security': bearer,
                    'parameters': [
                        {'name': 'orderId', 'in': 'path', 'required': True,
                         'schema': {'type': 'string'}, 'example': 'order-0'}
                    ],
                    'responses': {'200': _json_body({'$ref': '#/components/schemas/Order'})}
                }
            },
            '/health': {
                'get': {
                    'responses': {'200': _json_body({'type': 'object', 'properties': {'status': {'type': 'string'}}})}
                }
            }
        },
        'components': {
            'securitySchemes': {'bearerAuth': {'type': 'http', 'scheme': 'bearer'}},
            'schemas': {
                'Credentials': {
                    'type': 'object',
                    'required': ['email', 'password'],
                    'properties': {'email': {'type': 'string'}, 'password': {'type': 'string'}}
                },
                'User': {
                    'type': 'object',
                    'properties': {'id': {'type': 'string'}, 'email': {'type': 'string'}}
                },
                'Product': {
                    'type': 'object',
                    'properties': {'id': {'type': 'string'}, 'name': {'type': 'string'},
                                   'price': {'type': 'number'}}
                },
                'CartItem': {
                    'type': 'object',
                    'properties': {'productId': {'type': 'string'}, 'quantity': {'type': 'integer'}}
                },
                'Cart': {
                    'type': 'object',
                    'properties': {
                        'id': {'type': 'string'},
                        'items': {'type': 'array', 'items': {'$ref': '#/components/schemas/CartItem'}}
                    }
                },
                'Order': {
                    'type': 'object',
                    'properties': {'id': {'type': 'string'}, 'cartId': {'type': 'string'},
                                   'status': {'type': 'string'}}
                }
            }
        }
    }


@pytest.fixture
def shop_operations(shop_spec):
    """Operation shapes extracted from the shop description"""
    return OpenAPIParser(spec=shop_spec).parse()


class FakeShopService:
    """
    Stateful stand-in for the shop service. Implements the same request()
    signature as HTTPTransport and records every call it receives.
    """

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.users: Dict[str, Dict[str, Any]] = {}
        self.tokens: List[str] = []
        self.carts: Dict[str, Dict[str, Any]] = {}
        self.orders: Dict[str, Dict[str, Any]] = {}
        self._counter = 0

    def _next(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def request(self, method: str, url: str,
                headers: Optional[Dict[str, str]] = None,
                body: Optional[Any] = None,
                params: Optional[Dict[str, str]] = None,
                cookies: Optional[Dict[str, str]] = None) -> HttpResponse:
        headers = headers or {}
        path = urlparse(url).path
        self.calls.append({'method': method, 'path': path, 'headers': dict(headers), 'body': body})
        segments = [s for s in path.split('/') if s]

        if method == 'GET' and path == '/health':
            return HttpResponse(200, {'status': 'ok'})
        if method == 'POST' and path == '/auth/register':
            user = {'id': self._next('user'), 'email': (body or {}).get('email')}
            self.users[user['email']] = user
            return HttpResponse(201, user)
        if method == 'POST' and path == '/auth/login':
            if (body or {}).get('email') not in self.users:
                return HttpResponse(401, {'message': 'unknown user'})
            token = self._next('token')
            self.tokens.append(token)
            return HttpResponse(200, {'token': token})
        if method == 'GET' and path == '/products':
            return HttpResponse(200, [{'id': 'prod-1', 'name': 'Widget', 'price': 9.5}])

        if headers.get('Authorization', '').replace('Bearer ', '', 1) not in self.tokens:
            return HttpResponse(401, {'message': 'unauthorized'})

        if method == 'POST' and path == '/carts':
            cart = {'id': self._next('cart'), 'items': []}
            self.carts[cart['id']] = cart
            return HttpResponse(201, cart)
        if method == 'POST' and len(segments) == 3 and segments[0] == 'carts' and segments[2] == 'items':
            cart = self.carts.get(segments[1])
            if cart is None:
                return HttpResponse(404, {'message': 'no such cart'})
            cart['items'].append(dict(body or {}))
            return HttpResponse(200, cart)
        if method == 'POST' and path == '/orders':
            cart_id = (body or {}).get('cartId')
            if cart_id not in self.carts:
                return HttpResponse(400, {'message': 'no such cart'})
            order = {'id': self._next('order'), 'cartId': cart_id, 'status': 'created'}
            self.orders[order['id']] = order
            return HttpResponse(201, order)
        if method == 'GET' and len(segments) == 2 and segments[0] == 'orders':
            order = self.orders.get(segments[1])
            if order is None:
                return HttpResponse(404, {'message': 'no such order'})
            return HttpResponse(200, order)

        return HttpResponse(404, {'message': 'not found'})


class UnreachableService:
    """Transport whose every call fails at the network level"""

    def __init__(self):
        self.calls = 0

    def request(self, method, url, headers=None, body=None, params=None, cookies=None):
        self.calls += 1
        raise requests.ConnectionError(f"connection refused: {url}")


@pytest.fixture
def fake_service():
    return FakeShopService()


@pytest.fixture
def unreachable_service():
    return UnreachableService()
