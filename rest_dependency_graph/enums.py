from enum import Enum

class HTTPMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"

    @property
    def allows_body(self) -> bool:
        return self not in (HTTPMethod.GET, HTTPMethod.HEAD)

class ParameterLocation(Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"

class DependencyKind(Enum):
    """Where the consumer receives the value"""
    BODY = "body"
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"
    AUTH = "auth"

class DependencyReason(Enum):
    """Which heuristic proposed the dependency"""
    EXACT_NAME = "exact-name"      # 0.9 / 0.95 with formats
    TOKEN_MATCH = "token-match"    # 0.7
    ENTITY_ID = "entity-id"        # 0.8
    AUTH = "auth"                  # 0.85

class VerificationStatus(Enum):
    VERIFIED = "verified"
    UNVERIFIED = "unverified"

class Phase(Enum):
    EXAMPLE = "example"
    FILLED = "filled"
