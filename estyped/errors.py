"""
Errors raised by estyped

All failures surface as a subclass of EstypedError. Nothing is retried here,
retry policies belong to the transport.
"""


class EstypedError(Exception):
    pass


class ConnectionFailed(EstypedError):
    """The transport could not reach the server"""


class EmptyResponse(EstypedError):
    """The server answered without a body"""

    def __init__(self, method: str, path: str, status: int | None = None):
        self.method = method
        self.path = path
        self.status = status
        super().__init__(f"Missing response body for {method} {path} (status {status})")


class InvalidResponse(EstypedError):
    """The response body could not be parsed as json"""

    def __init__(self, reason: str, status: int | None = None):
        self.reason = reason
        self.status = status
        super().__init__(f"Cannot parse response body: {reason}")


class RemoteError(EstypedError):
    """
    The server answered with status >= 400. The description is taken from the 'error' element
    of the response body, so it tells what the server objected to.
    """

    def __init__(self, status: int, description: str, error_type: str | None = None):
        self.status = status
        self.description = description
        self.error_type = error_type
        super().__init__(f"[{status}] {error_type or 'error'}: {description}")


class NotFound(RemoteError):
    """A 404 for an operation where a missing object is an error (e.g. deleting a document)"""


class UrlConstructionError(EstypedError, ValueError):
    pass


class UnknownVariantKind(EstypedError, ValueError):
    def __init__(self, family: str, kind: object):
        self.family = family
        self.kind = kind
        super().__init__(f"Unknown {family} kind: {kind!r}")


class MalformedVariant(EstypedError, ValueError):
    def __init__(self, kind: str, path: str, reason: str):
        self.kind = kind
        self.path = path
        self.reason = reason
        super().__init__(f"Malformed {kind} at '{path}': {reason}")


class DanglingReference(EstypedError, LookupError):
    def __init__(self, family: str, name: str):
        self.family = family
        self.name = name
        super().__init__(f"Reference to undefined {family} '{name}'")


class ConflictingDefinition(EstypedError, ValueError):
    def __init__(self, family: str, name: str):
        self.family = family
        self.name = name
        super().__init__(f"{family} '{name}' is already defined with a different definition")


class UnresolvedAggregationKind(EstypedError, LookupError):
    def __init__(self, name: str, kind: str | None = None):
        self.name = name
        self.kind = kind
        if kind is None:
            msg = f"Aggregation '{name}' in the response was not part of the request"
        else:
            msg = f"Cannot decode response of aggregation '{name}' of kind '{kind}'"
        super().__init__(msg)
