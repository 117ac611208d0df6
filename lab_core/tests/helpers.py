# lab_core/tests/helpers.py

def scoped(scope, **fields):
    """Payload/query dict carrying the client's scope keys."""
    return {**fields, **scope.as_payload()}


def error_of(response):
    body = response.json()
    assert body["success"] is False
    return body["error"]
