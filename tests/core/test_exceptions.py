"""Tests for parley.core.exceptions."""

from parley.core.exceptions import (
    ConfigurationError,
    MiddlewareError,
    ParleyError,
    TransportError,
    ValidationError,
)


def test_hierarchy():
    """All exceptions should inherit from ParleyError."""
    for exc_cls in [ValidationError, ConfigurationError, TransportError, MiddlewareError]:
        assert issubclass(exc_cls, ParleyError)


def test_middleware_error_carries_origin():
    err = MiddlewareError("boom", phase="incoming", middleware_name="spam-filter")
    assert str(err) == "boom"
    assert err.phase == "incoming"
    assert err.middleware_name == "spam-filter"


def test_catch_base():
    try:
        raise ValidationError("button_titles must be of length 10 or less")
    except ParleyError as e:
        assert "10 or less" in str(e)
