"""Pytest configuration and fixtures."""

# 3rd party
import pytest


@pytest.fixture(scope="module", params=['127.0.0.1'])
def bind_host(request):
    """ Localhost bind address. """
    return request.param
