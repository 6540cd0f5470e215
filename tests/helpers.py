"""Helpers shared by the test suite."""

import pytest


def importorskip(modname, minversion=None):
    """Import *modname* or skip the calling test module."""
    return pytest.importorskip(modname, minversion=minversion)
