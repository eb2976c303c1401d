"""
Shared fixtures for command module tests.
"""

import argparse

import pytest


@pytest.fixture
def make_args(allow_list_path):
    """
    Factory fixture for parsed command arguments.

    Every namespace points at the per-test allow-list file.

    Usage:
        def test_something(make_args):
            args = make_args(name="老婆", from_title=False)
    """

    def _make(**kwargs) -> argparse.Namespace:
        kwargs.setdefault("file", str(allow_list_path))
        return argparse.Namespace(**kwargs)

    return _make
