"""Smoke tests for package import and basic metadata."""

from __future__ import annotations

import Wasit
import Wasit.__main__
import Wasit.capabilities
import Wasit.dispatch
import Wasit.transport


def test_package_imports() -> None:
    """Package import should work in CI."""
    assert Wasit.capabilities.CapabilityCache is not None
    assert Wasit.dispatch.RequestRouter is not None
    assert Wasit.transport.GatewayTransport is not None


def test_package_version_present() -> None:
    """Package should expose a non-empty version string."""
    assert isinstance(Wasit.__version__, str)
    assert Wasit.__version__.strip() != ""
