"""Tests for the sidecar exception hierarchy."""

import pytest

from agentsmithy_sidecar import exceptions
from agentsmithy_sidecar.config import ConfigurationError


def test_default_message_used_without_argument():
    assert str(exceptions.DownloadCancelledError()) == "Server download cancelled by user"
    assert str(exceptions.NotStartingOrRunningError()) == "Server is not starting or running"


def test_keyword_context_becomes_attributes():
    err = exceptions.AssetNotFoundError("missing", asset_name="agentsmithy-linux-amd64-1.0.0", tag="v1.0.0")

    assert str(err) == "missing"
    assert err.asset_name == "agentsmithy-linux-amd64-1.0.0"
    assert err.tag == "v1.0.0"


@pytest.mark.parametrize("name", exceptions.__all__)
def test_every_error_derives_from_sidecar_error(name):
    assert issubclass(getattr(exceptions, name), exceptions.SidecarError)


def test_download_error_family():
    assert issubclass(exceptions.TooManyRedirectsError, exceptions.DownloadFailedError)
    assert issubclass(exceptions.IntegrityError, exceptions.DownloadFailedError)
    assert not issubclass(exceptions.FinalizeFailedError, exceptions.DownloadFailedError)


def test_configuration_error_helpers():
    invalid = ConfigurationError.invalid_value("lock_max_attempts", -1, "Must be positive")
    missing = ConfigurationError.missing_value("ide_name", "set AGENTSMITHY_IDE")

    assert str(invalid) == "Invalid value for lock_max_attempts: -1. Must be positive"
    assert invalid.param_name == "lock_max_attempts"
    assert str(missing) == "ide_name is missing or empty: set AGENTSMITHY_IDE"
    assert isinstance(missing, exceptions.SidecarError)
