"""Tests for application error types."""

from simulcast.utils.app_errors import (
    AppError,
    AppErrorCode,
    ConfigurationError,
    HttpStatusCode,
    MissingTokenError,
    NotConnectedError,
)


def _raise_not_connected():
    raise NotConnectedError("youtube")


class TestAppError:
    def test_defaults(self):
        err = AppError()
        assert err.errcode == "E_INTERNAL_ERROR"
        assert err.status_code == 400
        assert len(err.erresid) == 10
        assert err.details is None

    def test_enum_code_is_stored_as_value(self):
        err = AppError(errcode=AppErrorCode.E_BAD_TOKEN, status_code=HttpStatusCode.UNAUTHORIZED)
        assert err.errcode == "E_BAD_TOKEN"
        assert err.status_code == 401

    def test_caller_info_points_at_raise_site(self):
        try:
            _raise_not_connected()
        except NotConnectedError as e:
            assert "_raise_not_connected" in e.caller_info
            assert "test_app_errors" in e.caller_info


class TestConnectionErrors:
    def test_not_connected_is_404(self):
        err = NotConnectedError("twitch")
        assert err.status_code == 404
        assert err.errcode == "E_NOT_CONNECTED"
        assert "twitch" in err.errmesg

    def test_missing_token_is_400(self):
        err = MissingTokenError("youtube")
        assert err.status_code == 400
        assert err.errcode == "E_MISSING_REFRESH_TOKEN"
        assert "reconnect" in err.errmesg

    def test_configuration_error_is_500(self):
        err = ConfigurationError("missing env")
        assert err.status_code == 500
        assert err.errcode == "E_CONFIGURATION"
