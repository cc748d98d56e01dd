"""
Tests for the login handshake, logout and the scoped session guard.
"""

import time
import unittest
import urllib.parse
from unittest.mock import MagicMock, patch

import requests

from fritz_nas.auth.challenge import solve_challenge
from fritz_nas.auth.login import Session, authenticate, close, open_session
from fritz_nas.errors import (
    BlockTimeError,
    ContentTypeMismatchError,
    DeadlineExceededError,
    ErrorKind,
    InputValidationError,
    LogoutDeadlineError,
    LogoutError,
    RemoteError,
    SessionInvalidError,
    TransportError,
    UnsupportedChallengeError,
)
from fritz_nas.session import build_session
from slow_server import TrickleServer

ADDRESS = "http://fritz.box"
LOGIN_URL = "http://fritz.box/login_sid.lua?version=2"
CHALLENGE = "2$10000$5A1711$2000$5A1722"


def _session_xml(sid="0000000000000000", challenge=CHALLENGE, block_time=0) -> bytes:
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f"<SessionInfo><SID>{sid}</SID><Challenge>{challenge}</Challenge>"
        f"<BlockTime>{block_time}</BlockTime><Rights></Rights>"
        '<Users><User last="1">admin</User></Users></SessionInfo>'
    ).encode("utf-8")


def _make_response(body=b"", status_code=200, content_type="text/xml"):
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status_code
    resp.headers = {"Content-Type": content_type} if content_type else {}
    resp.iter_content.return_value = [body] if body else []
    return resp


def _make_http(*responses):
    http = MagicMock(spec=requests.Session)
    http.request.side_effect = list(responses)
    return http


class TestAuthenticate(unittest.TestCase):
    def test_successful_login(self):
        http = _make_http(
            _make_response(_session_xml()),
            _make_response(_session_xml(sid="e5363f0a80aacd5a")),
        )

        session = authenticate(ADDRESS, "admin", "1example!", http=http)

        self.assertEqual(session, Session("e5363f0a80aacd5a"))
        self.assertEqual(str(session), "e5363f0a80aacd5a")

        get_call, post_call = http.request.call_args_list
        self.assertEqual(get_call.args, ("GET", LOGIN_URL))
        self.assertEqual(post_call.args, ("POST", LOGIN_URL))
        form = dict(urllib.parse.parse_qsl(post_call.kwargs["data"]))
        self.assertEqual(form, {
            "username": "admin",
            "response": solve_challenge(CHALLENGE, "1example!"),
        })
        self.assertEqual(
            post_call.kwargs["headers"]["Content-Type"],
            "application/x-www-form-urlencoded",
        )

    def test_both_requests_share_one_deadline(self):
        http = _make_http(
            _make_response(_session_xml()),
            _make_response(_session_xml(sid="e5363f0a80aacd5a")),
        )
        authenticate(ADDRESS, "admin", "pw", http=http)
        for call in http.request.call_args_list:
            self.assertLessEqual(call.kwargs["timeout"], 30)
            self.assertTrue(call.kwargs["stream"])

    def test_bare_host_address(self):
        http = _make_http(
            _make_response(_session_xml(challenge="1234567z")),
            _make_response(_session_xml(sid="abc")),
        )
        authenticate("fritz.box", "admin", "äbc", http=http)
        self.assertEqual(http.request.call_args_list[0].args[1], LOGIN_URL)

    def test_v1_challenge(self):
        http = _make_http(
            _make_response(_session_xml(challenge="1234567z")),
            _make_response(_session_xml(sid="abc")),
        )
        authenticate(ADDRESS, "admin", "äbc", http=http)
        form = dict(urllib.parse.parse_qsl(http.request.call_args_list[1].kwargs["data"]))
        self.assertEqual(form["response"], "1234567z-9e224a41eeefa284df7bb0f26c2913e2")

    def test_block_time(self):
        http = _make_http(
            _make_response(_session_xml()),
            _make_response(_session_xml(sid="", block_time=30)),
        )
        with self.assertRaises(BlockTimeError) as ctx:
            authenticate(ADDRESS, "admin", "wrong", http=http)
        self.assertEqual(ctx.exception.duration, 30)
        self.assertEqual(ctx.exception.kind, ErrorKind.BLOCK_TIME)

    def test_invalid_credentials(self):
        http = _make_http(
            _make_response(_session_xml()),
            _make_response(_session_xml(sid="", block_time=0)),
        )
        with self.assertRaises(SessionInvalidError):
            authenticate(ADDRESS, "admin", "wrong", http=http)

    def test_zero_sid_is_invalid(self):
        http = _make_http(
            _make_response(_session_xml()),
            _make_response(_session_xml(sid="0000000000000000")),
        )
        with self.assertRaises(SessionInvalidError):
            authenticate(ADDRESS, "admin", "wrong", http=http)

    def test_missing_inputs(self):
        cases = [
            (ADDRESS, "", "pw", "username"),
            (ADDRESS, "admin", "", "password"),
            ("", "admin", "pw", "address"),
        ]
        for address, user, password, field in cases:
            with self.subTest(field=field):
                http = _make_http()
                with self.assertRaises(InputValidationError) as ctx:
                    authenticate(address, user, password, http=http)
                self.assertEqual(ctx.exception.field, field)
                http.request.assert_not_called()

    def test_challenge_content_type_mismatch(self):
        http = _make_http(_make_response(b"{}", content_type="application/json"))
        with self.assertRaises(ContentTypeMismatchError) as ctx:
            authenticate(ADDRESS, "admin", "pw", http=http)
        self.assertEqual(ctx.exception.expected, "text/xml")
        self.assertEqual(http.request.call_count, 1)

    def test_credential_reply_content_type_not_enforced(self):
        http = _make_http(
            _make_response(_session_xml()),
            _make_response(_session_xml(sid="abc"), content_type="text/html"),
        )
        session = authenticate(ADDRESS, "admin", "pw", http=http)
        self.assertEqual(session, Session("abc"))

    @patch("fritz_nas.auth.login.build_session")
    def test_owned_http_session_is_closed(self, mock_build):
        http = mock_build.return_value.__enter__.return_value
        http.request.side_effect = [
            _make_response(_session_xml()),
            _make_response(_session_xml(sid="abc")),
        ]
        self.assertEqual(authenticate(ADDRESS, "admin", "pw"), Session("abc"))
        mock_build.return_value.__exit__.assert_called_once()

    def test_challenge_non_200(self):
        http = _make_http(_make_response(b"<html/>", status_code=503))
        with self.assertRaises(RemoteError) as ctx:
            authenticate(ADDRESS, "admin", "pw", http=http)
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertEqual(http.request.call_count, 1)

    def test_transport_failure(self):
        http = MagicMock(spec=requests.Session)
        http.request.side_effect = requests.ConnectionError("connection refused")
        with self.assertRaises(TransportError) as ctx:
            authenticate(ADDRESS, "admin", "pw", http=http)
        self.assertIsInstance(ctx.exception.__cause__, requests.ConnectionError)
        self.assertEqual(http.request.call_count, 1)

    def test_request_timeout(self):
        http = MagicMock(spec=requests.Session)
        http.request.side_effect = requests.ReadTimeout("timed out")
        with self.assertRaises(DeadlineExceededError):
            authenticate(ADDRESS, "admin", "pw", http=http)

    def test_deadline_already_spent(self):
        http = _make_http()
        with self.assertRaises(DeadlineExceededError):
            authenticate(ADDRESS, "admin", "pw", http=http, deadline=0)
        http.request.assert_not_called()

    def test_unsupported_challenge_stops_before_submit(self):
        http = _make_http(_make_response(_session_xml(challenge="a$b$c")))
        with self.assertRaises(UnsupportedChallengeError):
            authenticate(ADDRESS, "admin", "pw", http=http)
        self.assertEqual(http.request.call_count, 1)


class TestClose(unittest.TestCase):
    def test_logout(self):
        http = _make_http(_make_response(_session_xml()))
        close(ADDRESS, Session("e5363f0a80aacd5a"), http=http)
        call = http.request.call_args
        self.assertEqual(call.args, ("POST", LOGIN_URL))
        self.assertEqual(call.kwargs["data"], "logout=e5363f0a80aacd5a")

    def test_logout_accepts_plain_sid(self):
        http = _make_http(_make_response(b"", content_type="text/html"))
        close(ADDRESS, "abc", http=http)
        self.assertEqual(http.request.call_args.kwargs["data"], "logout=abc")

    def test_logout_non_200(self):
        http = _make_http(_make_response(b"", status_code=500))
        with self.assertRaises(LogoutError) as ctx:
            close(ADDRESS, Session("abc"), http=http)
        self.assertEqual(ctx.exception.session, "abc")
        self.assertIn("abc", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, RemoteError)

    def test_logout_transport_failure(self):
        http = MagicMock(spec=requests.Session)
        http.request.side_effect = requests.ConnectionError("reset")
        with self.assertRaises(LogoutError) as ctx:
            close(ADDRESS, Session("abc"), http=http)
        self.assertIsInstance(ctx.exception.__cause__, TransportError)
        self.assertEqual(ctx.exception.kind, ErrorKind.LOGOUT)

    def test_logout_timeout_is_a_deadline_error(self):
        http = MagicMock(spec=requests.Session)
        http.request.side_effect = requests.ReadTimeout("timed out")
        with self.assertRaises(DeadlineExceededError) as ctx:
            close(ADDRESS, Session("abc"), http=http, deadline=5)
        err = ctx.exception
        self.assertIsInstance(err, LogoutError)
        self.assertEqual(err.kind, ErrorKind.DEADLINE_EXCEEDED)
        self.assertEqual(err.session, "abc")
        self.assertEqual(err.deadline, 5)
        self.assertIn("abc", str(err))

    def test_logout_against_slow_device_hits_deadline(self):
        with build_session() as http, TrickleServer(interval=0.1, content_type="text/xml") as server:
            http.trust_env = False
            started = time.monotonic()
            with self.assertRaises(LogoutDeadlineError) as ctx:
                close(server.url, "abc", http=http, deadline=1.0)
            elapsed = time.monotonic() - started
        self.assertLess(elapsed, 3.0)
        self.assertIsInstance(ctx.exception, DeadlineExceededError)
        self.assertEqual(ctx.exception.kind, ErrorKind.DEADLINE_EXCEEDED)

    @patch("fritz_nas.auth.login.build_session")
    def test_owned_http_session_is_closed(self, mock_build):
        http = mock_build.return_value.__enter__.return_value
        http.request.return_value = _make_response(b"")
        close(ADDRESS, "abc")
        self.assertEqual(http.request.call_args.kwargs["data"], "logout=abc")
        mock_build.return_value.__exit__.assert_called_once()


class TestOpenSession(unittest.TestCase):
    @patch("fritz_nas.auth.login.build_session")
    @patch("fritz_nas.auth.login.close")
    @patch("fritz_nas.auth.login.authenticate", return_value=Session("abc"))
    def test_owned_http_session_is_closed(self, mock_auth, mock_close, mock_build):
        http = mock_build.return_value.__enter__.return_value
        with self.assertRaises(KeyError):
            with open_session(ADDRESS, "admin", "pw"):
                raise KeyError("boom")
        mock_auth.assert_called_once_with(ADDRESS, "admin", "pw", http=http)
        mock_close.assert_called_once_with(ADDRESS, Session("abc"), http=http)
        mock_build.return_value.__exit__.assert_called_once()

    @patch("fritz_nas.auth.login.close", side_effect=LogoutDeadlineError("abc", 30))
    @patch("fritz_nas.auth.login.authenticate", return_value=Session("abc"))
    def test_logout_timeout_does_not_mask_block_error(self, mock_auth, mock_close):
        with self.assertRaises(KeyError):
            with open_session(ADDRESS, "admin", "pw", http=MagicMock()):
                raise KeyError("boom")

    @patch("fritz_nas.auth.login.close")
    @patch("fritz_nas.auth.login.authenticate", return_value=Session("abc"))
    def test_closes_after_block(self, mock_auth, mock_close):
        http = MagicMock(spec=requests.Session)
        with open_session(ADDRESS, "admin", "pw", http=http) as session:
            self.assertEqual(session, Session("abc"))
            mock_close.assert_not_called()
        mock_auth.assert_called_once_with(ADDRESS, "admin", "pw", http=http)
        mock_close.assert_called_once_with(ADDRESS, Session("abc"), http=http)

    @patch("fritz_nas.auth.login.close")
    @patch("fritz_nas.auth.login.authenticate", return_value=Session("abc"))
    def test_closes_when_block_raises(self, mock_auth, mock_close):
        with self.assertRaises(KeyError):
            with open_session(ADDRESS, "admin", "pw", http=MagicMock()):
                raise KeyError("boom")
        mock_close.assert_called_once()

    @patch("fritz_nas.auth.login.close", side_effect=LogoutError("abc", "HTTP 500"))
    @patch("fritz_nas.auth.login.authenticate", return_value=Session("abc"))
    def test_logout_failure_does_not_mask_block_error(self, mock_auth, mock_close):
        with self.assertRaises(KeyError):
            with open_session(ADDRESS, "admin", "pw", http=MagicMock()):
                raise KeyError("boom")

    @patch("fritz_nas.auth.login.close", side_effect=LogoutError("abc", "HTTP 500"))
    @patch("fritz_nas.auth.login.authenticate", return_value=Session("abc"))
    def test_logout_failure_after_clean_block(self, mock_auth, mock_close):
        with self.assertRaises(LogoutError):
            with open_session(ADDRESS, "admin", "pw", http=MagicMock()):
                pass

    @patch("fritz_nas.auth.login.close")
    @patch("fritz_nas.auth.login.authenticate", side_effect=BlockTimeError(10))
    def test_no_logout_when_login_fails(self, mock_auth, mock_close):
        with self.assertRaises(BlockTimeError):
            with open_session(ADDRESS, "admin", "pw", http=MagicMock()):
                self.fail("block must not run")
        mock_close.assert_not_called()


if __name__ == "__main__":
    unittest.main()
