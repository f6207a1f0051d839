import os
import sys

import pytest
from starlette.responses import Response

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import make_request

from sessiongate.modules.cookie import DefaultCookieSerializer
from sessiongate.modules.exceptions import SessionConfigurationError
from sessiongate.modules.strategy import (
    CookieSessionStrategy,
    MultiplexedSessionStrategy,
    SessionIdCandidate,
)


def cookie_strategy(name, alias=None):
    return CookieSessionStrategy(DefaultCookieSerializer(name=name), alias=alias or name)


@pytest.fixture
def multiplexed():
    return MultiplexedSessionStrategy(
        [("SESSION", cookie_strategy("SESSION")), ("ALT", cookie_strategy("ALT_SESSION", "ALT"))]
    )


class TestCookieSessionStrategy:
    """Single cookie channel."""

    def test_resolve_tags_candidates_with_alias(self):
        strategy = CookieSessionStrategy()
        request = make_request("SESSION=a; SESSION=b")

        assert strategy.resolve_session_ids(request) == [
            SessionIdCandidate("SESSION", "a"),
            SessionIdCandidate("SESSION", "b"),
        ]

    def test_alternate_lookup_unsupported(self):
        strategy = CookieSessionStrategy()

        assert strategy.get_session_id(make_request("SESSION=a"), "SESSION") is None
        assert strategy.get_session_id(make_request("SESSION=a"), "ALT") is None

    def test_save_writes_through_serializer(self):
        strategy = CookieSessionStrategy()
        response = Response()

        strategy.save_session_ids({"SESSION": "new-id"}, make_request(), response)

        headers = response.headers.getlist("set-cookie")
        assert len(headers) == 1
        assert headers[0].startswith("SESSION=new-id")

    def test_save_ignores_other_aliases(self):
        strategy = CookieSessionStrategy()
        response = Response()

        strategy.save_session_ids({"ALT": "new-id"}, make_request(), response)

        assert response.headers.getlist("set-cookie") == []

    def test_empty_alias_rejected(self):
        with pytest.raises(SessionConfigurationError):
            CookieSessionStrategy(alias="")


class TestMultiplexedSessionStrategy:
    """Several cookie channels on one request/response pair."""

    def test_aliases_in_registration_order(self, multiplexed):
        assert multiplexed.aliases == ("SESSION", "ALT")

    def test_resolve_merges_channels_in_registration_order(self, multiplexed):
        request = make_request("ALT_SESSION=alt-1; SESSION=main-1")

        assert multiplexed.resolve_session_ids(request) == [
            SessionIdCandidate("SESSION", "main-1"),
            SessionIdCandidate("ALT", "alt-1"),
        ]

    def test_first_registered_channel_wins_conflicts(self, multiplexed):
        request = make_request("SESSION=shared; ALT_SESSION=shared; ALT_SESSION=alt-only")

        assert multiplexed.resolve_session_ids(request) == [
            SessionIdCandidate("SESSION", "shared"),
            SessionIdCandidate("ALT", "alt-only"),
        ]

    def test_alternate_lookup_by_alias(self, multiplexed):
        request = make_request("SESSION=main-1; ALT_SESSION=alt-1")

        assert multiplexed.get_session_id(request, "ALT") == "alt-1"
        assert multiplexed.get_session_id(request, "SESSION") == "main-1"
        assert multiplexed.get_session_id(make_request("SESSION=main-1"), "ALT") is None

    def test_save_only_touches_changed_channel(self, multiplexed):
        response = Response()

        multiplexed.save_session_ids({"ALT": ""}, make_request(), response)

        headers = response.headers.getlist("set-cookie")
        assert len(headers) == 1
        assert headers[0].startswith("ALT_SESSION=")
        assert "Max-Age=0" in headers[0]

    def test_save_fans_out_to_each_channel(self, multiplexed):
        response = Response()

        multiplexed.save_session_ids({"SESSION": "main-2", "ALT": "alt-2"}, make_request(), response)

        headers = response.headers.getlist("set-cookie")
        assert [h.split(";")[0] for h in headers] == ["SESSION=main-2", "ALT_SESSION=alt-2"]

    def test_primary_shortcut(self, multiplexed):
        response = Response()

        multiplexed.save_session_id("main-3", make_request(), response)

        assert response.headers.getlist("set-cookie")[0].startswith("SESSION=main-3")

    def test_unknown_alias_on_save(self, multiplexed):
        with pytest.raises(KeyError):
            multiplexed.save_session_ids({"OTHER": "x"}, make_request(), Response())

    def test_duplicate_alias_rejected(self):
        with pytest.raises(SessionConfigurationError, match="Duplicate session alias"):
            MultiplexedSessionStrategy(
                [("SESSION", cookie_strategy("SESSION")), ("SESSION", cookie_strategy("OTHER"))]
            )

    def test_shared_cookie_name_rejected(self):
        with pytest.raises(SessionConfigurationError):
            MultiplexedSessionStrategy(
                [("SESSION", cookie_strategy("SESSION")), ("ALT", cookie_strategy("SESSION", "ALT"))]
            )

    def test_empty_channel_list_rejected(self):
        with pytest.raises(SessionConfigurationError):
            MultiplexedSessionStrategy([])
