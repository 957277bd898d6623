"""
Binding context lookup: namespace precedence, qualified paths, path syntax,
and isolation from caller data.
"""

import pytest

from adaptive_card.context_resolver import ABSENT, BindingContext, compile_path
from adaptive_card.errors import PathSyntaxError


def make_context():
    return BindingContext(
        payload={"user": {"name": "Payload Ada", "tiers": [{"name": "gold"}, {"name": "silver"}]}},
        session={"user": {"name": "Session Ada", "locale": "fr"}, "channel": "teams"},
        state={"count": 3, "user": {"locale": "de"}},
        params={"title": "Welcome", "channel": "params-channel"},
    )


def test_unqualified_path_prefers_payload():
    assert make_context().resolve("user.name") == "Payload Ada"


def test_precedence_falls_through_on_full_path():
    # payload has "user" but not "user.locale"; session is next.
    assert make_context().resolve("user.locale") == "fr"


def test_precedence_order_session_before_params():
    assert make_context().resolve("channel") == "teams"


def test_state_reached_when_earlier_namespaces_miss():
    assert make_context().resolve("count") == 3


def test_qualified_paths_address_one_namespace():
    ctx = make_context()
    assert ctx.resolve("session.user.name") == "Session Ada"
    assert ctx.resolve("state.user.locale") == "de"
    assert ctx.resolve("params.title") == "Welcome"
    assert ctx.resolve("template.title") == "Welcome"


def test_qualified_path_does_not_fall_back():
    assert make_context().resolve("payload.count") is ABSENT


def test_index_and_numeric_segments():
    ctx = make_context()
    assert ctx.resolve("user.tiers[0].name") == "gold"
    assert ctx.resolve("user.tiers.1.name") == "silver"


def test_missing_paths_are_absent_not_errors():
    ctx = make_context()
    assert ctx.resolve("nobody.here") is ABSENT
    assert ctx.resolve("user.tiers[5]") is ABSENT
    assert ctx.resolve("count.digits") is ABSENT
    assert not ctx.has("nobody")


def test_null_is_a_value_not_absent():
    ctx = BindingContext(payload={"nickname": None})
    assert ctx.resolve("nickname") is None
    assert ctx.has("nickname")


def test_compile_path_segments():
    assert compile_path("user.tiers[0].name") == ("user", "tiers", 0, "name")
    assert compile_path(" a.b ") == ("a", "b")


@pytest.mark.parametrize("bad", ["", "   ", "a..b", "a.", "[0]", "a[x]", "a[0"])
def test_malformed_paths_raise(bad):
    with pytest.raises(PathSyntaxError):
        compile_path(bad)


def test_resolved_values_are_copies():
    ctx = make_context()
    user = ctx.resolve("user")
    user["name"] = "changed"
    assert ctx.resolve("user.name") == "Payload Ada"


def test_caller_data_is_copied_on_construction():
    payload = {"name": "Ada"}
    ctx = BindingContext(payload=payload)
    payload["name"] = "Grace"
    assert ctx.resolve("name") == "Ada"


def test_missing_namespaces_behave_as_empty():
    ctx = BindingContext()
    assert ctx.payload == {}
    assert ctx.resolve("anything") is ABSENT


def test_from_mapping_accepts_template_alias():
    ctx = BindingContext.from_mapping({"template": {"title": "T"}, "node_id": "n1"})
    assert ctx.resolve("params.title") == "T"
    assert ctx.node_id == "n1"
    assert BindingContext.from_mapping(ctx) is ctx
