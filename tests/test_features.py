"""
Feature summary of rendered cards.
"""

import copy

from adaptive_card.features import merge_requires, summarize


def submit_card():
    return {
        "type": "AdaptiveCard",
        "version": "1.5",
        "body": [{"type": "Input.Text", "id": "name"}],
        "actions": [
            {"type": "Action.Submit", "id": "s1"},
            {"type": "Action.Submit", "id": "s2"},
        ],
    }


def test_counts_actions_by_short_name_and_flags_inputs():
    summary = summarize(submit_card())
    assert summary.action_counts == {"Submit": 2}
    assert summary.element_counts == {"Input.Text": 1}
    assert summary.has_inputs is True
    assert summary.has_media is False
    assert summary.has_auth is False
    assert summary.version == "1.5"
    assert summary.used_elements == ["Input.Text"]
    assert summary.used_actions == ["Action.Submit"]


def test_media_flag_only_for_media_elements():
    images = {"type": "AdaptiveCard", "body": [{"type": "Image", "url": "u"}, {"type": "ImageSet", "images": []}]}
    assert summarize(images).has_media is False
    media = {"type": "AdaptiveCard", "body": [{"type": "Media", "sources": [{"url": "u"}]}]}
    assert summarize(media).has_media is True


def test_authentication_anywhere_in_the_tree():
    card = {"type": "AdaptiveCard", "authentication": {"connectionName": "c"}}
    assert summarize(card).has_auth is True


def test_show_card_and_toggle_visibility_flags():
    card = {
        "type": "AdaptiveCard",
        "actions": [
            {"type": "Action.ToggleVisibility", "targetElements": ["x"]},
            {"type": "Action.ShowCard", "card": {"type": "AdaptiveCard", "body": [{"type": "TextBlock", "text": "t"}]}},
        ],
    }
    summary = summarize(card)
    assert summary.uses_show_card is True
    assert summary.uses_toggle_visibility is True
    assert summary.used_actions == ["Action.ShowCard", "Action.ToggleVisibility"]
    assert summary.action_counts == {"ToggleVisibility": 1, "ShowCard": 1}
    assert summary.element_counts == {"TextBlock": 1}


def test_unknown_types_are_counted_by_raw_name():
    card = {"type": "AdaptiveCard", "body": [{"type": "Custom.Widget"}], "actions": [{"type": "Action.Teleport"}]}
    summary = summarize(card)
    assert summary.element_counts == {"Custom.Widget": 1}
    assert summary.action_counts == {"Action.Teleport": 1}


def test_action_data_is_not_walked():
    card = {"type": "AdaptiveCard", "actions": [{"type": "Action.Submit", "data": {"type": "Media"}}]}
    summary = summarize(card)
    assert summary.has_media is False
    assert summary.element_counts == {}


def test_requires_first_writer_wins():
    card = {
        "type": "AdaptiveCard",
        "requires": {"acme": "1.0"},
        "body": [{"type": "TextBlock", "text": "x", "requires": {"acme": "2.0", "other": "1"}}],
    }
    assert summarize(card).requires == {"acme": "1.0", "other": "1"}


def test_merge_requires_ignores_non_objects():
    target = {"a": 1}
    merge_requires(target, ["b"])
    assert target == {"a": 1}


def test_summary_is_idempotent_and_pure():
    card = submit_card()
    original = copy.deepcopy(card)
    assert summarize(card) == summarize(card)
    assert card == original
    assert summarize(card).to_dict()["action_counts"] == {"Submit": 2}
