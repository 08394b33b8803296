"""Unit tests for the creator model, ordering and merge rules."""

from __future__ import annotations

from dataclasses import replace

from shared.models.creator import (
    StreamingService,
    creator_sort_key,
    merge_creators,
    sort_creators,
)


class TestOrdering:
    def test_live_creators_come_first(self, make_creator) -> None:
        creators = [
            make_creator("Alice"),
            make_creator("Bob", live=True),
            make_creator("Carol"),
            make_creator("Dave", live=True),
        ]

        ordered = sort_creators(creators)

        assert [c.display_name for c in ordered] == ["Bob", "Dave", "Alice", "Carol"]

    def test_display_names_non_decreasing_within_each_group(self, make_creator) -> None:
        creators = [
            make_creator(name, live=name in {"zed", "amy"})
            for name in ["mia", "zed", "bob", "amy", "carl"]
        ]

        ordered = sort_creators(creators)
        live = [c.display_name for c in ordered if c.is_live]
        offline = [c.display_name for c in ordered if not c.is_live]

        assert live == sorted(live)
        assert offline == sorted(offline)
        assert ordered.index(next(c for c in ordered if not c.is_live)) == len(live)

    def test_equal_keys_keep_input_order(self, make_creator) -> None:
        twitch = make_creator("Same")
        youtube = replace(make_creator("Same"), service=StreamingService.YOUTUBE, id="yt")

        assert sort_creators([youtube, twitch]) == [youtube, twitch]
        assert sort_creators([twitch, youtube]) == [twitch, youtube]

    def test_sort_key(self, make_creator) -> None:
        assert creator_sort_key(make_creator("Bob", live=True)) == (False, "Bob")
        assert creator_sort_key(make_creator("Bob")) == (True, "Bob")


class TestMerge:
    def test_merge_concatenates_and_sorts(self, make_creator) -> None:
        youtube = [make_creator("Yuki", service=StreamingService.YOUTUBE)]
        twitch = [make_creator("Tom", live=True), make_creator("Ann")]

        merged = merge_creators(youtube, twitch)

        assert isinstance(merged, tuple)
        assert [c.display_name for c in merged] == ["Tom", "Ann", "Yuki"]

    def test_merge_of_nothing_is_empty(self) -> None:
        assert merge_creators([], []) == ()


class TestCreator:
    def test_equality_is_structural(self, make_creator) -> None:
        offline = make_creator("Bob")
        live = make_creator("Bob", live=True)

        assert offline != live
        assert offline == make_creator("Bob")

    def test_to_dict(self, make_creator) -> None:
        payload = make_creator("Bob", live=True, viewers=42).to_dict()

        assert payload["service"] == "twitch"
        assert payload["stream"]["viewers"] == 42
        assert payload["stream"]["start_time"] == "2024-05-01T12:30:00Z"
        assert make_creator("Ann").to_dict()["stream"] is None
