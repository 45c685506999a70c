"""
Tests for event aggregation, filtering and self-modification tracking.

Validates the merge rules, their interaction in longer chains, idempotence
of the aggregation and the two-generation suppression of editor writes.
"""

import pytest

from core.sync.aggregator import aggregate_events
from core.sync.events import ChangeKind, FileEvent
from core.sync.filters import filter_events
from core.sync.tracker import SelfModificationTracker


def process(events, tracker=None):
    aggregate_events(events)
    filter_events(events, tracker)
    return events


class TestAggregationRules:
    """Test the individual merge rules"""

    def test_rename_chain_merged(self):
        """A -> B followed by B -> C becomes A -> C"""
        events = [
            FileEvent.renamed("/data/a.res", "/data/b.res"),
            FileEvent.renamed("/data/b.res", "/data/c.res"),
        ]

        aggregate_events(events)

        assert events == [FileEvent.renamed("/data/a.res", "/data/c.res")]

    def test_long_rename_chain_merged(self):
        events = [
            FileEvent.renamed("/data/a.res", "/data/b.res"),
            FileEvent.renamed("/data/b.res", "/data/c.res"),
            FileEvent.renamed("/data/c.res", "/data/d.res"),
            FileEvent.renamed("/data/d.res", "/data/e.res"),
        ]

        aggregate_events(events)

        assert events == [FileEvent.renamed("/data/a.res", "/data/e.res")]

    def test_chain_back_to_origin_is_dropped(self):
        """Renaming a file and renaming it back leaves nothing to do"""
        events = [
            FileEvent.renamed("/data/a.res", "/data/b.res"),
            FileEvent.renamed("/data/b.res", "/data/a.res"),
        ]

        assert process(events) == []

    def test_delete_then_create_becomes_move(self):
        events = [
            FileEvent.deleted("/data/foo/a.Texture.res"),
            FileEvent.created("/data/bar/a.Texture.res"),
        ]

        aggregate_events(events)

        assert events == [FileEvent.renamed("/data/foo/a.Texture.res", "/data/bar/a.Texture.res")]

    def test_delete_then_create_same_path_is_not_a_move(self):
        events = [
            FileEvent.deleted("/data/a.res"),
            FileEvent.created("/data/a.res"),
        ]

        aggregate_events(events)

        assert [e.kind for e in events] == [ChangeKind.DELETED, ChangeKind.CREATED]

    def test_delete_then_create_different_names_untouched(self):
        events = [
            FileEvent.deleted("/data/foo/a.res"),
            FileEvent.created("/data/bar/b.res"),
        ]

        aggregate_events(events)

        assert len(events) == 2

    def test_delete_then_rename_onto_path(self):
        """Deleting P, then renaming a temp file onto P is a replace of P"""
        events = [
            FileEvent.deleted("/data/a.res"),
            FileEvent.renamed("/data/a.res~tmp", "/data/a.res"),
        ]

        aggregate_events(events)

        assert events == [
            FileEvent.renamed("/data/a.res", "/data/a.res"),
            FileEvent.changed("/data/a.res"),
        ]

    def test_delete_then_rename_leaves_a_change_after_filtering(self):
        events = [
            FileEvent.deleted("/data/a.res"),
            FileEvent.renamed("/data/a.res~tmp", "/data/a.res"),
        ]

        assert process(events) == [FileEvent.changed("/data/a.res")]

    def test_unrelated_events_keep_order(self):
        events = [
            FileEvent.created("/data/a.res"),
            FileEvent.changed("/data/b.res"),
            FileEvent.deleted("/data/c.res"),
        ]
        expected = list(events)

        aggregate_events(events)

        assert events == expected


class TestAggregationProperties:
    """Test properties that hold for arbitrary event sequences"""

    SEQUENCES = [
        [
            FileEvent.deleted("/data/a/x.res"),
            FileEvent.created("/data/b/x.res"),
            FileEvent.renamed("/data/b/x.res", "/data/b/y.res"),
        ],
        [
            FileEvent.renamed("/data/a.res", "/data/b.res"),
            FileEvent.deleted("/data/c.res"),
            FileEvent.renamed("/data/tmp", "/data/c.res"),
            FileEvent.changed("/data/c.res"),
        ],
        [
            FileEvent.deleted("/data/dir", is_directory=True),
            FileEvent.created("/data/other/dir", is_directory=True),
            FileEvent.renamed("/data/q.res", "/data/q.res"),
        ],
    ]

    @pytest.mark.parametrize("sequence", SEQUENCES)
    def test_aggregation_is_idempotent(self, sequence):
        once = aggregate_events(list(sequence))
        twice = aggregate_events(list(once))

        assert twice == once

    @pytest.mark.parametrize("sequence", SEQUENCES)
    def test_no_noop_renames_survive(self, sequence):
        events = process(list(sequence))

        assert not any(e.kind == ChangeKind.RENAMED and e.old_path == e.path for e in events)

    def test_move_then_rename_is_one_rename(self):
        events = process(list(self.SEQUENCES[0]))

        assert events == [FileEvent.renamed("/data/a/x.res", "/data/b/y.res")]


class TestFilter:
    """Test event filtering"""

    def test_noop_rename_dropped_at_any_index(self):
        """The very first event is filtered like all others"""
        events = [
            FileEvent.renamed("/data/a.res", "/data/a.res"),
            FileEvent.changed("/data/b.res"),
        ]

        filter_events(events)

        assert events == [FileEvent.changed("/data/b.res")]

    def test_editor_changes_dropped(self):
        tracker = SelfModificationTracker()
        tracker.flag_modified("/data/a.res")
        events = [
            FileEvent.changed("/data/a.res"),
            FileEvent.changed("/data/b.res"),
            FileEvent.deleted("/data/a.res"),
        ]

        filter_events(events, tracker)

        assert events == [FileEvent.changed("/data/b.res"), FileEvent.deleted("/data/a.res")]

    def test_child_moves_of_renamed_directory_dropped(self):
        """A directory rename stands for the moves of everything inside it"""
        events = [
            FileEvent.renamed("/data/Sprites", "/data/Art", is_directory=True),
            FileEvent.renamed("/data/Sprites/tree.Texture.res", "/data/Art/tree.Texture.res"),
            FileEvent.renamed("/data/Sprites/Sub", "/data/Art/Sub", is_directory=True),
            FileEvent.renamed("/data/Sprites/Sub/rock.Texture.res", "/data/Art/Sub/rock.Texture.res"),
        ]

        filter_events(events)

        assert events == [FileEvent.renamed("/data/Sprites", "/data/Art", is_directory=True)]

    def test_unrelated_renames_next_to_directory_rename_kept(self):
        events = [
            FileEvent.renamed("/data/Sprites", "/data/Art", is_directory=True),
            FileEvent.renamed("/data/Sprites/tree.Texture.res", "/data/Other/tree.Texture.res"),
            FileEvent.renamed("/data/SpritesOld/a.Texture.res", "/data/ArtOld/a.Texture.res"),
        ]

        filter_events(events)

        assert len(events) == 3


class TestSelfModificationTracker:
    """Test the two-generation aging of editor-modified paths"""

    def test_flag_survives_one_aging(self):
        tracker = SelfModificationTracker()
        tracker.flag_modified("/data/a.res")

        tracker.age()
        assert tracker.is_modified("/data/a.res")

        tracker.age()
        assert not tracker.is_modified("/data/a.res")

    def test_reflag_restarts_window(self):
        tracker = SelfModificationTracker()
        tracker.flag_modified("/data/a.res")
        tracker.age()

        tracker.flag_modified("/data/a.res")
        tracker.age()

        assert tracker.is_modified("/data/a.res")

    def test_empty_path_ignored(self):
        tracker = SelfModificationTracker()
        tracker.flag_modified("")

        assert len(tracker) == 0
        assert not tracker.is_modified("")

    def test_change_after_aging_passes_filter(self):
        """An editor save suppresses its own notification, not later edits"""
        tracker = SelfModificationTracker()
        tracker.flag_modified("/data/a.res")
        tracker.age()
        tracker.age()

        events = [FileEvent.changed("/data/a.res")]
        filter_events(events, tracker)

        assert events == [FileEvent.changed("/data/a.res")]
