"""Tests for knowledge graph assembly, filtering and saved groups."""

import pytest
from pydantic import ValidationError

from momentum.core.knowledge_graph import (
    add_group,
    all_tags,
    build_graph,
    filter_graph,
    recency_slice,
    remove_group,
    reorder_groups,
    update_group,
)
from momentum.core.schemas_graph import GROUP_COLORS, GraphGroupCreate, GraphGroupUpdate, RecencyRange

NOTES = [
    {"id": "n1", "title": "Compost ratios", "content": "Browns and greens", "note_type": "permanent",
     "created_at": "2026-01-04"},
    {"id": "n2", "title": "Morning pages", "content": "Three pages of compost for the mind",
     "note_type": "permanent", "created_at": "2026-01-03"},
    {"id": "n3", "title": "Spanish verbs", "content": "Ser and estar", "note_type": "permanent",
     "created_at": "2026-01-02"},
    {"id": "n4", "title": "Running form", "content": "Cadence", "note_type": "permanent",
     "created_at": "2026-01-01"},
]

NOTE_TAGS = [
    {"note_id": "n1", "tags": {"name": "garden"}},
    {"note_id": "n2", "tags": {"name": "writing"}},
    {"note_id": "n2", "tags": {"name": "habit"}},
    {"note_id": "n4", "tags": {"name": "habit"}},
    {"note_id": "n3", "tags": None},
]

CONNECTIONS = [
    {"source_note_id": "n1", "target_note_id": "n2", "connection_type": "related", "strength": 0.6},
    {"source_note_id": "n2", "target_note_id": "n4", "connection_type": "supports", "strength": 0.8},
]

NOTE_SOURCES = [
    {"note_id": "n1", "source_type": "document", "source_id": "d1"},
    {"note_id": "n2", "source_type": "coaching_session", "source_id": "s1"},
    {"note_id": "n2", "source_type": "coaching_session", "source_id": "s2"},
    {"note_id": "n3", "source_type": "coaching_session", "source_id": "s3"},
]


def _graph():
    return build_graph(
        notes=NOTES,
        note_tags=NOTE_TAGS,
        connections=CONNECTIONS,
        note_sources=NOTE_SOURCES,
        document_titles={"d1": "Garden journal"},
        session_goals={
            "s1": {"id": "g1", "title": "Write daily", "status": "active"},
            "s2": {"id": "g2", "title": "Sleep better", "status": "parked"},
        },
    )


class TestBuildGraph:
    def test_nodes_keep_note_order_and_fields(self):
        graph = _graph()
        nodes = graph["nodes"]

        assert [n["id"] for n in nodes] == ["n1", "n2", "n3", "n4"]
        assert nodes[0]["type"] == "permanent"
        assert nodes[0]["createdAt"] == "2026-01-04"
        assert nodes[1]["tags"] == ["writing", "habit"]
        assert nodes[2]["tags"] == []

    def test_sources_carry_titles(self):
        nodes = _graph()["nodes"]

        assert nodes[0]["sources"][0]["document_title"] == "Garden journal"
        assert nodes[1]["sources"][0]["session_goal_title"] == "Write daily"
        assert nodes[2]["sources"][0]["session_goal_title"] is None

    def test_first_session_goal_wins(self):
        node = _graph()["nodes"][1]

        assert node["goalId"] == "g1"
        assert node["goalTitle"] == "Write daily"
        assert node["goalStatus"] == "active"

    def test_links(self):
        links = _graph()["links"]

        assert links[0] == {"source": "n1", "target": "n2", "type": "related", "strength": 0.6}
        assert len(links) == 2

    def test_all_tags(self):
        assert all_tags(_graph()["nodes"]) == ["garden", "habit", "writing"]


class TestFilterGraph:
    def test_no_filters_keeps_everything(self):
        graph = _graph()
        assert filter_graph(graph) == graph

    def test_search_is_case_insensitive_over_title_and_content(self):
        filtered = filter_graph(_graph(), search="COMPOST")

        assert [n["id"] for n in filtered["nodes"]] == ["n1", "n2"]
        assert filtered["links"] == [{"source": "n1", "target": "n2", "type": "related", "strength": 0.6}]

    def test_tags_match_any(self):
        filtered = filter_graph(_graph(), tags=["habit", "garden"])

        assert [n["id"] for n in filtered["nodes"]] == ["n1", "n2", "n4"]
        assert len(filtered["links"]) == 2

    def test_links_need_both_ends(self):
        filtered = filter_graph(_graph(), tags=["garden"])

        assert [n["id"] for n in filtered["nodes"]] == ["n1"]
        assert filtered["links"] == []

    def test_recency_newest_half(self):
        filtered = filter_graph(_graph(), recency=RecencyRange(start=50, end=100))

        assert [n["id"] for n in filtered["nodes"]] == ["n1", "n2"]

    def test_recency_applies_after_search(self):
        filtered = filter_graph(_graph(), search="compost", recency=RecencyRange(start=50, end=100))

        assert [n["id"] for n in filtered["nodes"]] == ["n1"]


@pytest.mark.parametrize(
    "count,start,end,expected",
    [
        (4, 0, 100, slice(0, 4)),
        (4, 50, 100, slice(0, 2)),
        (4, 0, 50, slice(2, 4)),
        (3, 40, 60, slice(1, 2)),
        (0, 0, 100, slice(0, 0)),
    ],
)
def test_recency_slice(count, start, end, expected):
    assert recency_slice(count, RecencyRange(start=start, end=end)) == expected


def test_recency_range_must_be_ordered():
    with pytest.raises(ValidationError):
        RecencyRange(start=80, end=20)


class TestGroups:
    def _groups(self, n):
        groups = []
        for i in range(n):
            groups, _ = add_group(groups, GraphGroupCreate(name=f"Group {i}"))
        return groups

    def test_add_group_assigns_color_and_order(self):
        groups, group = add_group(self._groups(2), GraphGroupCreate(name="Habits", tags=["habit"]))

        assert group.color == GROUP_COLORS[2]
        assert group.order == 2
        assert group.tags == ["habit"]
        assert len(groups) == 3

    def test_colors_wrap_around_palette(self):
        groups = self._groups(len(GROUP_COLORS) + 1)

        assert groups[-1].color == GROUP_COLORS[0]

    def test_create_accepts_camel_case(self):
        data = GraphGroupCreate.model_validate(
            {"name": "Recent", "searchQuery": "run", "recencyRange": {"start": 50, "end": 100}}
        )

        assert data.search_query == "run"
        assert data.recency_range.start == 50

    def test_update_only_sent_fields(self):
        groups = self._groups(2)
        target = groups[1]

        updated = update_group(groups, target.id, GraphGroupUpdate(name="Renamed"))

        assert updated[1].name == "Renamed"
        assert updated[1].color == target.color
        assert updated[0] == groups[0]

    def test_update_recency_range(self):
        groups = self._groups(1)

        updated = update_group(
            groups, groups[0].id, GraphGroupUpdate.model_validate({"recencyRange": {"start": 10, "end": 20}})
        )

        assert updated[0].recency_range == RecencyRange(start=10, end=20)

    def test_update_missing_group(self):
        assert update_group(self._groups(1), "missing", GraphGroupUpdate(name="x")) is None

    def test_remove_reindexes(self):
        groups = self._groups(3)

        remaining = remove_group(groups, groups[0].id)

        assert [g.name for g in remaining] == ["Group 1", "Group 2"]
        assert [g.order for g in remaining] == [0, 1]

    def test_reorder_drops_unknown_ids(self):
        groups = self._groups(3)

        reordered = reorder_groups(groups, [groups[2].id, "missing", groups[0].id])

        assert [g.name for g in reordered] == ["Group 2", "Group 0"]
        assert [g.order for g in reordered] == [0, 1]
