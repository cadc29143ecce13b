"""
Event Assignment Test Suite

Test ID | Description                    | Expected
--------|--------------------------------|------------------------------
1       | First containing cluster       | Earliest cluster in set order
2       | Nearest containing cluster     | Smallest dx + dy
3       | Independent axis bounds        | Box test, not ellipse
4       | Surround capture               | Radii scaled by surround
"""

import pytest

from blobtrack.tracking import Cluster, Event, assign, find_first_containing, find_nearest


@pytest.fixture
def pair(context):
    """Two overlapping clusters, 4 px apart in x"""
    return [
        Cluster.from_event(1, Event(10, 64, 0), context),
        Cluster.from_event(2, Event(14, 64, 0), context),
    ]


# =============================================================================
# TEST 1-2: Policies
# =============================================================================


class TestPolicies:
    """First-containing vs nearest assignment."""

    def test_first_containing(self, pair, context):
        found = find_first_containing(Event(13, 64, 0), pair, context.config)
        assert found.cluster.id == 1
        assert found.dx == pytest.approx(3.0)

    def test_nearest(self, pair, context):
        found = find_nearest(Event(13, 64, 0), pair, context.config)
        assert found.cluster.id == 2
        assert found.distance == pytest.approx(1.0)

    def test_nearest_tie_keeps_earlier(self, context):
        clusters = [
            Cluster.from_event(1, Event(10, 64, 0), context),
            Cluster.from_event(2, Event(16, 64, 0), context),
        ]
        found = find_nearest(Event(13, 64, 0), clusters, context.config)
        assert found.cluster.id == 1

    def test_dispatch(self, pair, make_context):
        nearest = make_context(use_nearest_cluster=True).config
        first = make_context().config
        assert assign(Event(13, 64, 0), pair, nearest).cluster.id == 2
        assert assign(Event(13, 64, 0), pair, first).cluster.id == 1

    def test_no_cluster(self, pair, context):
        assert find_first_containing(Event(100, 10, 0), pair, context.config) is None
        assert find_nearest(Event(100, 10, 0), pair, context.config) is None
        assert find_first_containing(Event(10, 10, 0), [], context.config) is None


# =============================================================================
# TEST 3-4: Containment
# =============================================================================


class TestContainment:
    """Per-axis bound tests."""

    def test_corner_inside_box(self, context):
        """dx = dy = 12 < 12.8 is contained though the Euclidean distance is 17"""
        c = Cluster.from_event(1, Event(64, 64, 0), context)
        assert find_first_containing(Event(76, 76, 0), [c], context.config) is not None

    def test_outside_on_one_axis(self, context):
        c = Cluster.from_event(1, Event(64, 64, 0), context)
        assert find_first_containing(Event(64, 78, 0), [c], context.config) is None

    def test_surround_when_dynamic_size(self, make_context):
        plain = make_context()
        c = Cluster.from_event(1, Event(64, 64, 0), plain)
        assert find_first_containing(Event(84, 64, 0), [c], plain.config) is None

        dynamic = make_context(dynamic_size_enabled=True, surround=2.0)
        c = Cluster.from_event(1, Event(64, 64, 0), dynamic)
        assert find_first_containing(Event(84, 64, 0), [c], dynamic.config) is not None
