"""Tests for canonical entity synthesis and partition validation."""

from collections.abc import Callable

import pytest

from transitalign.alignment import (
    AlignmentGraphBuilder,
    centroid,
    completeness_score,
    majority_category,
    merged_identifiers,
    select_representative,
)
from transitalign.clustering import AlignmentCluster
from transitalign.errors import InvariantViolation
from transitalign.models import NormalizedRecord

MakeRecord = Callable[..., NormalizedRecord]


# ---------------------------------------------------------------------------
# Representative selection
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_completeness_score(make_record: MakeRecord) -> None:
    """Test completeness counts populated attributes."""
    assert completeness_score(make_record()) == 0
    full = make_record(
        name="Via Roma", lat=46.07, lon=11.12, category="bike_sharing", identifiers={"X"}
    )
    assert completeness_score(full) == 4


@pytest.mark.unit
def test_select_representative_prefers_completeness(make_record: MakeRecord) -> None:
    """Test the most complete member wins over load order."""
    sparse = make_record("gtfs", "1", name="V. Roma", dataset_order=0)
    rich = make_record("osm", "1", name="Via Roma", lat=46.07, lon=11.12, dataset_order=1)

    assert select_representative([sparse, rich]) is rich


@pytest.mark.unit
def test_select_representative_tie_breaks(make_record: MakeRecord) -> None:
    """Test ties go to the earlier dataset, then the smaller key."""
    early = make_record("zz", "1", name="Porta Nord", dataset_order=0)
    late = make_record("aa", "1", name="North Gate", dataset_order=1)
    same_order = make_record("aa", "0", name="Nordtor", dataset_order=0)

    assert select_representative([late, early]) is early
    assert select_representative([early, same_order]) is same_order


@pytest.mark.unit
def test_select_representative_empty() -> None:
    """Test empty member lists are rejected."""
    with pytest.raises(ValueError):
        select_representative([])


@pytest.mark.unit
def test_select_representative_prefers_named_member(make_record: MakeRecord) -> None:
    """Test a complete but unnamed member never hides a member's name."""
    unnamed = make_record(
        "gtfs", "1", lat=46.07, lon=11.12, category="bus_stop", identifiers={"S1"}
    )
    named = make_record("osm", "1", name="Via Roma", dataset_order=1)

    assert select_representative([unnamed, named]) is named
    assert select_representative([unnamed]) is unnamed


@pytest.mark.unit
def test_build_entity_takes_name_from_named_member(make_record: MakeRecord) -> None:
    """Test an entity keeps a display name when its most complete member has none."""
    unnamed = make_record(
        "gtfs", "1", lat=46.07, lon=11.12, category="bus_stop", identifiers={"S1"}
    )
    named = make_record("osm", "1", name="Via Roma", lat=46.0701, lon=11.12, dataset_order=1)

    result = AlignmentGraphBuilder().build(
        [AlignmentCluster.of([unnamed, named], cohesion=0.9)], [unnamed, named]
    )

    entity = result.entities[0]
    assert entity.display_name == "Via Roma"
    assert entity.representative == ("osm", "1")
    assert entity.category == "bus_stop"
    assert entity.identifiers == ("S1",)


@pytest.mark.unit
def test_centroid(make_record: MakeRecord) -> None:
    """Test centroid averages located members only."""
    members = [
        make_record("a", "1", lat=46.0, lon=11.0),
        make_record("b", "1", lat=46.2, lon=11.2),
        make_record("c", "1"),
    ]

    assert centroid(members) == (pytest.approx(46.1), pytest.approx(11.1))
    assert centroid([make_record()]) == (None, None)


@pytest.mark.unit
def test_centroid_across_antimeridian(make_record: MakeRecord) -> None:
    """Test longitudes either side of 180 average near 180, not 0."""
    lat, lon = centroid(
        [make_record("a", "1", lat=-17.0, lon=179.9), make_record("b", "1", lat=-17.0, lon=-179.7)]
    )

    assert lat == pytest.approx(-17.0)
    assert lon == pytest.approx(-179.9)


@pytest.mark.unit
def test_majority_category(make_record: MakeRecord) -> None:
    """Test the most frequent category wins; ties favour the representative."""
    stop = make_record("a", "1", category="public_transport_stop")
    stop2 = make_record("b", "1", category="public_transport_stop")
    bike = make_record("c", "1", category="bike_sharing")
    blank = make_record("d", "1")

    assert majority_category([stop, stop2, bike, blank], bike) == "public_transport_stop"
    assert majority_category([stop, bike], bike) == "bike_sharing"
    assert majority_category([stop, bike], blank) == "bike_sharing"
    assert majority_category([blank], blank) == ""


@pytest.mark.unit
def test_merged_identifiers(make_record: MakeRecord) -> None:
    """Test identifiers are unioned and sorted."""
    members = [
        make_record("a", "1", identifiers={"STOP-445", "B"}),
        make_record("b", "1", identifiers={"STOP-445", "A"}),
    ]

    assert merged_identifiers(members) == ("A", "B", "STOP-445")


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_build_entities_with_provenance(make_record: MakeRecord) -> None:
    """Test each cluster becomes one entity listing its sources."""
    a = make_record("gtfs", "1", name="Via Roma", lat=46.070, lon=11.121, identifiers={"S1"})
    b = make_record("osm", "1", name="V. Roma", lat=46.0701, lon=11.1211, dataset_order=1)
    c = make_record("osm", "2", name="Piazza Duomo", lat=46.067, lon=11.121, dataset_order=1)
    clusters = [AlignmentCluster.of([a, b], cohesion=0.85), AlignmentCluster.of([c])]

    result = AlignmentGraphBuilder().build(clusters, [a, b, c])

    assert len(result) == 2
    entity = result.entity_for(("osm", "1"))
    assert entity is result.entity_for(("gtfs", "1"))
    assert entity.display_name == "Via Roma"
    assert entity.representative == ("gtfs", "1")
    assert entity.members == (("gtfs", "1"), ("osm", "1"))
    assert entity.datasets == ("gtfs", "osm")
    assert entity.identifiers == ("S1",)
    assert entity.cohesion == 0.85
    assert entity.latitude == pytest.approx(46.07005)
    assert result.provenance[entity.entity_id] == [("gtfs", "1"), ("osm", "1")]
    assert result.summary() == {
        "records": 3,
        "entities": 2,
        "multi_source_entities": 1,
        "singletons": 1,
    }


@pytest.mark.unit
def test_build_entity_to_dict(make_record: MakeRecord) -> None:
    """Test entity serialization shape."""
    a = make_record("gtfs", "1", name="Via Roma", lat=46.07, lon=11.121)
    result = AlignmentGraphBuilder().build([AlignmentCluster.of([a])], [a])

    data = result.entities[0].to_dict()

    assert data["provenance"] == [{"source_dataset": "gtfs", "source_id": "1"}]
    assert data["representative"] == {"source_dataset": "gtfs", "source_id": "1"}
    assert data["cohesion"] is None
    assert result.to_dict()["summary"]["entities"] == 1


@pytest.mark.unit
def test_build_rejects_record_in_two_clusters(make_record: MakeRecord) -> None:
    """Test overlapping clusters are an invariant violation."""
    a, b = make_record("gtfs", "1"), make_record("osm", "1")
    clusters = [AlignmentCluster.of([a, b]), AlignmentCluster.of([a])]

    with pytest.raises(InvariantViolation) as exc_info:
        AlignmentGraphBuilder().build(clusters, [a, b])

    assert exc_info.value.records == ("gtfs:1",)
    assert len(exc_info.value.clusters) == 2
    assert "gtfs:1" in str(exc_info.value)


@pytest.mark.unit
def test_build_rejects_missing_record(make_record: MakeRecord) -> None:
    """Test a record outside every cluster is an invariant violation."""
    a, b = make_record("gtfs", "1"), make_record("osm", "1")

    with pytest.raises(InvariantViolation, match="not assigned"):
        AlignmentGraphBuilder().build([AlignmentCluster.of([a])], [a, b])


@pytest.mark.unit
def test_build_rejects_unknown_record(make_record: MakeRecord) -> None:
    """Test a cluster member outside the run is an invariant violation."""
    a, b = make_record("gtfs", "1"), make_record("osm", "1")

    with pytest.raises(InvariantViolation, match="outside the run"):
        AlignmentGraphBuilder().build([AlignmentCluster.of([a]), AlignmentCluster.of([b])], [a])


@pytest.mark.unit
def test_build_rejects_empty_cluster(make_record: MakeRecord) -> None:
    """Test empty clusters are an invariant violation."""
    with pytest.raises(InvariantViolation):
        AlignmentGraphBuilder().build([AlignmentCluster.of([])], [])


@pytest.mark.unit
def test_result_entity_lookup_missing(make_record: MakeRecord) -> None:
    """Test looking up an unknown entity id raises KeyError."""
    a = make_record()
    result = AlignmentGraphBuilder().build([AlignmentCluster.of([a])], [a])

    with pytest.raises(KeyError):
        result.entity("c:000000000000")
