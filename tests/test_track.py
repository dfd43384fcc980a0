import pytest

from deflect.enums import Direction
from deflect.models import Threat
from deflect.track import ThreatTrack


def make_track(*entries):
    track = ThreatTrack(speed=0.9)
    for i, (d, p) in enumerate(entries):
        track.add(Threat(i, d, p))
    return track


def test_advance_scales_by_delta_and_slow_motion():
    track = make_track((Direction.UP, 0.0), (Direction.LEFT, 0.5))
    assert track.advance(0.1) == []
    assert [t.progress for t in track] == pytest.approx([0.09, 0.59])
    track.advance(0.1, scale=1 / 3)
    assert [t.progress for t in track] == pytest.approx([0.12, 0.62])


def test_advance_pops_every_crossed_threat_in_insertion_order():
    track = make_track((Direction.DOWN, 0.95), (Direction.UP, 0.1), (Direction.LEFT, 0.99))
    crossed = track.advance(0.1)
    assert [t.id for t in crossed] == [0, 2]
    assert [t.id for t in track] == [1]


def test_zero_delta_still_reports_threats_already_past_the_end():
    track = make_track((Direction.UP, 1.0))
    assert [t.id for t in track.advance(0.0)] == [0]
    assert len(track) == 0


def test_find_prefers_earliest_matching_threat_strictly_inside_window():
    track = make_track(
        (Direction.UP, 0.6),
        (Direction.DOWN, 0.9),
        (Direction.UP, 0.7),
        (Direction.UP, 0.8),
    )
    assert track.find(Direction.UP, 0.6).id == 2
    assert track.find(Direction.LEFT, 0.6) is None


def test_remove_is_exactly_once():
    track = make_track((Direction.RIGHT, 0.3))
    threat = track.threats[0]
    assert track.remove(threat) is True
    assert track.remove(threat) is False
    assert not track.has(threat.id)


def test_non_positive_speed_is_rejected():
    with pytest.raises(ValueError):
        ThreatTrack(speed=0)
