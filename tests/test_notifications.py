import pytest

from deflect.enums import NotifyKind
from deflect.managers import NotificationManager


def test_latest_message_wins_and_expires():
    notes = NotificationManager(hold_sec=3.0)
    notes.show("Score saved!", NotifyKind.SUCCESS, now=10.0)
    notes.show("NEW HIGH SCORE!", "success", now=10.5)
    note = notes.get(11.0)
    assert note.message == "NEW HIGH SCORE!" and note.kind is NotifyKind.SUCCESS
    assert notes.get(13.4) is note
    assert notes.get(13.5) is None


def test_toast_fades_out_before_expiry():
    notes = NotificationManager(hold_sec=3.0, fade_sec=0.5)
    assert notes.opacity(0.0) == 0.0
    notes.show("hi", NotifyKind.INFO, now=0.0)
    assert notes.opacity(1.0) == 1.0
    assert notes.opacity(2.75) == pytest.approx(0.5)
    assert notes.opacity(3.0) == 0.0
    notes.clear()
    assert notes.get(1.0) is None
    assert notes.opacity(1.0) == 0.0
