from __future__ import annotations

import json
import os

import pytest

from vocab_quiz.quiz.history import SessionSummary
from vocab_quiz.quiz.models import VocabularyItem
from vocab_quiz.store import JsonWordStore, StoreError


@pytest.fixture
def json_store(tmp_path, words):
    return JsonWordStore(tmp_path / "store", user_id="ada", vocabulary=words)


def test_reads_are_empty_before_any_write(json_store, words):
    assert json_store.list_starred() == []
    assert json_store.list_sessions() == []
    assert list(json_store.list_vocabulary()) == words


def test_set_starred_is_idempotent(json_store):
    assert json_store.set_starred("abate", True)
    assert json_store.set_starred("abate", True)
    assert json_store.list_starred() == ["abate"]

    assert json_store.set_starred("abate", False)
    assert json_store.list_starred() == []


def test_toggle_starred_flips_membership(json_store):
    json_store.toggle_starred("dire")
    assert json_store.list_starred() == ["dire"]
    json_store.toggle_starred("dire")
    assert json_store.list_starred() == []


def test_known_learned_and_custom_persist(json_store, tmp_path, words):
    json_store.add_known("brisk")
    json_store.add_learned(["candid", "dire"])
    json_store.add_custom([VocabularyItem("laconic", "using few words")])
    json_store.add_custom([VocabularyItem("laconic", "brief")])

    reopened = JsonWordStore(
        tmp_path / "store", user_id="ada", vocabulary=words
    )

    assert reopened.list_known() == ["brisk"]
    assert reopened.list_learned() == ["candid", "dire"]
    assert reopened.list_custom() == [VocabularyItem("laconic", "brief")]
    assert not (json_store.path.parent / ".lock").exists()


def test_record_session_appends_history(json_store):
    summary = SessionSummary(
        date="2026-01-02T08:00:00+00:00",
        mode="all",
        total_words=5,
        correct_answers=4,
        starred_words=("abate",),
    )

    json_store.record_session(summary)
    json_store.record_session(summary)

    assert json_store.list_sessions() == [summary, summary]
    payload = json.loads(json_store.path.read_text(encoding="utf-8"))
    assert payload["sessions"][0]["accuracy"] == 80.0


def test_users_are_isolated(tmp_path, words):
    ada = JsonWordStore(tmp_path, user_id="ada", vocabulary=words)
    bob = JsonWordStore(tmp_path, user_id="bob", vocabulary=words)

    ada.add_known("abate")

    assert bob.list_known() == []
    assert ada.path != bob.path


def test_user_id_is_slugged_into_path(tmp_path, words):
    store = JsonWordStore(tmp_path, user_id="../evil user", vocabulary=words)

    assert store.path.parent.parent == tmp_path


def test_signed_out_store_rejects_writes(tmp_path, words):
    store = JsonWordStore(tmp_path, user_id=None, vocabulary=words)

    assert store.path is None
    assert store.set_starred("abate", True) is False
    assert store.add_learned([]) is False
    assert store.list_starred() == []
    assert list(tmp_path.iterdir()) == []


def test_add_learned_with_nothing_new_is_ok(json_store):
    assert json_store.add_learned([]) is True
    assert json_store.path is not None
    assert not json_store.path.exists()


def test_corrupt_state_raises_store_error(json_store):
    json_store.path.parent.mkdir(parents=True)
    json_store.path.write_text("{not json", encoding="utf-8")

    with pytest.raises(StoreError):
        json_store.list_known()


def test_malformed_custom_entries_are_skipped(json_store):
    json_store.path.parent.mkdir(parents=True)
    json_store.path.write_text(
        json.dumps({"custom": [{"word": "ok", "definition": "fine"}, {}]}),
        encoding="utf-8",
    )

    assert json_store.list_custom() == [VocabularyItem("ok", "fine")]


def test_malformed_session_entries_are_skipped(json_store, caplog):
    good = SessionSummary.create(mode="all", total_words=4, correct_answers=2)
    json_store.path.parent.mkdir(parents=True)
    json_store.path.write_text(
        json.dumps(
            {
                "sessions": [
                    {"date": "x", "total_words": "ten"},
                    "not a session",
                    {"date": "y", "starred_words": 3},
                    good.to_dict(),
                ]
            }
        ),
        encoding="utf-8",
    )

    with caplog.at_level("WARNING", logger="vocab_quiz"):
        sessions = json_store.list_sessions()

    assert sessions == [good]
    skipped = [
        record
        for record in caplog.records
        if record.getMessage() == "Skipping malformed session history entry"
    ]
    assert len(skipped) == 3


def test_stale_lock_is_broken(json_store):
    lock = json_store.path.parent / ".lock"
    lock.parent.mkdir(parents=True)
    lock.write_text("99999", encoding="ascii")
    old = lock.stat().st_mtime - 60
    os.utime(lock, (old, old))

    assert json_store.add_known("abate") is True
    assert json_store.list_known() == ["abate"]
    assert not lock.exists()


def test_lock_records_holder_pid(json_store, monkeypatch):
    from vocab_quiz.store import json_store as json_store_mod

    seen = []
    original = json_store_mod._atomic_write_json

    def _spy(path, payload):
        seen.append((path.parent / ".lock").read_text(encoding="ascii"))
        original(path, payload)

    monkeypatch.setattr(json_store_mod, "_atomic_write_json", _spy)

    json_store.add_known("brisk")

    assert seen == [str(os.getpid())]


def test_fresh_lock_times_out(json_store, monkeypatch):
    from vocab_quiz.store import json_store as json_store_mod

    monkeypatch.setattr(json_store_mod, "_LOCK_TIMEOUT_SECONDS", 0.1)
    lock = json_store.path.parent / ".lock"
    lock.parent.mkdir(parents=True)
    lock.write_text("1", encoding="ascii")

    with pytest.raises(StoreError, match="Timed out"):
        json_store.add_known("candid")
    assert lock.exists()
