from geoserv.quests import QuestProgressTracker


def test_unknown_quest_is_at_begin():
    tracker = QuestProgressTracker()
    assert tracker.state_of(42) == "Begin"


def test_set_state_starts_and_updates_quest():
    tracker = QuestProgressTracker()
    tracker.set_state(3, "TalkToGuard")
    assert tracker.state_of(3) == "TalkToGuard"
    assert tracker.active[3].quest_id == 3

    tracker.set_state(3, "ReturnHome")
    assert tracker.state_of(3) == "ReturnHome"
    assert list(tracker.active) == [3]


def test_set_state_keeps_existing_kills():
    tracker = QuestProgressTracker()
    tracker.set_state(1, "Hunt")
    tracker.record_npc_kill(7)
    tracker.set_state(1, "Report")
    assert tracker.active[1].npc_kills[7] == 1


def test_complete_moves_quest_to_completed():
    tracker = QuestProgressTracker()
    tracker.set_state(5, "Hunt")
    tracker.complete(5)

    assert 5 not in tracker.active
    assert 5 in tracker.completed
    assert tracker.state_of(5) == "Begin"


def test_complete_of_inactive_quest_is_recorded():
    tracker = QuestProgressTracker()
    tracker.complete(9)
    assert tracker.completed == {9}
    assert tracker.active == {}


def test_record_npc_kill_counts_for_all_active_quests():
    tracker = QuestProgressTracker()
    tracker.set_state(1, "Hunt")
    tracker.set_state(2, "Hunt")
    kills = [11, 11, 12]
    for npc_id in kills:
        tracker.record_npc_kill(npc_id)

    for quest in tracker.active.values():
        assert quest.npc_kills[11] == kills.count(11)
        assert quest.npc_kills[12] == kills.count(12)
        assert quest.npc_kills[99] == 0


def test_record_npc_kill_ignores_completed_quests():
    tracker = QuestProgressTracker()
    tracker.set_state(1, "Hunt")
    tracker.complete(1)
    tracker.record_npc_kill(4)
    assert tracker.active == {}
    assert tracker.completed == {1}