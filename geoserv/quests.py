"""Tracking of a character's quest progress."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

INITIAL_STATE = "Begin"


@dataclass
class QuestState:
    """Progress within a single active quest."""

    quest_id: int
    state_name: str
    npc_kills: Counter = field(default_factory=Counter)


@dataclass
class QuestProgressTracker:
    """All quest progress for one character: active quests and completed ones."""

    active: dict[int, QuestState] = field(default_factory=dict)
    completed: set[int] = field(default_factory=set)

    def state_of(self, quest_id: int) -> str:
        """Name of the quest's current state, or the initial state if not started."""
        quest = self.active.get(quest_id)
        return quest.state_name if quest is not None else INITIAL_STATE

    def set_state(self, quest_id: int, state_name: str) -> None:
        """Move a quest to ``state_name``, starting it if it is not active yet."""
        quest = self.active.get(quest_id)
        if quest is None:
            self.active[quest_id] = QuestState(quest_id, state_name)
        else:
            quest.state_name = state_name

    def complete(self, quest_id: int) -> None:
        """Drop the quest from the active set and mark it completed."""
        self.active.pop(quest_id, None)
        self.completed.add(quest_id)

    def record_npc_kill(self, npc_id: int) -> None:
        """Count a kill of ``npc_id`` towards every active quest."""
        for quest in self.active.values():
            quest.npc_kills[npc_id] += 1