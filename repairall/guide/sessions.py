"""
In-memory technician sessions.
What it does:
- Keeps one GuideOrchestrator per authenticated technician
- Creates it lazily on first use

Main purpose:
One generation in flight per session. Nothing is persisted; a restart
forgets every guide.
"""


from typing import Callable, Dict

from repairall.guide.orchestrator import GuideOrchestrator


class SessionRegistry:
    def __init__(self, factory: Callable[[], GuideOrchestrator]):
        self.factory = factory
        self._sessions: Dict[str, GuideOrchestrator] = {}

    def get(self, user_key: str) -> GuideOrchestrator:
        key = (user_key or "").strip().lower()
        if key not in self._sessions:
            self._sessions[key] = self.factory()
        return self._sessions[key]

    def __len__(self) -> int:
        return len(self._sessions)
