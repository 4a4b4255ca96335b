"""Test helper functions for DRY code and simplified test patterns.

Provides scripted line readers, in-memory contract bindings and sample
sources shared by the parser, engine and generator tests.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

FIXTURES = Path(__file__).parent / "fixtures"
ZKVOTE_SOURCE = FIXTURES / "zkvote.compact"

COUNTER_SOURCE = """\
pragma language_version >= 0.14.0;

export ledger round: Counter;

export circuit increment(): [] {
  round.increment(1);
}
"""


class ScriptedReader:
    """Line reader that replays canned answers and records every prompt."""

    def __init__(self, answers: Iterable[str]):
        self.answers = list(answers)
        self.prompts: list[str] = []

    async def question(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError("No scripted answers left")
        return self.answers.pop(0)


class VoteBinding:
    """In-memory stand-in for a deployed zkvote contract."""

    contract_address = "0200aabbcc"

    def __init__(self) -> None:
        self.votes = [0, 0]
        self.round = 0
        self.items: set[bytes] = set()
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.height = 100
        self.call_tx = {
            "increment": self._increment,
            "vote_for": self._vote_for,
        }

    def _receipt(self) -> dict[str, Any]:
        self.height += 1
        return {"public": {"txId": f"tx{self.height}", "blockHeight": self.height}}

    async def _increment(self) -> dict[str, Any]:
        self.calls.append(("increment", ()))
        self.round += 1
        return self._receipt()

    async def _vote_for(self, index: int) -> dict[str, Any]:
        self.calls.append(("vote_for", (index,)))
        voter = b"wallet-1"
        if voter in self.items:
            raise RuntimeError("failed assert: items.member(pk) already a member")
        self.items.add(voter)
        self.votes[index] += 1
        return self._receipt()

    async def get_vote_count(self, index: int) -> int:
        self.calls.append(("get_vote_count", (index,)))
        return self.votes[index]

    async def public_key_vote(self, sk: bytes, instance: bytes) -> bytes:
        self.calls.append(("public_key_vote", (sk, instance)))
        return bytes(32)

    async def ledger_state(self) -> dict[str, Any]:
        return {"round": self.round, "votesA": self.votes[0], "votesB": self.votes[1], "items": set(self.items)}
