"""Client abstraction for talking to the game engine (stdio or local sandbox)."""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TextIO
import logging
import sys

from mechanics import Action, GameState
from serialization import (
    DONE,
    FINISH,
    GameOver,
    deserialize_action,
    encode_state,
    parse_header,
    serialize_actions,
)

log = logging.getLogger(__name__)


class GameClient(ABC):
    """Abstract interface between the turn engine and whatever runs the game.

    The engine only ever talks to this, so it can be driven by the real game
    engine over stdio or by the local sandbox without knowing which.
    """

    @abstractmethod
    def read_header(self) -> tuple[int, int, int]:
        """Block until the game starts; return (player_id, width, height)."""
        pass

    @abstractmethod
    def read_update(self) -> list[str]:
        """Block until the next turn's update lines are available."""
        pass

    @abstractmethod
    def write_actions(self, actions: list[Action]) -> None:
        pass

    @abstractmethod
    def end_turn(self) -> None:
        pass

    @abstractmethod
    def flush(self) -> None:
        pass


@dataclass
class StdioClient(GameClient):
    """Client for the real game engine, which speaks over stdin/stdout."""

    input: TextIO = field(default_factory=lambda: sys.stdin)
    output: TextIO = field(default_factory=lambda: sys.stdout)

    def _readline(self) -> str:
        line = self.input.readline()
        if line == "":
            raise GameOver("input closed")
        return line.rstrip("\r\n")

    def read_header(self) -> tuple[int, int, int]:
        return parse_header([self._readline(), self._readline()])

    def read_update(self) -> list[str]:
        lines: list[str] = []
        while True:
            line = self._readline()
            if line.strip() == DONE:
                return lines
            lines.append(line)

    def write_actions(self, actions: list[Action]) -> None:
        self.output.write(serialize_actions(actions) + "\n")

    def end_turn(self) -> None:
        self.output.write(FINISH + "\n")

    def flush(self) -> None:
        self.output.flush()


@dataclass
class LocalClient(GameClient):
    """Client for the local sandbox - serves one team's view of a shared GameState.

    Actions go through the same wire format the real engine would receive.
    """

    state: GameState
    team: int
    _pending: list[str] = field(default_factory=list)
    _finished: list[str] = field(default_factory=list)

    def read_header(self) -> tuple[int, int, int]:
        return self.team, self.state.map.width, self.state.map.height

    def read_update(self) -> list[str]:
        return encode_state(self.state)

    def write_actions(self, actions: list[Action]) -> None:
        self._pending.append(serialize_actions(actions))

    def end_turn(self) -> None:
        self._finished.extend(self._pending)
        self._pending.clear()

    def flush(self) -> None:
        pass

    def take_actions(self) -> list[Action]:
        """Decode and clear everything submitted since the last call."""
        actions = [
            deserialize_action(command)
            for line in self._finished
            for command in line.split(",")
            if command.strip()
        ]
        self._finished.clear()
        log.debug("team %d submitted %d actions", self.team, len(actions))
        return actions
