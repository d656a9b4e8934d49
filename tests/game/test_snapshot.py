"""Tests for exporting and restoring game state."""

from __future__ import annotations

import json

import pytest

from hexaequo.engine.errors import StateRestoreError
from hexaequo.game.snapshot import GameSnapshot, decode_snapshot
from hexaequo.game.state import EngineState
from hexaequo.game.types import ActionType, Color, EndReason, Hex, RuleSet, TurnPhase


def _played_state() -> EngineState:
    state = EngineState()
    state.choose_action(ActionType.PLACE_TILE)
    state.choose_destination(Hex(1, 1))
    return state


def _snapshot_dict(state: EngineState) -> dict:
    return state.snapshot().model_dump(mode="json")


class TestRoundTrip:
    def test_json_round_trip(self) -> None:
        state = _played_state()
        restored = EngineState.from_snapshot(state.snapshot().to_json())

        assert restored.board.signature(Color.WHITE) == state.board.signature(Color.WHITE)
        assert restored.players == state.players
        assert restored.current_player == Color.WHITE
        assert dict(restored.position_counts) == dict(state.position_counts)

    def test_cell_order_preserved(self) -> None:
        state = _played_state()
        restored = EngineState.from_snapshot(_snapshot_dict(state))
        assert [h for h, _ in restored.all_cells()] == [h for h, _ in state.all_cells()]

    def test_cells_keyed_by_coordinate(self) -> None:
        data = json.loads(EngineState().snapshot().to_json())
        keys = [key for key, _cell in data["cells"]]
        assert keys == ["0,0", "1,0", "0,1", "1,-1"]

    def test_rules_travel_with_snapshot(self) -> None:
        state = EngineState(RuleSet(discs=4, repetition_limit=5))
        restored = EngineState.from_snapshot(state.snapshot().to_json())
        assert restored.ruleset.repetition_limit == 5
        assert restored.players[Color.BLACK].discs.total == 4

    def test_without_history_starts_fresh(self) -> None:
        state = _played_state()
        snapshot = state.snapshot(include_history=False)
        assert snapshot.position_counts is None

        restored = EngineState.from_snapshot(snapshot)
        assert dict(restored.position_counts) == {restored.board.signature(Color.WHITE): 1}

    def test_finished_game_stays_finished(self) -> None:
        state = EngineState(RuleSet(repetition_limit=2))
        for src, dst in [
            (Hex(1, -1), Hex(0, 0)),
            (Hex(0, 1), Hex(1, 0)),
            (Hex(0, 0), Hex(1, -1)),
            (Hex(1, 0), Hex(0, 1)),
        ]:
            state.choose_action(ActionType.MOVE_PIECE)
            state.choose_source(src)
            state.choose_destination(dst)
        assert state.outcome.reason == EndReason.REPETITION

        restored = EngineState.from_snapshot(state.snapshot().to_json())
        assert restored.is_over
        assert restored.phase == TurnPhase.GAME_OVER
        assert restored.message == state.outcome.message


class TestChainRestore:
    def _snapshot(self) -> dict:
        colors = ["black", "white", "black", "white", "black"]
        pieces = {0: "black", 1: "white", 3: "white"}
        return {
            "cells": [
                [f"{q},0", {
                    "color": c,
                    "piece": {"type": "disc", "color": pieces[q]} if q in pieces else None,
                }]
                for q, c in enumerate(colors)
            ],
            "players": {
                color: {
                    "tiles": {"total": 9, "placed": 3},
                    "discs": {"total": 6, "placed": 2},
                    "rings": {"total": 3},
                }
                for color in ("black", "white")
            },
            "current_player": "black",
        }

    def test_chain_hex_resumes_continuation(self) -> None:
        data = self._snapshot()
        data["cells"][0][1]["piece"] = None
        data["cells"][2][1]["piece"] = {"type": "disc", "color": "black"}
        data["cells"][1][1]["piece"] = None
        data["chain_hex"] = "2,0"

        state = EngineState.from_snapshot(data)
        assert state.continuation_pending
        assert state.chain_hex == Hex(2, 0)
        assert state.legal_destinations == [Hex(4, 0)]

    def test_chain_round_trip(self) -> None:
        state = EngineState.from_snapshot(self._snapshot())
        state.choose_action(ActionType.MOVE_PIECE)
        state.choose_source(Hex(0, 0))
        state.choose_destination(Hex(2, 0))
        assert state.continuation_pending

        snapshot = state.snapshot()
        assert snapshot.chain_hex == "2,0"
        restored = EngineState.from_snapshot(snapshot.to_json())
        assert restored.continuation_pending
        assert restored.current_player == Color.BLACK
        assert restored.choose_destination(Hex(4, 0)) is None


class TestRejection:
    def test_malformed_json_leaves_state_untouched(self) -> None:
        state = _played_state()
        before = state.snapshot().to_json()

        with pytest.raises(StateRestoreError):
            state.restore("{not json")
        assert state.snapshot().to_json() == before

    def test_missing_fields(self) -> None:
        with pytest.raises(StateRestoreError):
            decode_snapshot({"cells": []})

    def test_empty_board(self) -> None:
        data = _snapshot_dict(EngineState())
        data["cells"] = []
        with pytest.raises(StateRestoreError, match="no cells"):
            decode_snapshot(data)

    def test_bad_coordinate_key(self) -> None:
        data = _snapshot_dict(EngineState())
        data["cells"][0][0] = "a,b"
        with pytest.raises(StateRestoreError, match="Invalid coordinate key"):
            decode_snapshot(data)

    def test_duplicate_cell(self) -> None:
        data = _snapshot_dict(EngineState())
        data["cells"][1][0] = data["cells"][0][0]
        with pytest.raises(StateRestoreError, match="Duplicate cell"):
            decode_snapshot(data)

    def test_missing_player(self) -> None:
        data = _snapshot_dict(EngineState())
        del data["players"]["white"]
        with pytest.raises(StateRestoreError, match="Missing resources for white"):
            decode_snapshot(data)

    def test_placed_exceeds_total(self) -> None:
        data = _snapshot_dict(EngineState())
        data["players"]["black"]["discs"]["placed"] = 7
        with pytest.raises(StateRestoreError, match="placed of 6"):
            decode_snapshot(data)

    def test_negative_count(self) -> None:
        data = _snapshot_dict(EngineState())
        data["players"]["white"]["rings"]["captured"] = -1
        with pytest.raises(StateRestoreError, match="Negative rings count"):
            decode_snapshot(data)

    def test_unknown_color(self) -> None:
        data = _snapshot_dict(EngineState())
        data["cells"][0][1]["color"] = "green"
        with pytest.raises(StateRestoreError):
            decode_snapshot(data)

    def test_chain_hex_must_hold_movers_disc(self) -> None:
        data = _snapshot_dict(EngineState())
        data["chain_hex"] = "0,1"
        with pytest.raises(StateRestoreError, match="Jump chain"):
            decode_snapshot(data)

    def test_failed_restore_keeps_game_playable(self) -> None:
        state = EngineState()
        data = _snapshot_dict(state)
        data["players"]["black"]["tiles"]["placed"] = 99
        with pytest.raises(StateRestoreError):
            state.restore(data)
        assert state.choose_action(ActionType.PLACE_TILE) is None


class TestSnapshotModel:
    def test_from_json_wraps_validation_errors(self) -> None:
        with pytest.raises(StateRestoreError):
            GameSnapshot.from_json(b"[]")

    def test_version(self) -> None:
        assert EngineState().snapshot().version == "1.0"
