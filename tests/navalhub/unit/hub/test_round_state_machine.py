from __future__ import annotations

import pytest

from navalhub.core.round_config import AgentEntry, RoundEntry
from navalhub.core.rules import Rules
from navalhub.hub.round import Round, RoundState
from tests.navalhub.helpers import FakeChannel, FakeSpawner


def _entry(round_number: int = 0, p1: str = "p1", p2: str = "p2") -> RoundEntry:
    return RoundEntry(
        round_number=round_number,
        player1=AgentEntry(executable=p1, map_file="p1.map"),
        player2=AgentEntry(executable=p2, map_file="p2.map"),
    )


def _round_with(
    rules: Rules,
    p1: list[str],
    p2: list[str],
    commentary: list[str] | None = None,
) -> tuple[Round, FakeChannel, FakeChannel]:
    spawner = FakeSpawner({"p1": p1, "p2": p2})
    round_ = Round.from_entry(
        _entry(), rules, commentary=commentary.append if commentary is not None else None
    )
    assert round_.spawn(spawner)
    one, two = spawner.channels
    return round_, one, two


def _run(round_: Round) -> None:
    while round_.step():
        pass


def test_spawn_passes_id_map_and_seed(small_rules: Rules) -> None:
    spawner = FakeSpawner({"p1": [], "p2": []})
    round_ = Round.from_entry(_entry(round_number=3), small_rules)
    assert round_.spawn(spawner)
    assert round_.state is RoundState.SPAWNED
    assert spawner.calls == [
        ("p1", ["1", "p1.map", "7"], "round3/player1"),
        ("p2", ["2", "p2.map", "8"], "round3/player2"),
    ]


def test_full_game_opponent_sinks_ship_and_wins(small_rules: Rules) -> None:
    commentary: list[str] = []
    round_, one, two = _round_with(
        small_rules,
        ["MAP A1,E", "GUESS C3", "GUESS C2"],
        ["MAP A1,E", "GUESS A1", "GUESS B1"],
        commentary,
    )

    assert round_.step() and round_.state is RoundState.HANDSHAKE
    assert round_.step() and round_.state is RoundState.TURN
    assert round_.reached_play
    _run(round_)

    assert round_.state is RoundState.DONE
    assert round_.completed and round_.valid
    assert round_.winner_id == 2
    assert one.sent == [
        "RULES 3,3,1,2",
        "YT",
        "OK",
        "MISS 1,C3",
        "HIT 2,A1",
        "YT",
        "OK",
        "MISS 1,C2",
        "SUNK 2,B1",
        "DONE 2",
    ]
    assert two.sent == [
        "RULES 3,3,1,2",
        "MISS 1,C3",
        "YT",
        "OK",
        "HIT 2,A1",
        "MISS 1,C2",
        "YT",
        "OK",
        "SUNK 2,B1",
        "DONE 2",
    ]
    assert commentary == [
        "MISS player 1 guessed C3",
        "HIT player 2 guessed A1",
        "MISS player 1 guessed C2",
        "SHIP SUNK player 2 guessed B1",
        "GAME OVER - player 2 wins",
    ]
    assert one.closed and two.closed
    assert not round_.step()


def test_out_of_bounds_guess_is_reprompted(small_rules: Rules) -> None:
    round_, one, _ = _round_with(
        small_rules,
        ["MAP A1,E", "GUESS Z99", "GUESS C3"],
        ["MAP A1,E"],
    )
    round_.step()
    round_.step()
    round_.step()
    assert round_.state is RoundState.TURN
    assert round_.active_id == 2
    assert one.sent == ["RULES 3,3,1,2", "YT", "YT", "OK", "MISS 1,C3"]


@pytest.mark.parametrize("bad_guess", ["GUESS 7", "GUESS a1"])
def test_malformed_coordinate_is_reprompted(small_rules: Rules, bad_guess: str) -> None:
    round_, one, _ = _round_with(small_rules, ["MAP A1,E", bad_guess, "GUESS C3"], ["MAP A1,E"])
    for _ in range(3):
        round_.step()
    assert round_.valid
    assert one.sent[1:4] == ["YT", "YT", "OK"]


def test_repeated_guess_is_rejected_without_ending_round(small_rules: Rules) -> None:
    round_, one, _ = _round_with(
        small_rules,
        ["MAP A1,E", "GUESS C3", "GUESS C3", "GUESS C2"],
        ["MAP A1,E", "GUESS C1"],
    )
    for _ in range(5):
        round_.step()
    assert round_.valid
    assert [coord.token for coord in round_.player1.guesses] == ["C3", "C2"]
    assert one.sent.count("OK") == 2
    assert one.sent[-4:] == ["YT", "YT", "OK", "MISS 1,C2"]


def test_same_cell_may_be_guessed_by_both_players(small_rules: Rules) -> None:
    round_, _, two = _round_with(
        small_rules,
        ["MAP A1,E", "GUESS C3"],
        ["MAP A1,E", "GUESS C3"],
    )
    for _ in range(4):
        round_.step()
    assert round_.valid
    assert two.sent[-1] == "MISS 2,C3"


def test_unknown_message_invalidates_round(small_rules: Rules) -> None:
    commentary: list[str] = []
    round_, one, two = _round_with(
        small_rules, ["MAP A1,E", "HELLO"], ["MAP A1,E"], commentary
    )
    for _ in range(3):
        round_.step()
    assert round_.state is RoundState.INVALID
    assert not round_.valid and not round_.completed
    assert "unknown message type" in (round_.failure_reason or "")
    assert one.sent[-1] == "EARLY" and two.sent[-1] == "EARLY"
    assert one.killed and two.killed
    assert commentary[-1].startswith("ROUND 0 invalid: ")
    assert not round_.step()


def test_non_guess_message_during_turn_invalidates_round(small_rules: Rules) -> None:
    round_, _, _ = _round_with(small_rules, ["MAP A1,E", "MAP A1,E"], ["MAP A1,E"])
    for _ in range(3):
        round_.step()
    assert round_.state is RoundState.INVALID
    assert "instead of GUESS" in (round_.failure_reason or "")


def test_end_of_stream_invalidates_round(small_rules: Rules) -> None:
    round_, one, two = _round_with(small_rules, ["MAP A1,E"], ["MAP A1,E"])
    for _ in range(3):
        round_.step()
    assert round_.state is RoundState.INVALID
    assert one.killed and two.killed
    assert round_.reached_play


def test_invalid_map_placement_invalidates_during_handshake(small_rules: Rules) -> None:
    round_, _, two = _round_with(small_rules, ["MAP C1,E"], ["MAP A1,E"])
    round_.step()
    assert round_.state is RoundState.INVALID
    assert not round_.reached_play
    # Player 2 never got RULES, only the teardown notice.
    assert two.sent == ["EARLY"]


def test_map_entries_past_fleet_size_are_ignored(small_rules: Rules) -> None:
    round_, one, _ = _round_with(small_rules, ["MAP A1,E:C3,N"], ["MAP A1,E"])
    round_.step()
    assert round_.state is RoundState.HANDSHAKE
    assert one.sent == ["RULES 3,3,1,2"]
    assert round_.player1.agent_map is not None
    assert len(round_.player1.agent_map.ships) == 1
    assert round_.player1.agent_map.own_rows() == ["11.", "...", "..."]


def test_malformed_extra_map_entry_still_invalidates(small_rules: Rules) -> None:
    round_, _, _ = _round_with(small_rules, ["MAP A1,E:C3,Q"], ["MAP A1,E"])
    round_.step()
    assert round_.state is RoundState.INVALID


def test_short_map_invalidates_during_handshake() -> None:
    rules = Rules(width=3, height=3, ship_lengths=(1, 1))
    round_, _, _ = _round_with(rules, ["MAP A1,E"], ["MAP A1,E:B2,E"])
    round_.step()
    assert round_.state is RoundState.INVALID
    assert "expected 2 ships, got 1" in (round_.failure_reason or "")


def test_handshake_requires_map(small_rules: Rules) -> None:
    round_, _, _ = _round_with(small_rules, ["GUESS A1"], [])
    round_.step()
    assert round_.state is RoundState.INVALID
    assert "instead of MAP" in (round_.failure_reason or "")


def test_broken_pipe_on_write_invalidates(small_rules: Rules) -> None:
    round_, one, two = _round_with(small_rules, ["MAP A1,E"], ["MAP A1,E"])
    round_.step()
    two.writable = False
    round_.step()
    assert round_.state is RoundState.INVALID
    assert one.sent[-1] == "EARLY"
    assert two.killed


def test_spawn_failure_invalidates_and_kills_started_agent(small_rules: Rules) -> None:
    commentary: list[str] = []
    spawner = FakeSpawner({"p1": []})
    round_ = Round.from_entry(_entry(), small_rules, commentary=commentary.append)
    assert not round_.spawn(spawner)
    assert round_.state is RoundState.INVALID
    assert spawner.channels[0].killed
    assert spawner.channels[0].sent == ["EARLY"]
    assert "cannot start" in commentary[0]


def test_invalidate_is_idempotent_and_done_is_terminal(small_rules: Rules) -> None:
    round_, one, _ = _round_with(
        small_rules,
        ["MAP A1,E", "GUESS A1", "GUESS B1"],
        ["MAP A1,E", "GUESS C3"],
    )
    _run(round_)
    assert round_.completed and round_.winner_id == 1
    round_.invalidate("late failure")
    assert round_.completed
    assert round_.failure_reason is None


def test_spawn_twice_is_a_programming_error(small_rules: Rules) -> None:
    round_, _, _ = _round_with(small_rules, [], [])
    with pytest.raises(RuntimeError):
        round_.spawn(FakeSpawner({"p1": [], "p2": []}))


def test_turn_before_handshake_is_a_programming_error(small_rules: Rules) -> None:
    round_, one, _ = _round_with(small_rules, ["GUESS A1"], [])
    round_.state = RoundState.TURN
    with pytest.raises(RuntimeError, match="handshake"):
        round_.step()
    assert one.sent == []
