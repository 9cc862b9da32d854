from __future__ import annotations

import io

import pytest

from navalhub.agent.main import AgentExitStatus, parse_agent_id, parse_seed, run_agent
from navalhub.agent.runtime import AgentSession, render_boards
from navalhub.agent.strategy import SweepStrategy
from navalhub.core.errors import AgentStreamClosed, UnexpectedMessage
from navalhub.core.map_file import build_agent_map
from navalhub.core.rules import Rules

WINNING_GAME = "RULES 3,3,1,2\nYT\nOK\nHIT 1,A1\nMISS 2,C3\nYT\nOK\nSUNK 1,B1\nDONE 1\n"


def _session(hub_lines: str, agent_id: int = 1):
    reader = io.StringIO(hub_lines)
    writer = io.StringIO()
    diagnostics = io.StringIO()
    session = AgentSession(agent_id, reader=reader, writer=writer, diagnostics=diagnostics)
    return session, writer, diagnostics


def test_session_plays_a_full_game() -> None:
    session, writer, diagnostics = _session(WINNING_GAME)
    rules = session.read_rules()
    assert rules == Rules(width=3, height=3, ship_lengths=(2,))
    session.send_map(build_agent_map(["A1 E"], rules))

    result = session.play(SweepStrategy(rules))

    assert result.winner_id == 1 and not result.early
    assert result.guesses == 2
    assert writer.getvalue() == "MAP A1,E\nGUESS A1\nGUESS B1\n"
    text = diagnostics.getvalue()
    assert "HIT player 1 guessed A1" in text
    assert "MISS player 2 guessed C3" in text
    assert "SHIP SUNK player 1 guessed B1" in text
    assert text.endswith("GAME OVER - player 1 wins\n")
    assert session.agent_map is not None
    assert session.agent_map.opponent_rows() == ["**.", "...", "..."]
    assert session.agent_map.own_rows() == ["11.", "...", "../"]


def test_session_rejected_guess_moves_on_to_next_cell() -> None:
    session, writer, _ = _session("RULES 3,3,1,2\nYT\nYT\nOK\nEARLY\n")
    rules = session.read_rules()
    session.send_map(build_agent_map(["A1 E"], rules))
    result = session.play(SweepStrategy(rules))
    assert result.early
    assert writer.getvalue().splitlines()[1:] == ["GUESS A1", "GUESS B1"]


def test_session_end_of_input_mid_game_is_stream_closed() -> None:
    session, _, _ = _session("RULES 3,3,1,2\nYT\n")
    rules = session.read_rules()
    session.send_map(build_agent_map(["A1 E"], rules))
    with pytest.raises(AgentStreamClosed):
        session.play(SweepStrategy(rules))


def test_session_rejects_rules_mid_game() -> None:
    session, _, _ = _session("RULES 3,3,1,2\nRULES 3,3,1,2\n")
    rules = session.read_rules()
    session.send_map(build_agent_map(["A1 E"], rules))
    with pytest.raises(UnexpectedMessage):
        session.play(SweepStrategy(rules))


def test_session_requires_rules_first() -> None:
    session, _, _ = _session("YT\n")
    with pytest.raises(UnexpectedMessage):
        session.read_rules()


def test_render_boards_layout() -> None:
    agent_map = build_agent_map(["B2 N"], Rules(width=2, height=2, ship_lengths=(1,)))
    assert render_boards(agent_map) == "   AB\n 1 ..\n 2 .1\n===\n   AB\n 1 ..\n 2 ..\n"


def test_parse_agent_id_and_seed() -> None:
    assert parse_agent_id("1") == 1
    assert parse_agent_id(" 2 ") == 2
    assert parse_agent_id("3") is None
    assert parse_agent_id("x") is None
    assert parse_seed("1") == 1
    assert parse_seed("42") == 42
    assert parse_seed("0") is None
    assert parse_seed("-4") is None
    assert parse_seed("4x") is None


def _run(argv: list[str], hub_lines: str = "") -> tuple[AgentExitStatus, str]:
    writer = io.StringIO()
    status = run_agent(argv, reader=io.StringIO(hub_lines), writer=writer)
    return status, writer.getvalue()


def test_run_agent_validates_arguments_in_order(write_text, tmp_path) -> None:
    map_path = str(write_text("p1.map", "A1 E\n"))
    missing = str(tmp_path / "absent.map")
    assert _run([])[0] is AgentExitStatus.INCORRECT_ARG_NUMBER
    assert _run(["1", map_path])[0] is AgentExitStatus.INCORRECT_ARG_NUMBER
    assert _run(["9", missing, "x"])[0] is AgentExitStatus.INVALID_PLAYER_ID
    assert _run(["1", missing, "x"])[0] is AgentExitStatus.INVALID_MAP
    assert _run(["1", map_path, "0"])[0] is AgentExitStatus.INVALID_SEED


def test_run_agent_communication_failures(write_text) -> None:
    map_path = str(write_text("p1.map", "A1 E\n"))
    assert _run(["1", map_path, "1"], "")[0] is AgentExitStatus.COMMUNICATIONS_ERROR
    assert _run(["1", map_path, "1"], "RULES 3,3\n")[0] is AgentExitStatus.COMMUNICATIONS_ERROR
    assert _run(["1", map_path, "1"], "RULES 3,3,1,2\nBOGUS\n")[0] is (
        AgentExitStatus.COMMUNICATIONS_ERROR
    )


def test_run_agent_checks_map_against_received_rules(write_text) -> None:
    map_path = str(write_text("p1.map", "C1 E\n"))
    status, output = _run(["1", map_path, "1"], "RULES 3,3,1,2\n")
    assert status is AgentExitStatus.INVALID_MAP
    assert output == ""


def test_run_agent_plays_to_game_over(write_text, monkeypatch) -> None:
    monkeypatch.setenv("NAVALHUB_AGENT_STRATEGY", "no-such-strategy")
    map_path = str(write_text("p1.map", "# fleet\nA1 E\nC3 N\n"))
    status, output = _run(["1", map_path, "5"], WINNING_GAME)
    assert status is AgentExitStatus.GAME_OVER
    assert output == "MAP A1,E\nGUESS A1\nGUESS B1\n"


def test_agent_exit_messages() -> None:
    assert AgentExitStatus.GAME_OVER.message is None
    assert AgentExitStatus.INCORRECT_ARG_NUMBER.message == "Usage: agent id map seed"
    assert AgentExitStatus.INVALID_PLAYER_ID.message == "Invalid player id"
    assert AgentExitStatus.INVALID_MAP.message == "Invalid map file"
    assert AgentExitStatus.INVALID_SEED.message == "Invalid seed"
    assert AgentExitStatus.COMMUNICATIONS_ERROR.message == "Communications error"
