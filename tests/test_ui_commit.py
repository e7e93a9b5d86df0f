import subprocess
from pathlib import Path
from unittest import mock

import pytest

from ggdiff.ui.commit import (
    CommitAction,
    CommitOutcome,
    CommitOverlay,
    CommitPhase,
    Key,
    KeyResult,
    build_commit_prompt,
    build_pr_prompt,
    execute_commit_action,
    wrap_text,
)


def editing(text="", cursor=None):
    overlay = CommitOverlay(CommitAction.COMMIT)
    overlay.append_token(text)
    overlay.finish_generation()
    if cursor is not None:
        overlay.cursor = cursor
    return overlay


def line_text(line):
    return "".join(text for text, _ in line)


def test_labels():
    assert CommitAction.COMMIT_AND_PUSH.label() == "Commit & Push"
    assert CommitAction.OPEN_PR.label() == "Open PR"


def test_needs_message():
    assert CommitAction.PUSH.needs_message() is False
    assert CommitAction.COMMIT.needs_message() is True
    assert CommitAction.COMMIT_AND_PUSH.needs_message() is True
    assert CommitAction.OPEN_PR.needs_message() is True
    assert CommitAction.COMMIT_ALL.needs_message() is True
    assert CommitAction.COMMIT_ALL_AND_PUSH.needs_message() is True


def test_initial_phase_follows_action():
    assert CommitOverlay(CommitAction.PUSH).phase is CommitPhase.EXECUTING
    assert CommitOverlay(CommitAction.COMMIT).phase is CommitPhase.GENERATING


def test_generating_only_escape_cancels():
    overlay = CommitOverlay(CommitAction.COMMIT)
    assert overlay.handle_key(Key("x")) == KeyResult.CONTINUE
    assert overlay.input == ""
    assert overlay.handle_key(Key("esc")) == KeyResult.CANCEL


def test_finish_generation_strips_fences():
    overlay = CommitOverlay(CommitAction.COMMIT)
    overlay.append_token("```text\nfix: bug")
    overlay.append_token("\n```\n")
    overlay.finish_generation()
    assert overlay.input == "fix: bug"
    assert overlay.cursor == len(overlay.input)
    assert overlay.phase is CommitPhase.EDITING


def test_generation_error_gives_empty_editor():
    overlay = CommitOverlay(CommitAction.COMMIT)
    overlay.generation_error()
    assert overlay.input == ""
    assert overlay.phase is CommitPhase.EDITING


def test_typing_and_submit():
    overlay = editing()
    for c in "hi":
        overlay.handle_key(Key(c))
    assert overlay.input == "hi"
    assert overlay.cursor == 2
    assert overlay.handle_key(Key("enter")) == KeyResult.EXECUTE
    assert overlay.phase is CommitPhase.EXECUTING


def test_enter_on_blank_input_does_nothing():
    overlay = editing()
    overlay.handle_key(Key(" "))
    assert overlay.handle_key(Key("enter")) == KeyResult.CONTINUE
    assert overlay.phase is CommitPhase.EDITING


def test_shift_enter_inserts_newline():
    overlay = editing("ab", cursor=1)
    overlay.handle_key(Key("enter", shift=True))
    assert overlay.input == "a\nb"
    assert overlay.cursor == 2


def test_backspace_and_delete():
    overlay = editing("abc", cursor=2)
    overlay.handle_key(Key("backspace"))
    assert (overlay.input, overlay.cursor) == ("ac", 1)
    overlay.handle_key(Key("delete"))
    assert (overlay.input, overlay.cursor) == ("a", 1)
    overlay.handle_key(Key("delete"))
    assert overlay.input == "a"


def test_left_right_clamped():
    overlay = editing("ab", cursor=0)
    overlay.handle_key(Key("left"))
    assert overlay.cursor == 0
    for _ in range(5):
        overlay.handle_key(Key("right"))
    assert overlay.cursor == len(overlay.input)


def test_home_end_and_ctrl_a():
    overlay = editing("one\ntwo", cursor=5)
    overlay.handle_key(Key("home"))
    assert overlay.cursor == 4
    overlay.handle_key(Key("end"))
    assert overlay.cursor == len(overlay.input)
    overlay.handle_key(Key("a", ctrl=True))
    assert overlay.cursor == 4
    assert overlay.input == "one\ntwo"


def test_up_down_keep_column():
    overlay = editing("abcd\nxy", cursor=3)
    overlay.handle_key(Key("down"))
    assert overlay.cursor == len(overlay.input)
    overlay.handle_key(Key("up"))
    assert overlay.cursor == 2
    overlay.handle_key(Key("up"))
    assert overlay.cursor == 2


def test_ctrl_g_writes_temp_file():
    overlay = editing("draft message")
    result = overlay.handle_key(Key("g", ctrl=True))
    path = Path(result.editor_path)
    try:
        assert result.kind == "open_editor"
        assert path.read_text(encoding="utf-8") == "draft message"
    finally:
        path.unlink()


def test_wrap_text_breaks_on_words():
    assert wrap_text("aaa bbb ccc", 10) == ["aaa bbb", "ccc"]
    assert wrap_text("", 20) == [""]


@pytest.mark.parametrize("width", [1, 10, 15, 40])
def test_wrap_text_invariants(width):
    text = "the quick brown fox jumps over the lazy dog again"
    wrapped = wrap_text(text, width)
    assert " ".join(wrapped) == text
    assert all(len(w) <= max(width, 10) for w in wrapped)


def test_wrap_text_keeps_blank_lines():
    assert wrap_text("a\n\nb", 20) == ["a", "", "b"]


def test_build_lines_executing():
    overlay = CommitOverlay(CommitAction.PUSH)
    lines = overlay.build_lines(60)
    assert len(lines) == 1
    assert "Pushing..." in line_text(lines[0])


def test_build_lines_cursor_inside_text():
    overlay = editing("abc", cursor=1)
    lines = overlay.build_lines(60)
    assert lines[0] == [("a", None), ("b", "cursor"), ("c", None)]


def test_build_lines_cursor_at_end():
    overlay = editing("abc")
    lines = overlay.build_lines(60)
    assert lines[0] == [("abc", None), ("█", "cursor_end")]


def test_hint_line_fills_width():
    overlay = editing("abc")
    hint = overlay.build_lines(70)[-1]
    assert len(line_text(hint)) == 70
    assert line_text(hint).endswith("submit")


def test_tick_advances_spinner():
    overlay = CommitOverlay(CommitAction.COMMIT)
    first = overlay.build_lines(60)[0][0]
    overlay.tick()
    second = overlay.build_lines(60)[0][0]
    assert first != second
    assert second[1] == "accent"


def test_generating_lines_show_partial_message():
    overlay = CommitOverlay(CommitAction.COMMIT)
    overlay.append_token("partial text")
    lines = overlay.build_lines(60)
    assert "Generating message..." in line_text(lines[0])
    assert line_text(lines[-1]) == "partial text"


def test_commit_prompt():
    prompt = build_commit_prompt("DIFF", "feat", "Be brief.")
    assert prompt.startswith("Here is a diff for a branch called `feat`.\n\nBe brief.\n\n")
    assert prompt.endswith("\n\nDIFF")


def test_pr_prompt():
    prompt = build_pr_prompt("DIFF", "LOG", "feat", None)
    assert prompt.startswith("Here is a diff and commit log for a branch called `feat`.\n\n")
    assert prompt.endswith("Diff:\nDIFF\n\nCommit log:\nLOG")


def completed(code=0, stderr=b""):
    return subprocess.CompletedProcess([], code, stdout=b"", stderr=stderr)


def test_execute_push_success(tmp_path):
    with mock.patch("ggdiff.git.repo.subprocess.run", return_value=completed()) as run:
        outcome = execute_commit_action(CommitAction.PUSH, "", tmp_path)
    assert outcome == CommitOutcome(True, "Pushed successfully")
    assert "push" in run.call_args.args[0]


def test_execute_commit_failure(tmp_path):
    failure = completed(1, b"boom")
    with mock.patch("ggdiff.git.repo.subprocess.run", return_value=failure):
        outcome = execute_commit_action(CommitAction.COMMIT_AND_PUSH, "msg", tmp_path)
    assert outcome.ok is False
    assert outcome.message == "git commit: boom"


def test_execute_open_pr_splits_title_and_body(tmp_path):
    with mock.patch("ggdiff.git.repo.subprocess.run", return_value=completed()) as run:
        outcome = execute_commit_action(
            CommitAction.OPEN_PR, " Title \n\nBody line\n", tmp_path
        )
    args = run.call_args.args[0]
    assert outcome.message == "PR created successfully"
    assert args[args.index("--title") + 1] == "Title"
    assert args[args.index("--body") + 1] == "Body line"


def test_execute_commit_all_stages_first(tmp_path):
    with mock.patch("ggdiff.git.repo.subprocess.run", return_value=completed()) as run:
        outcome = execute_commit_action(CommitAction.COMMIT_ALL, "msg", tmp_path)
    commands = [call.args[0] for call in run.call_args_list]
    assert outcome == CommitOutcome(True, "Committed all changes")
    assert "add" in commands[0]
    assert "commit" in commands[1]