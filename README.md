# ggdiff

Building blocks for reviewing and staging Git changes from the terminal, with
GitHub pull request review comments alongside. Everything is a library: you
call the functions and classes from your own code.

## What it does

- **Diffs** – `ggdiff.git.diff.diff(directory, mode, base_branch="")` runs
  `git diff` in one of three `DiffMode`s: `WORKING` (shown as "Unstaged"; untracked
  files are appended as new files), `STAGED`, or `BRANCH` (against the merge base
  with `base_branch`, or the default branch when it is empty).
  `parse_diff_to_files` splits diff text into `PullRequestFile` records with
  status (`added`, `removed`, `renamed`, `modified`), patch, additions and
  deletions.
- **Partial staging** – `ggdiff.git.stage.stage_lines` and `stage_hunk` stage, or
  with `unstage=True` unstage, selected lines or the hunk holding one line, by
  piping a patch into `git apply --cached`. The patches come from
  `build_partial_patch` and `build_hunk_patch`, which work on text alone.
  `stage_all` runs `git add -A`.
- **Repository facts** – `ggdiff.git.repo` gives `repo_root`, `current_branch`,
  `has_commits`, `default_branch`, `default_branch_short`, `merge_base`,
  `resolve_merge_base`, `local_branches`, `untracked_files`, `file_content`,
  `file_content_at_ref`, `repo_owner_and_name` and `parse_remote_url`. Failures
  raise `GitError`.
- **Commits and pull requests** – `ggdiff.git.commit` has `commit`, `push`
  (`git push -u origin HEAD`), `create_pr`, the checks `has_staged_changes`,
  `has_unstaged_changes`, `has_unpushed_commits`, `has_open_pr`, and the text
  helpers `staged_diff`, `working_diff`, `branch_diff` and `branch_log`.
- **Watching** – `ggdiff.git.watcher.RepoWatcher(repo_root, send, debounce=0.5)`
  watches the tree and, after a quiet period, calls `send` with `FilesChanged()`
  for edits or commits and `BranchChanged(branch)` when `.git/HEAD` moves. Hidden
  and editor temporary files, `.git` internals and directories such as
  `node_modules`, `build` or `target` are ignored. Use it as a context manager or
  call `start()` and `stop()`; `classify_path` and `read_branch` are usable alone.
- **Review comments** – `ggdiff.review.comments.CommentStore(repo_root, branch,
  directory=None)` holds `LocalComment`s, builds threads including nested replies
  (`thread_comments`, `find_thread_root`), resolves whole threads, counts open
  threads per file and replaces earlier GitHub imports with `import_gh`. GitHub
  comments get IDs of the form `gh-<number>` (`gh_id`, `is_gh_id`,
  `parse_gh_id`). `add`, `resolve` and `save` write the comments as JSON into
  `directory`, or into the `ghq` folder of the user cache directory.
- **GitHub** – `ggdiff.github.client.Client` fetches the authenticated user, the
  open pull request for a branch and a pull request's review comments, and posts
  new comments and replies; errors raise `GitHubError`.
  `ggdiff.github.cached.CachedClient` wraps it and keeps review comments for 30
  seconds, drops them when you post, and `gc()` evicts entries unused for five
  minutes. `TtlCache` is the cache it uses. Response data is parsed into the
  dataclasses of `ggdiff.github.types`.
- **File tree** – `ggdiff.ui.file_tree.build_file_tree` turns a flat file list
  into `FileTreeEntry` rows: sorted directories first, single-child chains merged
  (`a/b/c/`), each directory marked `added` or `removed` when all its files are,
  otherwise `modified`.
- **Editing state** – `ggdiff.ui.composing.ComposingState` is a multi-line text
  field with cursor movement for writing a comment or a reply (`ReplyMode.COPILOT`
  or `ReplyMode.GITHUB`). `ggdiff.ui.commit.CommitOverlay` takes a `CommitAction`
  through generating, editing and executing phases, reacts to `Key` presses with a
  `KeyResult`, and lays out its content as styled spans with `build_lines`.
  `execute_commit_action` runs the action and returns a `CommitOutcome`;
  `build_commit_prompt` and `build_pr_prompt` write prompts for a text generator.
- **Terminal palette** – `ggdiff.terminal.palette.query_terminal_colors` asks the
  terminal for its 16 ANSI colours with OSC 4 (through tmux passthrough when
  `TMUX` is set) and caches the answer for a day. `Palette`,
  `parse_osc_responses` and `strip_dcs_wrappers` parse replies on their own.
- **Agent interface** – `ggdiff.agent.AgentRunner` is the abstract interface for a
  background coding agent, and `AgentEvent` with `EventKind` and its payload
  classes describes what such an agent streams back.

## Examples

Split a diff into files and show them as a tree:

```python
from ggdiff.git.diff import parse_diff_to_files
from ggdiff.ui.file_tree import build_file_tree

raw = """diff --git a/src/app.py b/src/app.py
--- a/src/app.py
+++ b/src/app.py
@@ -1,2 +1,2 @@
-print("hi")
+print("hello")
 done()
"""

files = parse_diff_to_files(raw)
for entry in build_file_tree(files):
    print("  " * entry.depth + entry.display, entry.status)
```

Build a patch that stages only some added lines:

```python
from ggdiff.git.stage import build_partial_patch

patch = build_partial_patch("src/app.py", "modified", files[0].patch, [1], [])
```

Work out owner and repository from a remote URL:

```python
from ggdiff.git.repo import parse_remote_url

owner, repo = parse_remote_url("https://github.com/octocat/hello-world.git")
```

Watch a repository:

```python
from ggdiff.git.watcher import RepoWatcher

with RepoWatcher(".", print):
    input("edit some files, then press enter\n")
```

Parse a colour reply from the terminal:

```python
from ggdiff.terminal.palette import Palette

palette = Palette()
palette.parse_osc4_response("4;1;rgb:ff/00/88")
```

## Configuration

`ggdiff.config.Config.load()` reads `config.yaml` from `$XDG_CONFIG_HOME/gg`,
or from `~/.config/gg` when that variable is unset (`config_dir`, `config_path`).
`Config.load_from(path)` reads a given file. Recognised keys:

| key                       | default | notes                  |
|---------------------------|---------|------------------------|
| `help_mode`               | unset   |                        |
| `commit_prompt`           | unset   | extra commit guidance  |
| `pr_prompt`               | unset   | extra PR guidance      |
| `comment_panel_min_width` | 40      | never lower than 40    |
| `diff_min_width`          | 80      | never lower than 80    |
| `scroll_margin`           | 5       |                        |

If the file is missing or cannot be parsed, or a value has the wrong type, the
defaults apply.

## GitHub access

`Client.from_environment()` takes its token from `GITHUB_TOKEN`, then from
`GH_TOKEN`, and as a last resort from `gh auth token`; without one it raises
`GitHubError`. Creating pull requests, checking for an open one and looking up
the default branch for `branch_diff` and `branch_log` also go through `gh`.

## What it does not do

- There is no command to run and no interactive screen. The package supplies
  state and layout (`CommitOverlay.build_lines` returns plain spans) but draws
  nothing and reads no keys itself.
- `AgentRunner` is only an interface; no agent that answers prompts is included.
- Only the first 100 review comments of a pull request are fetched.

## Requirements

Python 3.10 or later. `git` must be on the `PATH`. `gh` is needed for the pull
request helpers. The palette query works on POSIX terminals only.

Install the test dependencies with `pip install -e .[test]` and run `pytest`.