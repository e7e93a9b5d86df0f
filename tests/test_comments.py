import json

import pytest

from ggdiff.github.types import ReviewComment, User
from ggdiff.review.comments import (
    CommentAuthor,
    CommentStore,
    LocalComment,
    TextBlock,
    ToolEntry,
    ToolGroupBlock,
    gh_id,
    is_gh_id,
    parse_gh_id,
)


def make_comment(id, body, author, reply_to=None, path="file.rs", created_at="1000"):
    return LocalComment(
        id=id,
        body=body,
        author=author,
        in_reply_to_id=reply_to,
        path=path,
        line=10,
        side="RIGHT",
        resolved=False,
        created_at=created_at,
        blocks=[TextBlock(body)],
    )


def make_review_comment(id, body, path, line, reply_to=None):
    return ReviewComment(
        id=id,
        user=User("octocat"),
        body=body,
        path=path,
        line=line,
        original_line=None,
        side="RIGHT",
        in_reply_to_id=reply_to,
        created_at="2024-01-01T00:00:00Z",
        updated_at=None,
    )


@pytest.fixture
def store(tmp_path):
    return CommentStore("test", "branch", directory=tmp_path)


def test_add_and_retrieve(store):
    store.add(make_comment("c1", "hello", CommentAuthor.you()))
    assert len(store.comments) == 1
    assert store.comments[0].body == "hello"


def test_thread_comments_groups_replies(store):
    store.comments.append(make_comment("c1", "root", CommentAuthor.you()))
    store.comments.append(make_comment("c2", "reply", CommentAuthor.copilot(), "c1"))
    thread = store.thread_comments("c1")
    assert [c.id for c in thread] == ["c1", "c2"]


def test_thread_comments_includes_nested_replies(store):
    store.comments.append(make_comment("c1", "root", CommentAuthor.you()))
    store.comments.append(make_comment("c2", "user reply", CommentAuthor.you(), "c1"))
    store.comments.append(make_comment("c3", "copilot reply", CommentAuthor.copilot(), "c2"))
    thread = store.thread_comments("c1")
    assert [c.id for c in thread] == ["c1", "c2", "c3"]


def test_thread_comments_sorted_by_created_at(store):
    store.comments.append(make_comment("c2", "late", CommentAuthor.you(), "c1", created_at="2000"))
    store.comments.append(make_comment("c1", "root", CommentAuthor.you(), created_at="1000"))
    assert [c.id for c in store.thread_comments("c1")] == ["c1", "c2"]


def test_find_thread_root_follows_chain(store):
    store.comments.append(make_comment("c1", "root", CommentAuthor.you()))
    store.comments.append(make_comment("c2", "reply", CommentAuthor.copilot(), "c1"))
    assert store.find_thread_root("c2").id == "c1"
    assert store.find_thread_root("c1").id == "c1"


def test_find_thread_root_missing(store):
    assert store.find_thread_root("nope") is None


def test_resolve_marks_direct_replies(store):
    store.comments.append(make_comment("c1", "root", CommentAuthor.you()))
    store.comments.append(make_comment("c2", "reply", CommentAuthor.copilot(), "c1"))
    store.resolve("c1", True)
    assert all(c.resolved for c in store.comments)


def test_resolve_marks_nested_replies(store):
    store.comments.append(make_comment("c1", "root", CommentAuthor.you()))
    store.comments.append(make_comment("c2", "user reply", CommentAuthor.you(), "c1"))
    store.comments.append(make_comment("c3", "copilot reply", CommentAuthor.copilot(), "c2"))
    store.resolve("c1", True)
    assert len(store.comments) == 3
    assert all(c.resolved for c in store.comments)


def test_resolve_deeply_nested_thread(store):
    store.comments.append(make_comment("c1", "root", CommentAuthor.you()))
    store.comments.append(make_comment("c2", "reply 1", CommentAuthor.copilot(), "c1"))
    store.comments.append(make_comment("c3", "reply 2", CommentAuthor.you(), "c2"))
    store.comments.append(make_comment("c4", "reply 3", CommentAuthor.copilot(), "c3"))
    store.comments.append(make_comment("c5", "reply 4", CommentAuthor.you(), "c4"))
    store.resolve("c1", True)
    assert len(store.comments) == 5
    assert all(c.resolved for c in store.comments)


def test_resolve_leaves_other_threads(store):
    store.comments.append(make_comment("c1", "root", CommentAuthor.you()))
    store.comments.append(make_comment("d1", "other", CommentAuthor.you()))
    store.resolve("c1", True)
    assert [c.resolved for c in store.comments] == [True, False]
    store.resolve("c1", False)
    assert not store.comments[0].resolved


def test_import_gh_converts_comments(store):
    store.import_gh(
        [
            make_review_comment(100, "looks good", "src/main.rs", 42),
            make_review_comment(101, "thanks", "src/main.rs", 42, 100),
        ]
    )
    assert len(store.comments) == 2
    assert store.comments[0].id == "gh-100"
    assert store.comments[0].path == "src/main.rs"
    assert store.comments[0].line == 42
    assert store.comments[0].author == CommentAuthor.github("octocat")
    assert store.comments[1].id == "gh-101"
    assert store.comments[1].in_reply_to_id == "gh-100"


def test_import_gh_preserves_local_comments(store):
    store.comments.append(make_comment("local-1", "my note", CommentAuthor.you()))
    store.import_gh([make_review_comment(200, "nit", "lib.rs", 10)])
    assert len(store.comments) == 2
    assert store.comments[0].id == "local-1"
    assert store.comments[1].id == "gh-200"


def test_import_gh_replaces_previous_gh_imports(store):
    store.comments.append(make_comment("local-1", "my note", CommentAuthor.you()))
    store.import_gh([make_review_comment(100, "old", "a.rs", 1)])
    assert len(store.comments) == 2
    store.import_gh(
        [
            make_review_comment(100, "updated", "a.rs", 1),
            make_review_comment(101, "new", "b.rs", 5),
        ]
    )
    assert len(store.comments) == 3
    assert store.comments[0].id == "local-1"
    assert store.comments[1].body == "updated"
    assert store.comments[2].id == "gh-101"


def test_import_gh_threading_works(store):
    store.import_gh(
        [
            make_review_comment(300, "root", "x.rs", 10),
            make_review_comment(301, "reply", "x.rs", 10, 300),
        ]
    )
    thread = store.thread_comments("gh-300")
    assert [c.id for c in thread] == ["gh-300", "gh-301"]
    assert store.find_thread_root("gh-301").id == "gh-300"


def test_import_gh_falls_back_to_original_line_and_updated_at(store):
    comment = ReviewComment(
        id=5,
        user=User("octocat"),
        body="b",
        path="p.rs",
        line=None,
        original_line=7,
        side=None,
        in_reply_to_id=None,
        created_at="2024-01-01T00:00:00Z",
        updated_at="2024-02-01T00:00:00Z",
    )
    store.import_gh([comment])
    local = store.comments[0]
    assert local.line == 7
    assert local.side == "RIGHT"
    assert local.created_at == "2024-02-01T00:00:00Z"
    assert local.blocks == [TextBlock("b")]


def test_gh_id_helpers():
    assert gh_id(42) == "gh-42"
    assert is_gh_id("gh-42")
    assert not is_gh_id("local-1")
    assert parse_gh_id("gh-42") == 42
    assert parse_gh_id("local-1") is None
    assert parse_gh_id("gh-x") is None
    assert parse_gh_id("gh--1") is None


def test_thread_has_copilot_comment(store):
    store.comments.append(make_comment("c1", "root", CommentAuthor.you()))
    store.comments.append(make_comment("c2", "reply", CommentAuthor.copilot(), "c1"))
    store.comments.append(make_comment("d1", "alone", CommentAuthor.you()))
    assert store.thread_has_copilot_comment("c1")
    assert not store.thread_has_copilot_comment("d1")


def test_root_threads_and_counts(store):
    store.comments.append(make_comment("c1", "root", CommentAuthor.you(), path="a.rs"))
    store.comments.append(make_comment("c2", "reply", CommentAuthor.you(), "c1", path="a.rs"))
    store.comments.append(make_comment("c3", "root2", CommentAuthor.you(), path="a.rs"))
    store.comments.append(make_comment("d1", "other", CommentAuthor.you(), path="b.rs"))
    resolved = make_comment("e1", "done", CommentAuthor.you(), path="b.rs")
    resolved.resolved = True
    store.comments.append(resolved)
    assert [c.id for c in store.root_threads_for_file("a.rs")] == ["c1", "c3"]
    assert store.thread_counts_by_file() == {"a.rs": 2, "b.rs": 1}


def test_save_writes_file_named_after_repo_and_branch(tmp_path):
    store = CommentStore("/home/dev/repo", "feat/x", directory=tmp_path)
    store.add(make_comment("c1", "hello", CommentAuthor.github("octocat")))
    path = tmp_path / "comments-_home_dev_repo-feat_x.json"
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data[0]["author"] == {"GitHub": "octocat"}
    assert data[0]["blocks"] == [{"type": "Text", "content": "hello"}]
    assert [LocalComment.from_dict(d) for d in data] == store.comments


def test_local_comment_round_trip_with_tool_group():
    comment = make_comment("c9", "text", CommentAuthor.copilot())
    comment.blocks.append(
        ToolGroupBlock("Searching", [ToolEntry("grep", "pattern: x", None, True)])
    )
    data = comment.to_dict()
    assert data["author"] == "Copilot"
    assert data["blocks"][1]["type"] == "ToolGroup"
    assert LocalComment.from_dict(data) == comment


def test_from_dict_rejects_unknown_author():
    data = make_comment("c1", "x", CommentAuthor.you()).to_dict()
    data["author"] = "Someone"
    with pytest.raises(ValueError):
        LocalComment.from_dict(data)