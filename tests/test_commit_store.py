"""
Tests for coderoom.database.commits: commit index storage and search.
"""

import sqlite3

import pytest

from coderoom.database.connection import Database
from coderoom.database.commits import (
    replace_commit_index,
    search_commits,
    list_branch_tips,
    commit_index_stats,
    make_snippet,
)
from coderoom.database.query_builder import CommitSearchFields
from coderoom.database.repository import upsert_repo, delete_repo_by_path
from coderoom.domain.commit import BranchTip, CommitRecord, LOCAL, REMOTE
from coderoom.domain.repository import RepoMeta
from coderoom.exceptions import NotFoundError


def tip(name, time=None, kind=LOCAL):
    prefix = 'refs/heads/' if kind == LOCAL else 'refs/remotes/'
    return BranchTip(kind=kind, name=name, refname=prefix + name, tip_time=time)


def record(branch, oid, time=None, summary=None, message=None, kind=LOCAL):
    prefix = 'refs/heads/' if kind == LOCAL else 'refs/remotes/'
    return CommitRecord(
        refname=prefix + branch,
        branch_kind=kind,
        branch_name=branch,
        oid=oid,
        time=time,
        author='Author',
        email='a@example.com',
        summary=summary,
        message=message,
    )


@pytest.fixture
def indexed(db):
    upsert_repo(db, RepoMeta(path='/src/app', name='app', last_scan_ts=1))
    upsert_repo(db, RepoMeta(path='/src/lib', name='lib', last_scan_ts=1))
    return db


class TestReplaceCommitIndex:

    def test_replace_overwrites_previous_index(self, indexed):
        db = indexed
        replace_commit_index(db, '/src/app', [tip('main', 10)], [record('main', 'a1', 10, 'first')])
        replace_commit_index(db, '/src/app', [tip('dev', 20)], [record('dev', 'b1', 20, 'second')])

        assert [t.name for t in list_branch_tips(db, '/src/app')] == ['dev']
        assert search_commits(db, 'first').total == 0
        assert search_commits(db, 'second').total == 1

    def test_replace_leaves_other_repos_alone(self, indexed):
        db = indexed
        replace_commit_index(db, '/src/lib', [tip('main', 1)], [record('main', 'l1', 1, 'lib commit')])
        replace_commit_index(db, '/src/app', [tip('main', 1)], [record('main', 'a1', 1, 'app commit')])
        replace_commit_index(db, '/src/app', [], [])

        assert search_commits(db, 'commit').total == 1
        assert commit_index_stats(db) == {'repos': 1, 'branches': 1, 'commits': 1}

    def test_failed_replace_keeps_previous_index(self, indexed):
        """A failure part-way through leaves the old index intact."""
        db = indexed
        replace_commit_index(db, '/src/app', [tip('main', 10)], [record('main', 'a1', 10, 'original')])

        duplicate = record('main', 'dup', 20, 'replacement')
        with pytest.raises(sqlite3.IntegrityError):
            replace_commit_index(db, '/src/app', [tip('main', 20)], [duplicate, duplicate])

        assert [h.summary for h in search_commits(db, 'original').items] == ['original']
        assert search_commits(db, 'replacement').total == 0
        assert [t.tip_time for t in list_branch_tips(db, '/src/app')] == [10]

    def test_unindexed_repo(self, indexed):
        with pytest.raises(NotFoundError):
            replace_commit_index(indexed, '/src/missing', [], [])

    def test_same_commit_on_two_branches(self, indexed):
        db = indexed
        replace_commit_index(
            db, '/src/app',
            [tip('main', 10), tip('dev', 10)],
            [record('main', 'c1', 10, 'shared'), record('dev', 'c1', 10, 'shared')],
        )
        hits = search_commits(db, 'shared').items
        assert sorted(h.branch_name for h in hits) == ['dev', 'main']

    def test_repo_delete_cascades(self, indexed):
        db = indexed
        replace_commit_index(db, '/src/app', [tip('main', 1)], [record('main', 'a1', 1, 'x')])

        delete_repo_by_path(db, '/src/app')

        assert commit_index_stats(db) == {'repos': 0, 'branches': 0, 'commits': 0}


class TestReplaceSeenFromAnotherConnection:
    """A second connection sees the whole old index or the whole new one."""

    @staticmethod
    def snapshot(db_path):
        with Database(db_path=db_path, read_only=True) as reader:
            commits = sorted(h.oid for h in search_commits(reader, '').items)
            tips = [t.name for t in list_branch_tips(reader, '/src/app')]
        return commits, tips

    def test_reader_sees_old_index_until_commit(self, indexed, monkeypatch):
        db = indexed
        replace_commit_index(
            db, '/src/app',
            [tip('main', 10)],
            [record('main', 'a1', 10, 'old one'), record('main', 'a0', 5, 'old two')],
        )
        assert self.snapshot(db.db_path) == (['a0', 'a1'], ['main'])

        during = []
        executemany = db.executemany

        def executemany_then_read(sql, params_seq):
            cursor = executemany(sql, params_seq)
            during.append(self.snapshot(db.db_path))
            return cursor

        with monkeypatch.context() as m:
            m.setattr(db, 'executemany', executemany_then_read)
            replace_commit_index(
                db, '/src/app',
                [tip('dev', 20)],
                [record('dev', 'b1', 20, 'new one')],
            )

        # Once after the tips insert, once after the commits insert
        assert during == [(['a0', 'a1'], ['main'])] * 2
        assert self.snapshot(db.db_path) == (['b1'], ['dev'])


class TestSearchCommits:

    @pytest.fixture
    def populated(self, indexed):
        db = indexed
        replace_commit_index(
            db, '/src/app',
            [tip('main', 300), tip('origin/release', 250, kind=REMOTE)],
            [
                record('main', 'a3', 300, 'Fix race in watcher', 'Fix race in watcher\n\nDetails'),
                record('main', 'a2', 200, 'Add feature', 'Add feature\n\nfixes a race too'),
                record('main', 'a0', None, 'Fix timeless', None),
                record('origin/release', 'r1', 250, 'Fix release build', None, kind=REMOTE),
            ],
        )
        replace_commit_index(
            db, '/src/lib',
            [tip('main', 100)],
            [record('main', 'l1', 100, 'Fix lib race', None)],
        )
        return db

    def test_newest_first_nulls_last(self, populated):
        hits = search_commits(populated, 'fix').items
        assert [h.oid for h in hits] == ['a3', 'r1', 'a2', 'l1', 'a0']

    def test_summary_only(self, populated):
        fields = CommitSearchFields(summary=True, message=False)
        assert [h.oid for h in search_commits(populated, 'race', fields=fields).items] == ['a3', 'l1']

    def test_message_only(self, populated):
        fields = CommitSearchFields(summary=False, message=True)
        assert [h.oid for h in search_commits(populated, 'race', fields=fields).items] == ['a3', 'a2']

    def test_no_fields_means_both(self, populated):
        fields = CommitSearchFields(summary=False, message=False)
        assert search_commits(populated, 'race', fields=fields).total == 3

    def test_branch_filter_matches_name_or_refname(self, populated):
        by_name = search_commits(populated, 'fix', branch='release')
        by_ref = search_commits(populated, 'fix', branch='refs/remotes/')

        assert [h.oid for h in by_name.items] == ['r1']
        assert [h.oid for h in by_ref.items] == ['r1']

    def test_hits_carry_repo_identity(self, populated):
        (hit,) = search_commits(populated, 'lib race').items
        assert hit.repo_name == 'lib'
        assert hit.repo_path == '/src/lib'
        assert hit.refname == 'refs/heads/main'

    def test_pagination(self, populated):
        first = search_commits(populated, 'fix', page=1, per_page=2)
        third = search_commits(populated, 'fix', page=3, per_page=2)

        assert first.total == 5
        assert [h.oid for h in first.items] == ['a3', 'r1']
        assert [h.oid for h in third.items] == ['a0']

    def test_wildcards_literal(self, populated):
        assert search_commits(populated, '%').total == 0


class TestBranchTipsAndStats:

    def test_tips_newest_first(self, indexed):
        db = indexed
        replace_commit_index(db, '/src/app', [tip('a', 5), tip('b', None), tip('c', 50)], [])

        assert [t.name for t in list_branch_tips(db, '/src/app')] == ['c', 'a', 'b']

    def test_tips_unindexed(self, indexed):
        with pytest.raises(NotFoundError):
            list_branch_tips(indexed, '/src/missing')

    def test_stats(self, indexed):
        db = indexed
        replace_commit_index(
            db, '/src/app',
            [tip('main', 1), tip('dev', 2)],
            [record('main', 'x', 1), record('dev', 'x', 1), record('dev', 'y', 2)],
        )
        assert commit_index_stats(db) == {'repos': 1, 'branches': 2, 'commits': 3}


class TestMakeSnippet:

    def test_summary_match_short_text(self):
        assert make_snippet('Fix race', None, 'race') == 'Fix race'

    def test_message_used_when_summary_misses(self):
        assert make_snippet('Other', 'body mentions RACE here', 'race') == 'body mentions RACE here'

    def test_ellipsis_on_cut_sides(self):
        text = 'a' * 100 + 'needle' + 'b' * 100
        snippet = make_snippet(text, None, 'NEEDLE')
        assert snippet == '…' + 'a' * 60 + 'needle' + 'b' * 60 + '…'

    def test_no_leading_ellipsis_near_start(self):
        text = 'needle' + 'b' * 100
        assert make_snippet(text, None, 'needle', radius=10) == 'needle' + 'b' * 10 + '…'

    def test_no_match(self):
        assert make_snippet('abc', 'def', 'xyz') is None
        assert make_snippet(None, None, 'xyz') is None
