"""
End-to-end tests for the coderoom command line.

Each test runs against its own config file and database (see conftest)
and real git repositories built on disk.
"""

import json

import pytest
from click.testing import CliRunner

from coderoom.cli import cli
from coderoom.exit_codes import CONFIG_ERROR, DATA_ERROR, GIT_ERROR, NOT_FOUND, USAGE_ERROR


def jsonl(result):
    """Parse the JSON lines of a command's stdout."""
    return [json.loads(line) for line in result.stdout.splitlines() if line.startswith('{')]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def src(tmp_path, repo_builder):
    """src/parser (two branches), src/webapp and an ignored vendored repo."""
    root = tmp_path / 'src'
    parser = repo_builder(root / 'parser')
    first = parser.commit("Add tokenizer", when=1000)
    parser.commit("Fix race in tokenizer\n\nThe lexer shared state.", when=2000)
    parser.commit("Start experiment", when=3000, ref='refs/heads/experiment', parents=[first])
    (root / 'parser' / 'README.md').write_text("Fast parser for config files\n")
    webapp = repo_builder(root / 'webapp')
    webapp.commit("Initial webapp", when=1500)
    repo_builder(root / 'node_modules' / 'leftpad')
    return root.resolve()


@pytest.fixture
def scanned(runner, src):
    result = runner.invoke(cli, ['scan', '--root', str(src)])
    assert result.exit_code == 0, result.output
    return src


class TestInitAndInfo:

    def test_init_creates_config_and_database(self, runner, isolated_env):
        result = runner.invoke(cli, ['init'])

        assert result.exit_code == 0, result.output
        (record,) = jsonl(result)
        assert record['config'] == str(isolated_env['config'])
        assert record['database'] == str(isolated_env['db'])
        assert record['roots'] == []
        assert isolated_env['config'].exists()
        assert isolated_env['db'].exists()

    def test_init_reset_requires_confirmation(self, runner, scanned):
        result = runner.invoke(cli, ['init', '--reset'], input='n\n')
        assert result.exit_code != 0
        assert len(jsonl(runner.invoke(cli, ['list']))) == 3

    def test_init_reset(self, runner, scanned):
        result = runner.invoke(cli, ['init', '--reset'], input='y\n')

        assert result.exit_code == 0, result.output
        (summary,) = jsonl(runner.invoke(cli, ['list']))
        assert summary['total'] == 0

    def test_info(self, runner, scanned):
        result = runner.invoke(cli, ['info'])

        assert result.exit_code == 0, result.output
        (info,) = jsonl(result)
        assert info['exists'] is True
        assert info['indexed_commit_repos'] == 0

    def test_version(self, runner):
        result = runner.invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert 'version' in result.output


class TestScan:

    def test_scan_reports_and_remembers_root(self, runner, src):
        result = runner.invoke(cli, ['scan', '--root', str(src)])

        assert result.exit_code == 0, result.output
        assert jsonl(result) == [{'roots': [str(src)], 'indexed': 2, 'pruned': 0}]
        roots = jsonl(runner.invoke(cli, ['roots', 'list']))
        assert roots == [{'root': str(src)}]

    def test_scan_missing_root_is_usage_error(self, runner, tmp_path):
        result = runner.invoke(cli, ['scan', '--root', str(tmp_path / 'missing')])
        assert result.exit_code == USAGE_ERROR

    def test_scan_all_without_roots(self, runner):
        result = runner.invoke(cli, ['scan-all'])

        assert result.exit_code == CONFIG_ERROR
        (error,) = jsonl(result)
        assert error['type'] == 'NoRootsConfiguredError'
        assert error['exit_code'] == CONFIG_ERROR

    def test_scan_all_uses_configured_roots(self, runner, src):
        assert runner.invoke(cli, ['roots', 'add', str(src)]).exit_code == 0

        result = runner.invoke(cli, ['scan-all'])

        assert result.exit_code == 0, result.output
        assert jsonl(result)[0]['indexed'] == 2

    def test_scan_prune(self, runner, scanned):
        import shutil
        shutil.rmtree(scanned / 'webapp')

        result = runner.invoke(cli, ['scan', '--root', str(scanned), '--prune'])

        assert jsonl(result)[0]['pruned'] == 1

    def test_prune_command(self, runner, scanned):
        import shutil
        shutil.rmtree(scanned / 'webapp')

        result = runner.invoke(cli, ['prune'])

        assert result.exit_code == 0, result.output
        assert jsonl(result) == [{'pruned': 1, 'total_repos': 1}]

    def test_scan_pretty(self, runner, src):
        result = runner.invoke(cli, ['scan', '--root', str(src), '--pretty'])
        assert result.exit_code == 0, result.output
        assert jsonl(result) == []


class TestListAndSearch:

    def test_list_items_then_totals(self, runner, scanned):
        result = runner.invoke(cli, ['list'])

        assert result.exit_code == 0, result.output
        *items, summary = jsonl(result)
        assert [i['name'] for i in items] == ['parser', 'webapp']
        assert items[0]['path'] == str(scanned / 'parser')
        assert items[0]['default_branch'] == 'main'
        assert items[0]['tags'] == []
        assert summary == {'total': 2, 'page': 1, 'per_page': 25, 'pages': 1}

    def test_list_paging(self, runner, scanned):
        *items, summary = jsonl(runner.invoke(cli, ['list', '--page', '2', '--per-page', '1']))
        assert [i['name'] for i in items] == ['webapp']
        assert summary['pages'] == 2

    def test_list_recent_after_open(self, runner, scanned):
        runner.invoke(cli, ['open', 'webapp'])

        *items, _ = jsonl(runner.invoke(cli, ['list', '--recent']))

        assert [i['name'] for i in items] == ['webapp', 'parser']

    def test_list_pretty(self, runner, scanned):
        result = runner.invoke(cli, ['list', '--pretty'])
        assert result.exit_code == 0, result.output
        assert 'parser' in result.output

    def test_search_readme_with_matched_fields(self, runner, scanned):
        *items, summary = jsonl(runner.invoke(cli, ['search', 'config files']))

        assert summary['total'] == 1
        assert items[0]['name'] == 'parser'
        assert items[0]['matched'] == ['readme']

    def test_search_restricted_to_name(self, runner, scanned):
        *items, summary = jsonl(runner.invoke(cli, ['search', 'config', '--in-name']))
        assert items == []
        assert summary['total'] == 0

    def test_open_prints_path(self, runner, scanned):
        result = runner.invoke(cli, ['open', 'pars'])

        assert result.exit_code == 0, result.output
        assert result.stdout.strip().splitlines()[-1] == str(scanned / 'parser')

    def test_open_unknown(self, runner, scanned):
        result = runner.invoke(cli, ['open', 'nothing-here'])

        assert result.exit_code == NOT_FOUND
        assert jsonl(result)[0]['type'] == 'NotFoundError'


class TestTags:

    def test_add_list_remove(self, runner, scanned):
        added = runner.invoke(cli, ['tag', 'add', '--repo', 'parser', 'work'])
        assert jsonl(added) == [{'path': str(scanned / 'parser'), 'tag': 'work', 'added': True}]
        runner.invoke(cli, ['tag', 'add', '--repo', str(scanned / 'webapp'), 'work'])

        assert jsonl(runner.invoke(cli, ['tag', 'list'])) == [{'name': 'work', 'count': 2}]
        assert jsonl(runner.invoke(cli, ['tag', 'list', '--repo', 'parser'])) == [
            {'path': str(scanned / 'parser'), 'tag': 'work'}
        ]
        *items, _ = jsonl(runner.invoke(cli, ['list', '--tag', 'work']))
        assert len(items) == 2

        removed = runner.invoke(cli, ['tag', 'remove', '--repo', 'parser', 'work'])
        assert jsonl(removed)[0]['removed'] is True
        assert jsonl(runner.invoke(cli, ['tag', 'list'])) == [{'name': 'work', 'count': 1}]

    def test_tag_search(self, runner, scanned):
        runner.invoke(cli, ['tag', 'add', '--repo', 'webapp', 'frontend'])

        *items, _ = jsonl(runner.invoke(cli, ['search', 'front', '--in-tags']))

        assert [i['name'] for i in items] == ['webapp']
        assert items[0]['matched'] == ['tag']

    def test_tag_unknown_repo(self, runner, scanned):
        result = runner.invoke(cli, ['tag', 'add', '--repo', 'nope', 'work'])
        assert result.exit_code == NOT_FOUND

    def test_empty_tag_is_data_error(self, runner, scanned):
        result = runner.invoke(cli, ['tag', 'add', '--repo', 'parser', '  '])
        assert result.exit_code == DATA_ERROR


class TestConfigCommands:

    def test_roots_add_remove(self, runner, src):
        added = runner.invoke(cli, ['roots', 'add', str(src)])
        assert jsonl(added) == [{'root': str(src), 'added': True}]

        removed = runner.invoke(cli, ['roots', 'remove', str(src)])
        assert jsonl(removed) == [{'root': str(src), 'removed': True}]
        assert jsonl(runner.invoke(cli, ['roots', 'list'])) == []

    def test_ignores(self, runner, src):
        runner.invoke(cli, ['ignores', 'remove', 'node_modules'])
        names = [r['name'] for r in jsonl(runner.invoke(cli, ['ignores', 'list']))]
        assert 'node_modules' not in names

        result = runner.invoke(cli, ['scan', '--root', str(src)])
        assert jsonl(result)[0]['indexed'] == 3

        reset = jsonl(runner.invoke(cli, ['ignores', 'reset']))
        assert {'name': 'node_modules'} in reset

    def test_invalid_ignore_name(self, runner):
        result = runner.invoke(cli, ['ignores', 'add', 'a/b'])
        assert result.exit_code == CONFIG_ERROR


class TestCommits:

    @pytest.fixture
    def indexed(self, runner, scanned):
        result = runner.invoke(cli, ['commit-index'])
        assert result.exit_code == 0, result.output
        return scanned

    def test_commit_index_stats(self, runner, scanned):
        result = runner.invoke(cli, ['commit-index', '--branches', '1', '--commits-per-branch', '999'])

        assert result.exit_code == 0, result.output
        (stats,) = jsonl(result)
        assert stats['repos'] == 2
        assert stats['branches'] == 2
        assert stats['branches_limit'] == 1
        assert stats['commits_per_branch'] == 500

    def test_commit_index_limits_are_saved(self, runner, scanned):
        runner.invoke(cli, ['commit-index', '--branches', '1'])

        (stats,) = jsonl(runner.invoke(cli, ['commit-index']))

        assert stats['branches_limit'] == 1

    def test_commit_index_one_repo(self, runner, scanned):
        (stats,) = jsonl(runner.invoke(cli, ['commit-index', '--repo', 'webapp']))
        assert stats['repos'] == 1
        assert stats['commits'] == 1

    def test_commit_search(self, runner, indexed):
        *hits, summary = jsonl(runner.invoke(cli, ['commit-search', 'lexer']))

        assert summary['total'] == 1
        assert hits[0]['repo_name'] == 'parser'
        assert hits[0]['summary'] == 'Fix race in tokenizer'
        assert 'lexer' in hits[0]['snippet']

    def test_commit_search_branch_filter(self, runner, indexed):
        *hits, _ = jsonl(runner.invoke(cli, ['commit-search', 'tokenizer', '--branch', 'experiment']))
        assert [h['branch_name'] for h in hits] == ['experiment']
        assert [h['summary'] for h in hits] == ['Add tokenizer']

    def test_commit_search_summary_only(self, runner, indexed):
        *hits, _ = jsonl(runner.invoke(cli, ['commit-search', 'lexer', '--in-summary']))
        assert hits == []

    def test_branches(self, runner, scanned):
        result = runner.invoke(cli, ['branches', 'parser'])

        assert result.exit_code == 0, result.output
        assert [b['name'] for b in jsonl(result)] == ['experiment', 'main']

    def test_commits_and_show(self, runner, scanned):
        result = runner.invoke(cli, ['commits', 'parser', 'main', '--per-page', '1'])

        assert result.exit_code == 0, result.output
        (page,) = jsonl(result)
        assert page['has_more'] is True
        (newest,) = page['items']
        assert newest['summary'] == 'Fix race in tokenizer'

        shown = jsonl(runner.invoke(cli, ['show', 'parser', newest['oid']]))
        assert shown[0]['oid'] == newest['oid']
        assert 'lexer shared state' in shown[0]['message']
        assert len(shown[0]['parents']) == 1

    def test_unknown_ref_is_git_error(self, runner, scanned):
        result = runner.invoke(cli, ['commits', 'parser', 'no-such-branch'])
        assert result.exit_code == GIT_ERROR
        assert jsonl(result)[0]['type'] == 'RefNotFoundError'

    def test_show_unknown_commit(self, runner, scanned):
        result = runner.invoke(cli, ['show', 'parser', '0' * 40])
        assert result.exit_code == GIT_ERROR

    def test_branches_unknown_repo(self, runner, scanned):
        result = runner.invoke(cli, ['branches', 'nope'])
        assert result.exit_code == NOT_FOUND
