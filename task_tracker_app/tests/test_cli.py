"""
End-to-end CLI tests. Each test gets its own SQLite file and data directory.

Run with: python -m pytest task_tracker_app/tests/test_cli.py -v
"""
import json
import os
import sys

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tracker.cli import main
from tracker.task_manager import TaskManager


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'tasks.db'}"
    monkeypatch.setenv('DATABASE_URL', url)
    monkeypatch.setenv('TASK_TRACKER_DATA_DIR', str(tmp_path))
    return url


def _only_task(db_url):
    manager = TaskManager(db_url)
    try:
        tasks = manager.list_tasks()
    finally:
        manager.close()
    assert len(tasks) == 1
    return tasks[0]


def test_add_and_list(db_url, capsys):
    assert main(['add', 'Write report', '--estimate', '1h30m', '--tags', 'work,writing']) == 0
    assert 'Task added: Write report' in capsys.readouterr().out

    assert main(['list']) == 0
    out = capsys.readouterr().out
    assert 'Write report' in out
    assert 'est 1h30m' in out
    assert '#work #writing' in out


def test_add_with_bad_estimate_exits_1(db_url, capsys):
    assert main(['add', 'Broken', '--estimate', 'soonish']) == 1
    err = capsys.readouterr().err
    assert err.startswith('Error: Invalid duration format')


def test_add_uses_default_estimate_preference(db_url, capsys):
    assert main(['config', '--set', 'default_estimate_minutes=45m']) == 0
    assert main(['add', 'Defaulted']) == 0
    assert _only_task(db_url).estimated_minutes == 45


def test_complete_then_filters(db_url, capsys):
    main(['add', 'Email', '--estimate', '30m'])
    task = _only_task(db_url)

    assert main(['complete', task.id[:8], '--actual', '25m']) == 0
    assert 'Task completed: Email' in capsys.readouterr().out

    main(['list'])
    assert 'No tasks found' in capsys.readouterr().out
    main(['list', '--completed'])
    assert 'took 25m' in capsys.readouterr().out


def test_edit_and_delete(db_url, capsys):
    main(['add', 'Draft'])
    task = _only_task(db_url)

    assert main(['edit', task.id, '--title', 'Final', '--estimate', '2h']) == 0
    updated = _only_task(db_url)
    assert (updated.title, updated.estimated_minutes) == ('Final', 120)

    assert main(['edit', task.id]) == 1

    assert main(['delete', task.id]) == 0
    assert main(['delete', task.id]) == 1
    assert 'not found' in capsys.readouterr().err


def test_stats_with_no_completions(db_url, capsys):
    assert main(['stats']) == 0
    assert 'No completed tasks yet this month.' in capsys.readouterr().out


def test_stats_after_completion(db_url, capsys):
    main(['add', 'Estimate me', '--estimate', '30m'])
    main(['complete', _only_task(db_url).id, '--actual', '30m'])
    capsys.readouterr()

    assert main(['stats']) == 0
    assert 'Overall Accuracy: 100.0%' in capsys.readouterr().out


def test_monthly_json(db_url, capsys):
    main(['add', 'Monthly', '--estimate', '30m'])
    main(['complete', _only_task(db_url).id, '--actual', '30m'])
    capsys.readouterr()

    assert main(['monthly', '--json']) == 0
    data = json.loads(capsys.readouterr().out)
    assert data['totalTasks'] == 1
    assert data['completedTasks'] == 1
    assert data['completionRate'] == 100.0


def test_monthly_text_and_history(db_url, capsys):
    main(['add', 'Monthly'])
    capsys.readouterr()

    assert main(['monthly']) == 0
    assert 'Monthly Summary' in capsys.readouterr().out

    assert main(['monthly', '--history', '--months', '3']) == 0
    assert 'Monthly History' in capsys.readouterr().out

    assert main(['monthly', '--history', '--json', '--months', '2']) == 0
    assert len(json.loads(capsys.readouterr().out)['months']) == 2


def test_monthly_bad_month_exits_1(db_url, capsys):
    assert main(['monthly', '--month', '2025-13']) == 1
    assert 'Invalid month' in capsys.readouterr().err


def test_config_show_and_set(db_url, capsys):
    assert main(['config', '--set', 'celebration_language=gentle']) == 0
    assert 'celebration_language: gentle' in capsys.readouterr().out

    assert main(['config', '--set', 'celebration_language=loud']) == 1
    assert main(['config', '--set', 'no-equals-sign']) == 1


def test_corrupt_preferences_file_exits_1(db_url, tmp_path, capsys):
    (tmp_path / 'user_preferences.csv').write_text(
        'celebration_language,enable_insights,default_estimate_minutes,updated_at\n'
        'enthusiastic,True,soon,\n',
        encoding='utf-8',
    )
    assert main(['add', 'Needs default']) == 1
    assert capsys.readouterr().err.startswith('Error: Stored default_estimate_minutes')


def test_no_command_prints_help(db_url, capsys):
    assert main([]) == 1
    assert 'usage' in capsys.readouterr().out
