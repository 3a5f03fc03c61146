from __future__ import annotations

import os

from dirindex.services.directory import resolve_node


def test_resolve_node_plain_file(tmp_path):
    target = tmp_path / 'a.txt'
    target.write_text('hello')

    name, st = resolve_node(str(target))

    assert name == str(target)
    assert st.st_size == 5


def test_resolve_node_reports_symlink_target_name(tmp_path):
    (tmp_path / 'page.html').write_text('<p></p>')
    os.symlink('page.html', tmp_path / 'link')

    name, _ = resolve_node(str(tmp_path / 'link'))

    assert name.endswith('page.html')


def test_resolve_node_missing_returns_none(tmp_path):
    assert resolve_node(str(tmp_path / 'nope')) is None


def test_resolve_node_dangling_symlink_returns_none(tmp_path):
    os.symlink(tmp_path / 'gone', tmp_path / 'dangling')

    assert resolve_node(str(tmp_path / 'dangling')) is None


def test_resolve_node_terminates_on_long_chain(tmp_path):
    (tmp_path / 'real.txt').write_text('x')
    previous = 'real.txt'
    for i in range(11):
        os.symlink(previous, tmp_path / f'l{i}')
        previous = f'l{i}'

    name, st = resolve_node(str(tmp_path / 'l10'))

    # the hop budget runs out one link short; stat follows the rest
    assert name.endswith('l0')
    assert st.st_size == 1


def test_resolve_node_terminates_on_cycle(tmp_path):
    os.symlink('b', tmp_path / 'a')
    os.symlink('a', tmp_path / 'b')

    assert resolve_node(str(tmp_path / 'a')) is None


def test_resolve_node_zero_hops_stats_link_path(tmp_path):
    (tmp_path / 'data.json').write_text('{}')
    os.symlink('data.json', tmp_path / 'alias')

    name, _ = resolve_node(str(tmp_path / 'alias'), max_hops=0)

    assert name == str(tmp_path / 'alias')
