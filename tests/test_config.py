import pytest

from ecotrends import config
from ecotrends.config import PROJECT_ROOT, get_path, get_section, load_config


def test_default_config_sections():
    cfg = load_config()

    assert get_section(cfg, 'importance') == {
        'n_permutations': 10, 'verbosity': 2, 'plot': False, 'palette': 'Dark2',
    }
    perf = get_section(cfg, 'performance')
    assert perf['metrics'] == ['AUC', 'TSS', 'Kappa']
    assert perf['pbg'] is True


def test_override_merges_and_expands_env(tmp_path, monkeypatch):
    monkeypatch.setenv('ECOTRENDS_TEST_OUT', '/data/out')
    override = tmp_path / "species.yaml"
    override.write_text(
        "paths:\n  output_dir: ${ECOTRENDS_TEST_OUT}\n"
        "importance:\n  n_permutations: 50\n  unknown_key: 1\n"
    )
    monkeypatch.setattr(config, '_cached_path', None)

    cfg = load_config(str(override))

    assert cfg['importance']['n_permutations'] == 50
    assert cfg['importance']['palette'] == 'Dark2'
    assert 'unknown_key' not in get_section(cfg, 'importance')
    assert get_path(cfg, 'output_dir') == '/data/out'


def test_relative_paths_resolve_against_project_root():
    cfg = {'paths': {'output_dir': 'outputs'}}

    assert get_path(cfg, 'output_dir') == str(PROJECT_ROOT / 'outputs')


def test_unknown_section():
    with pytest.raises(KeyError):
        get_section({}, 'plotting')
    assert get_section({}, 'performance') == {}
