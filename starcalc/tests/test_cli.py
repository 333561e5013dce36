import os

from click.testing import CliRunner
import pytest

import starcalc.example_data.beatmaps
from starcalc.__main__ import main


@pytest.fixture
def example_path():
    return os.path.join(
        os.path.dirname(starcalc.example_data.beatmaps.__file__),
        'Example Artist - Example Song (mapper) [Normal].osu',
    )


def test_stars(example_path):
    result = CliRunner().invoke(main, ['stars', example_path])

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0].startswith('Example Artist - Example Song [Normal]')
    assert 'max combo 9' in lines[1]


def test_stars_timed(example_path):
    result = CliRunner().invoke(
        main,
        ['stars', '--timed', '--mods', 'HDDT', example_path],
    )

    assert result.exit_code == 0, result.output
    # a header and one line per hit object
    assert len(result.output.splitlines()) == 7


def test_stars_mod_string(example_path):
    result = CliRunner().invoke(
        main,
        ['stars', '--mod-string', 'h|x1.25', example_path],
    )
    assert result.exit_code == 0, result.output


def test_stars_exclusive_mod_options(example_path):
    result = CliRunner().invoke(
        main,
        ['stars', '--mods', 'HD', '--mod-string', 'h', example_path],
    )
    assert result.exit_code == 2


def test_stars_skip_exceptions(tmpdir, example_path):
    broken = tmpdir.join('broken.osu')
    broken.write('not a beatmap')

    result = CliRunner().invoke(main, ['stars', str(broken)])
    assert result.exit_code != 0

    result = CliRunner().invoke(
        main,
        ['stars', '--skip-exceptions', str(broken), example_path],
    )
    assert result.exit_code == 0, result.output
    assert 'Example Song' in result.output
