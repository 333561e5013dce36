import logging

import click

from .beatmap import Beatmap
from .cli import format_attributes, maybe_show_progress
from .difficulty import DroidDifficultyCalculator
from .legacy import convert_legacy_mods, convert_mod_string
from .mod import LegacyMod


@click.group()
def main():
    """Star rating utilities.
    """


def _parse_mods(mods, mod_string):
    if mods and mod_string:
        raise click.UsageError('--mods and --mod-string are exclusive')

    try:
        if mod_string:
            return convert_mod_string(mod_string)
        return convert_legacy_mods(LegacyMod.parse(mods or ''))
    except ValueError as e:
        raise click.BadParameter(str(e))


@main.command()
@click.argument(
    'paths',
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False),
)
@click.option(
    '--mods',
    help='Mods as a list of acronyms, for example ``HDDT``.',
    default='',
)
@click.option(
    '--mod-string',
    help='Mods as a legacy mod string, for example ``hd|x1.25``.',
    default='',
)
@click.option(
    '--timed/--no-timed',
    help='Print the star rating after every hit object?',
    default=False,
)
@click.option(
    '--progress/--no-progress',
    help='Show a progress bar?',
    default=False,
)
@click.option(
    '--skip-exceptions/--no-skip-exceptions',
    help='Skip beatmap files that cause exceptions rather than exiting?',
    default=False,
)
def stars(paths, mods, mod_string, timed, progress, skip_exceptions):
    """Compute the star rating of beatmap files.
    """
    mods = _parse_mods(mods, mod_string)
    calculator = DroidDifficultyCalculator()

    with maybe_show_progress(
            paths,
            progress,
            label='Rating beatmaps: ',
            item_show_func=lambda p: 'Current: ' + str(p),
    ) as it:
        for path in it:
            try:
                beatmap = Beatmap.from_path(path)
                if timed:
                    results = calculator.calculate_timed(beatmap, mods)
                else:
                    results = calculator.calculate(beatmap, mods)
            except ValueError:
                if not skip_exceptions:
                    raise
                logging.exception(f'failed to rate {path}')
                continue

            click.echo(f'{beatmap.display_name} {mods!r}')
            if timed:
                for time, attributes in results:
                    click.echo(
                        f'  {time:>10.0f}ms {format_attributes(attributes)}',
                    )
            else:
                click.echo(f'  {format_attributes(results)}')


if __name__ == '__main__':
    main()
