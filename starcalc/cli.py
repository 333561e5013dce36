from contextlib import contextmanager

import click


def maybe_show_progress(it, show_progress, **kwargs):
    """Optionally show a progress bar for the given iterator.

    Parameters
    ----------
    it : iterable
        The underlying iterator.
    show_progress : bool
        Should progress be shown.
    **kwargs
        Forwarded to the click progress bar.

    Returns
    -------
    itercontext : context manager
        A context manager whose enter is the actual iterator to use.

    Examples
    --------
    .. code-block:: python

       with maybe_show_progress(paths, True, label='rating') as ps:
            for path in ps:
                ...
    """
    if show_progress:
        return click.progressbar(it, **kwargs)

    @contextmanager
    def ctx():
        yield it

    return ctx()


def format_attributes(attributes):
    """Render difficulty attributes on one line.
    """
    return (
        f'{attributes.star_rating:.2f}*'
        f' (aim {attributes.aim_difficulty:.2f},'
        f' tap {attributes.tap_difficulty:.2f},'
        f' flashlight {attributes.flashlight_difficulty:.2f})'
        f' max combo {attributes.max_combo}'
    )
