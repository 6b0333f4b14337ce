"""Typer options of the `scan` command"""

from pathlib import Path
from typing import Annotated

import typer

from onlyfans_downloader.src.interfaces.help_panels import HelpPanels

PageOption = Annotated[
    Path,
    typer.Option(
        '--page',
        '-p',
        help='Saved HTML snapshot of the page',
        exists=True,
        dir_okay=False,
        readable=True,
        rich_help_panel=HelpPanels.input,
    ),
]

PageUrlOption = Annotated[
    str,
    typer.Option(
        '--url',
        '-u',
        help='Url the snapshot was taken from (used to guess the creator)',
        rich_help_panel=HelpPanels.input,
    ),
]

ApiDumpOption = Annotated[
    Path | None,
    typer.Option(
        '--api-dump',
        '-a',
        help='JSON list of captured API responses: [{"url": ..., "payload": ...}]',
        exists=True,
        dir_okay=False,
        readable=True,
        rich_help_panel=HelpPanels.input,
    ),
]

DestinationDirectoryOption = Annotated[
    Path | None,
    typer.Option(
        '--destination',
        '-d',
        help='Where to save the files (overrides the config)',
        file_okay=False,
        rich_help_panel=HelpPanels.downloading,
    ),
]

QualityOption = Annotated[
    str | None,
    typer.Option(
        '--quality',
        '-q',
        help='Preferred video quality: preview, 240, 720 or full (saved as the new default)',
        rich_help_panel=HelpPanels.downloading,
    ),
]
