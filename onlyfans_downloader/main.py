"""Main entrypoint of the app"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

import aiohttp
import typer
from aiohttp.client_exceptions import ClientConnectorDNSError
from aiohttp_retry import ExponentialRetry
from pydantic import ValidationError

from onlyfans_downloader.src.application.di.app_environment import AppEnvironment
from onlyfans_downloader.src.domain.media import QualityTier
from onlyfans_downloader.src.infrastructure.host.settings_store import YamlSettingsStore
from onlyfans_downloader.src.infrastructure.loggers import logger_instances
from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    downloader_logger,
)
from onlyfans_downloader.src.infrastructure.yaml_configuration.config import (
    CONFIG_LOCATION,
    init_config,
)
from onlyfans_downloader.src.interfaces.cli_options import (
    # ---------------------------------------------------------------------------
    # These imports can't be moved to TYPE_CHECKING
    # because they are used by typer at runtime.
    #
    ApiDumpOption,  # noqa: TC001
    DestinationDirectoryOption,  # noqa: TC001
    PageOption,  # noqa: TC001
    PageUrlOption,  # noqa: TC001
    QualityOption,  # noqa: TC001
)
from onlyfans_downloader.src.interfaces.snapshot import load_api_dump, load_page

if TYPE_CHECKING:
    from pathlib import Path

typer_app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode='rich',
)


class InvalidQualityError(Exception):
    """Quality given on the command line is not a known tier"""


async def scan_cmd_handler(
    *,
    page: Path,
    page_url: str,
    api_dump: Path | None,
    destination_directory: Path | None,
    quality: str | None,
) -> None:
    """Resolve every media of a saved page and download it"""
    config = init_config()

    if destination_directory is not None:
        config.downloading_settings.target_directory = destination_directory

    # Preferences live in the `settings:` section, a quality given here is saved there
    settings = YamlSettingsStore(CONFIG_LOCATION)
    if quality is not None:
        try:
            tier = QualityTier.parse(quality)
        except ValueError as e:
            raise InvalidQualityError(quality) from e
        settings.update(quality=tier)

    retry_options = ExponentialRetry(
        attempts=5,
        exceptions={
            aiohttp.ClientConnectorError,
            aiohttp.ClientOSError,
            aiohttp.ServerDisconnectedError,
            aiohttp.ClientConnectionError,
        },
    )

    async with AppEnvironment(
        config=AppEnvironment.AppConfig(
            target_directory=config.downloading_settings.target_directory.absolute(),
            retry_options=retry_options,
            settings=settings,
            logger=downloader_logger,
            cooldown_seconds=config.downloading_settings.cooldown_seconds,
            store_capacity=config.correlation_store.capacity,
            store_ttl_seconds=config.correlation_store.ttl_seconds,
        )
    ) as app_environment:
        # ------------------------------------------------------------------
        # Feed the captured API responses, as the interceptor would
        if api_dump is not None:
            captures = load_api_dump(api_dump)
            recorded = sum(
                app_environment.store.record_response(capture.url, capture.payload)
                for capture in captures
            )
            logger_instances.api_logger.info(
                f'Recorded {recorded} post(s) from {len(captures)} captured response(s)'
            )

        # ------------------------------------------------------------------
        # Inject controls into the snapshot, then press "Download All"
        document = load_page(page, page_url)
        page_controller = app_environment.open_page(document, timings=config.timings)

        accepted = await page_controller.floating_button.download_all()
        if accepted == 0:
            downloader_logger.warning('Nothing to download on this page')
            return

        downloader_logger.wait(f'Waiting for {accepted} download(s) to finish')
        await app_environment.queue.wait_idle()
        downloader_logger.success('All downloads finished')


@typer_app.command()
def scan(
    *,
    page: PageOption,
    page_url: PageUrlOption,
    api_dump: ApiDumpOption = None,
    destination_directory: DestinationDirectoryOption = None,
    quality: QualityOption = None,
) -> None:
    """
    [bold]ABOUT:[/bold]

    ======
        Download every media of a saved OnlyFans page in full quality.

        - Pass the HTML snapshot with `--page` and its address with `--url`.
        - Captured API responses (`--api-dump`) let previews resolve to originals.
        - Files are saved one at a time, under a folder per creator by default.
    """
    asyncio.run(
        scan_cmd_handler(
            page=page,
            page_url=page_url,
            api_dump=api_dump,
            destination_directory=destination_directory,
            quality=quality,
        ),
    )


def entry_point() -> None:
    """
    Run main entry point of the whole app.

    It doesn't run the app directly, but through typer,
    because main app by itself is async and can't be run directly with typer.
    """
    try:
        typer_app()
    except InvalidQualityError as e:
        downloader_logger.error(
            f'Unknown quality "{e}", use one of: preview, 240, 720, full'
        )
    except (json.JSONDecodeError, ValidationError) as e:
        downloader_logger.error(f'API dump could not be read: {e}')
    except ClientConnectorDNSError:
        downloader_logger.error(
            'Network error: Unable to connect to OnlyFans, please check your internet connection.'
        )
    except KeyboardInterrupt:
        downloader_logger.warning('Download cancelled by user, see you later!\n')


if __name__ == '__main__':
    entry_point()
