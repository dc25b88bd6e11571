"""Streaming downloads for coin and wallet tool releases."""

from pathlib import Path

import httpx
from loguru import logger
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

DOWNLOAD_TIMEOUT = 60.0
CHUNK_SIZE = 64 * 1024


class InstallError(Exception):
    """Raised when coin binaries cannot be downloaded or installed."""


def download_file(
    url: str,
    dest: Path,
    client: httpx.Client | None = None,
    console: Console | None = None,
    show_progress: bool = True,
) -> Path:
    """Download *url* into *dest*, drawing a progress bar while it streams.

    A partially written file is removed when the download fails.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    own_client = client is None
    client = client or httpx.Client(timeout=DOWNLOAD_TIMEOUT, follow_redirects=True)

    logger.info(f"Downloading {url} -> {dest}")
    try:
        with client.stream("GET", url) as response:
            response.raise_for_status()
            total = int(response.headers.get("content-length", 0)) or None

            with Progress(
                TextColumn("[bold blue]{task.description}"),
                BarColumn(),
                DownloadColumn(),
                TransferSpeedColumn(),
                TimeRemainingColumn(),
                console=console,
                disable=not show_progress,
                transient=True,
            ) as progress:
                task = progress.add_task(dest.name, total=total)
                with open(dest, "wb") as f:
                    for chunk in response.iter_bytes(CHUNK_SIZE):
                        f.write(chunk)
                        progress.update(task, advance=len(chunk))
    except httpx.HTTPStatusError as e:
        dest.unlink(missing_ok=True)
        raise InstallError(f"Download of {url} failed: HTTP {e.response.status_code}") from e
    except (httpx.HTTPError, OSError) as e:
        dest.unlink(missing_ok=True)
        raise InstallError(f"Download of {url} failed: {e}") from e
    finally:
        if own_client:
            client.close()

    return dest
