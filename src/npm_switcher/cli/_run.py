# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""Run command: monitor services and switch their upstream targets."""

from pathlib import Path
from typing import Annotated

import anyio
from cyclopts import Parameter, validators

from npm_switcher.exceptions import (
    ArchiveError,
    SnapshotNotFoundError,
    StartupError,
)
from npm_switcher.orchestrator import FailoverOrchestrator
from npm_switcher.utils import create_logger

from ._shared import DEFAULT_CONFIG_PATH, ExitCode, exit_with_error, load_config_or_exit


async def _serve(
    orchestrator: FailoverOrchestrator,
    snapshot_id: int | None,
    force_snapshot: bool,  # noqa: FBT001
) -> None:
    await orchestrator.initialize(
        snapshot_id=snapshot_id, force_snapshot=force_snapshot
    )
    await orchestrator.run()


def run(
    *,
    config: Annotated[
        Path, Parameter(name=["--config", "-c"], help="Path to the YAML config file")
    ] = DEFAULT_CONFIG_PATH,
    snapshot: Annotated[
        int | None,
        Parameter(
            name=["--snapshot", "-s"],
            help="Route healthy services to the targets of this snapshot",
            validator=validators.Number(gte=1),
        ),
    ] = None,
    force_snapshot: Annotated[
        bool,
        Parameter(
            name=["--force-snapshot", "-f"],
            negative=(),
            help="Snapshot the original targets at startup",
        ),
    ] = False,
) -> None:
    """Monitor every configured service until interrupted.

    Probes each service on its own schedule and repoints its proxy host
    between the original and fallback targets as its health changes.
    Stops gracefully on SIGINT or SIGTERM.
    """
    app_config = load_config_or_exit(config)
    logger = create_logger(
        app_config.log_file,
        level=app_config.log_level.value,
        console_format=app_config.log_format.value,  # type: ignore[arg-type]
    )
    logger.info("configuration loaded", path=str(config))

    orchestrator = FailoverOrchestrator(app_config, logger=logger)
    try:
        anyio.run(_serve, orchestrator, snapshot, force_snapshot)
    except SnapshotNotFoundError as e:
        logger.error("startup failed", error=str(e))
        exit_with_error(str(e), ExitCode.NOT_FOUND)
    except ArchiveError as e:
        logger.error("startup failed", error=str(e))
        exit_with_error(str(e), ExitCode.IO_ERROR)
    except StartupError as e:
        logger.error("startup failed", error=str(e))
        exit_with_error(str(e), ExitCode.INTERNAL_ERROR)
    except KeyboardInterrupt:
        logger.info("interrupted")
