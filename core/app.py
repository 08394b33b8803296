import asyncio
import signal
import sys
from typing import List

from core.config_loader import load_config
from core.context import WatcherConfig
from core.state_exporter import SnapshotStateExporter
from core.watcher import LiveWatcher
from services.tiltify.api.campaign import TiltifyWatcher
from services.twitch.workers.live_worker import TwitchLiveWatcher
from services.youtube.workers.livestream_worker import YouTubeLiveWatcher
from shared.errors import AuthenticationError, ConfigError
from shared.logging.logger import get_logger
from shared.runtime.quotas import LiveCreatorsGauge, QuotaUsageCounter
from shared.runtime.snapshot import SnapshotPublisher
from shared.utils.http import build_http_client
from runtime import version as runtime_version

log = get_logger("core.app", runtime="causewatch")


async def main(stop_event: asyncio.Event, config: WatcherConfig) -> int:
    log.info(f"{runtime_version.as_string()} booting")

    async with build_http_client(timeout=config.http_timeout) as http_client:
        # --------------------------------------------------
        # UPSTREAM CLIENTS
        # --------------------------------------------------
        try:
            twitch = await TwitchLiveWatcher.setup(
                http_client=http_client,
                client_id=config.env.twitch_client_id,
                client_secret=config.env.twitch_client_secret,
                handles=config.twitch_handles,
            )
        except AuthenticationError as e:
            log.error(f"[Twitch] Initial authentication failed; refusing to start: {e}")
            return 1

        quota = QuotaUsageCounter(
            platform="youtube",
            daily_budget=config.youtube_daily_quota,
        )
        youtube = YouTubeLiveWatcher(
            http_client=http_client,
            api_key=config.env.youtube_api_key,
            quota=quota,
            handles=config.youtube_handles,
        )
        tiltify = TiltifyWatcher(
            http_client=http_client,
            api_key=config.env.tiltify_api_key,
            campaign_id=config.campaign_id,
        )

        # --------------------------------------------------
        # CORE SYSTEMS
        # --------------------------------------------------
        publisher = SnapshotPublisher()
        gauge = LiveCreatorsGauge()
        watcher = LiveWatcher(
            youtube=youtube,
            twitch=twitch,
            tiltify=tiltify,
            publisher=publisher,
            gauge=gauge,
            refresh_period=config.refresh_period,
        )

        tasks: List[asyncio.Task] = [asyncio.create_task(watcher.run(stop_event))]

        if config.export.enabled:
            exporter = SnapshotStateExporter(
                publisher=publisher,
                quota=quota,
                gauge=gauge,
                base_dir=config.export.base_dir,
                publish_root=config.export.publish_root,
            )
            tasks.append(asyncio.create_task(exporter.run(stop_event)))
            log.info("State exporter enabled")
        else:
            log.info("State exporter disabled")

        # --------------------------------------------------
        # BLOCK UNTIL SHUTDOWN SIGNAL
        # --------------------------------------------------
        await stop_event.wait()
        log.info("Shutdown initiated")

        # An in-flight cycle is cut short rather than waited on.
        for task in tasks:
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                log.warning(f"Task ended with error during shutdown: {result!r}")

        log.info(f"YouTube quota used: {quota.total} unit(s) this run")

    log.info("causewatch stopped")
    return 0


# ----------------------------------------------------------------------
# SIGNAL HANDLING (WINDOWS-SAFE)
# ----------------------------------------------------------------------

def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    stop_event: asyncio.Event,
):
    """
    Ctrl+C / SIGTERM handler.
    Uses signal.signal + asyncio.Event to unwind cleanly.
    """

    def _handler(signum, frame):
        loop.call_soon_threadsafe(stop_event.set)

    signal.signal(signal.SIGINT, _handler)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handler)


# ----------------------------------------------------------------------
# ENTRYPOINT
# ----------------------------------------------------------------------

def run() -> int:
    try:
        config = load_config()
    except ConfigError as e:
        log.error(f"Invalid configuration: {e}")
        return 2

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    stop_event = asyncio.Event()
    _install_signal_handlers(loop, stop_event)

    exit_code = 0
    try:
        exit_code = loop.run_until_complete(main(stop_event, config))

    except KeyboardInterrupt:
        log.info("KeyboardInterrupt received, shutdown initiated")

    finally:
        # --------------------------------------------------
        # CANCEL REMAINING TASKS (CLEANLY)
        # --------------------------------------------------
        pending = [t for t in asyncio.all_tasks(loop) if not t.done()]
        for task in pending:
            task.cancel()

        if pending:
            loop.run_until_complete(
                asyncio.gather(*pending, return_exceptions=True)
            )

        loop.run_until_complete(loop.shutdown_asyncgens())
        asyncio.set_event_loop(None)
        loop.close()

    return exit_code


if __name__ == "__main__":
    sys.exit(run())
