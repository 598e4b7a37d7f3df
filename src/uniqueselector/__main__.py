from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from typing import TYPE_CHECKING, Sequence

from .config import InspectorConfig, load_config, remember_start_url

if TYPE_CHECKING:
    from .controller import InspectorController

URL_ENV = "UNIQUESELECTOR_URL"

logger = logging.getLogger("uniqueselector")


def resolve_config(argv: Sequence[str], environ: dict[str, str] | None = None) -> InspectorConfig:
    env = os.environ if environ is None else environ
    config = load_config()
    env_url = (env.get(URL_ENV) or "").strip()
    if env_url:
        config.start_url = env_url
    if argv and argv[0].strip():
        config.start_url = argv[0].strip()
    return config


def _install_interrupt_handler(controller: InspectorController) -> bool:
    """Route Ctrl+C to the controller; a second Ctrl+C cancels the session task."""
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()

    def on_interrupt() -> None:
        if controller.exit_requested and task is not None:
            task.cancel()
            return
        logger.info("Interrupt received; closing the session.")
        controller.request_exit()

    try:
        loop.add_signal_handler(signal.SIGINT, on_interrupt)
    except (NotImplementedError, RuntimeError):
        return False
    return True


async def _run(config: InspectorConfig) -> None:
    from .browser_manager import BrowserManager
    from .controller import InspectorController, TerminalConsole

    console = TerminalConsole()
    manager = BrowserManager(config)
    async with manager as driver:
        saved, error = remember_start_url(config.start_url)
        if not saved:
            logger.warning("Could not remember start URL: %s", error)
        console.write(f"Browser ready at {config.start_url}")
        console.write("Hover to outline elements; Ctrl/Cmd+click picks one.")
        controller = InspectorController(driver, console, config, session=manager)
        installed = _install_interrupt_handler(controller)
        try:
            await controller.run()
        finally:
            if installed:
                asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)


def main(argv: Sequence[str] | None = None) -> int:
    if sys.version_info < (3, 11):
        raise SystemExit(
            "uniqueselector requires Python 3.11+. "
            f"Current interpreter: {sys.executable} (Python {sys.version.split()[0]})"
        )
    from .errors import SessionError
    from .logging_config import configure_logging

    configure_logging()
    args = list(sys.argv[1:] if argv is None else argv)
    config = resolve_config(args)
    try:
        asyncio.run(_run(config))
    except SessionError as exc:
        print(f"[uniqueselector] {exc}", file=sys.stderr)
        return 1
    except (KeyboardInterrupt, asyncio.CancelledError):
        print("\n[uniqueselector] Interrupted.", file=sys.stderr)
        return 130
    except Exception:
        logger.exception("Unexpected failure")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
