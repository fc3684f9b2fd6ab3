"""Entry point for the passmr CLI."""

from __future__ import annotations

import argparse
import logging
import sys

from passmr.app import App
from passmr.clipboard import SystemClipboard
from passmr.keybindings import KeybindingsManager
from passmr.settings import LOG_LEVELS, Settings, load_settings
from passmr.store import StorageOpenError, StoreError, open_store
from passmr.terminal import ProcessTerminal, Terminal
from passmr.tui import TUI
from passmr.ui import build_frame

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="passmr",
        description="passmr: terminal password manager",
    )
    parser.add_argument("--store", default=None, help="SQLite store path (default: <config dir>/store.db)")
    parser.add_argument("--config-dir", default=None, help="Configuration directory")
    parser.add_argument("--log-level", default=None, choices=list(LOG_LEVELS))
    return parser.parse_args(argv)


def configure_logging(settings: Settings) -> None:
    # The terminal is in raw mode while the app runs, so logs go to a file.
    settings.log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=settings.log_file,
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        force=True,
    )


def run(app: App, terminal: Terminal, max_visible: int | None = None) -> None:
    """Render, block on input, dispatch; until the app asks to quit."""
    tui = TUI(terminal)

    def redraw() -> None:
        tui.render(build_frame(app, terminal.columns, terminal.rows, max_visible))

    def on_resize() -> None:
        tui.invalidate()
        redraw()

    terminal.start(on_resize=on_resize)
    try:
        redraw()
        while not app.should_quit:
            for event in terminal.read_events():
                app.handle_input(event)
                if app.should_quit:
                    break
            else:
                redraw()
    finally:
        terminal.stop()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    try:
        settings, problems = load_settings(args.config_dir, args.store, args.log_level)
        configure_logging(settings)
    except OSError as e:
        print(f"Error: cannot set up configuration: {e}", file=sys.stderr)
        sys.exit(1)
    for problem in problems:
        logger.warning(problem)

    try:
        store = open_store(str(settings.store_path))
    except StorageOpenError as e:
        logger.error("%s", e)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        app = App(store, SystemClipboard(), KeybindingsManager(settings.keybindings))
        try:
            app.resync()
        except StoreError as e:
            logger.exception("Failed to read key list")
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        terminal = ProcessTerminal()
        terminal.set_title("passmr")
        try:
            run(app, terminal, settings.max_visible)
        except KeyboardInterrupt:
            logger.info("Interrupted")
        except EOFError:
            logger.info("Input closed")
    finally:
        store.close()


if __name__ == "__main__":
    main()
