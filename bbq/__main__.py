import argparse
import sys
from bbq.common.logger import get_logger, log
from bbq.common.setup import PATHS
from bbq.core.config import load_settings
from bbq.core.store import open_store
from bbq.core.time_counter import TimeCounter
from bbq.util.duration import DurationFormatter

# Each action maps to the TimeCounter transition it runs. status only reads.
_ACTIONS = {
    "status": None,
    "start": TimeCounter.start,
    "pause": TimeCounter.pause,
    "stop": TimeCounter.stop,
    "reset": TimeCounter.reset,
    "toggle": TimeCounter.toggle_run_pause,
    "cycle": TimeCounter.cycle,
}

def build_parser():
    parser = argparse.ArgumentParser(prog="bbqtimer", description="Run a persistent stopwatch from the command line.")
    parser.add_argument("action", nargs="?", default="status", choices=list(_ACTIONS))
    parser.add_argument("--store", help="timer state file (.ini for QSettings, anything else for JSON)")
    parser.add_argument("--console", action="store_true", help="also log to the console")
    return parser

# Loads the persisted timer, applies one action, writes it back and prints the resulting state.
def main(argv=None):
    args = build_parser().parse_args(argv)
    if args.console:
        get_logger(level=log.level, console=True)

    settings = load_settings()
    store = open_store(args.store or PATHS.current / settings["store_file"])
    counter = TimeCounter(
        formatter=DurationFormatter(time_style=settings["time_style"]),
        pauseable=settings["pauseable_notifications"],
    )

    # Commit a repaired state right away, before the reboot that caused it becomes undetectable.
    if counter.load(store):
        counter.save(store)
        store.commit()
        log.info(f"Saved normalized timer state: {counter}")

    action = _ACTIONS[args.action]
    if action is not None:
        action(counter)
        counter.save(store)
        store.commit()
        log.info(f"Applied '{args.action}', timer is now {counter}")

    print(f"{counter.run_state().value} {counter.format_hh_mm_ss_fraction().plain}")
    return 0

# Entry point for `python -m bbq` and the bbqtimer script
def run() -> None:
    try:
        sys.exit(main())
    except SystemExit:
        raise
    except Exception:
        # Full stack trace, always
        log.exception("Uncaught exception in entrypoint, exiting")
        sys.exit(1)

if __name__ == "__main__":
    run()
