"""modvet - version-selection hazard checker for a module build list.

Runs the enabled checks against the current module and exits non-zero when
anything is flagged or the pass ends in an error.
"""
import json
import logging
import signal
import sys
import threading

from args import parse_args
from analysis.runner import AnalysisReport, run_analysis
from buildlist.manifest import GoModEditAccessor
from buildlist.resolver import GoResolverClient
from buildlist.toolchain import Toolchain
from common.logging_utils import configure_logging
from config import build_config
from constants import Constants, ExitCodes
from errors import ModvetError

logger = logging.getLogger(__name__)


def print_report(report: AnalysisReport) -> None:
    """Print one line per finding, then the terminating error if any."""
    for finding in report.findings:
        print(finding)
    if report.error is not None:
        print(f"{Constants.PROG}: {report.error}")


def export_json(report: AnalysisReport, path: str) -> None:
    """Exports the report to a JSON file.

    Args:
        report (AnalysisReport): Report to export.
        path (str): File path to export the JSON.
    """
    try:
        with open(path, 'w', encoding='utf-8') as file:
            json.dump(report.to_dict(), file, ensure_ascii=False, indent=4)
        logger.info("JSON file has been successfully exported at: %s", path)
    except OSError as e:
        logger.error("JSON file couldn't be written to disk: %s", e)
        sys.exit(ExitCodes.OTHER_ERROR.value)


def exit_code(report: AnalysisReport) -> int:
    if report.error is not None or report.flagged:
        return ExitCodes.OTHER_ERROR.value
    return ExitCodes.SUCCESS.value


def run(argv=None) -> int:
    """Parse argv, run the analysis and return a process exit code."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE)

    try:
        config = build_config(args)
    except ModvetError as e:
        print(f"{Constants.PROG}: {e}")
        return ExitCodes.ARG_ERROR.value

    toolchain = Toolchain(binary=config.go_binary, workdir=config.workdir, timeout=config.timeout)
    resolver = GoResolverClient(toolchain, verbose=config.verbose)
    manifests = GoModEditAccessor(toolchain)

    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda signum, frame: cancel.set())
    try:
        report = run_analysis(config, resolver, manifests, cancel=cancel)
    finally:
        signal.signal(signal.SIGINT, previous)

    print_report(report)
    if getattr(args, "OUTPUT", None):
        export_json(report, args.OUTPUT)
    if report.cancelled:
        logger.warning("Interrupted by user; remaining checks were skipped.")
        return ExitCodes.OTHER_ERROR.value
    return exit_code(report)


def main():
    """Main function of the program."""
    sys.exit(run())


if __name__ == "__main__":
    main()
