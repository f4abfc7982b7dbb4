import argparse
import logging
import signal
import sys
import threading
from typing import Optional, Sequence

from dependency_injector import providers

from leadcrawl.configs import load_settings_file
from leadcrawl.container import Container
from leadcrawl.services.lead_exporter import EXPORT_FORMATS

logger = logging.getLogger("leadcrawl")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Crawl websites to a bounded depth and export business leads.")
    parser.add_argument("urls", nargs="+", metavar="URL", help="seed URL(s) to crawl")
    parser.add_argument("--depth", type=int, default=None, help="maximum crawl depth (default from settings)")
    parser.add_argument("--keyword", default="", help="search keyword the leads should be relevant to")
    parser.add_argument("--format", dest="fmt", choices=EXPORT_FORMATS, default="json", help="export format")
    parser.add_argument("--settings", default=None, help="YAML settings file")
    parser.add_argument(
        "--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="logging level",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None, container: Optional[Container] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    container = container or Container()
    if args.settings:
        container.settings.override(providers.Object(load_settings_file(args.settings, base=container.settings())))

    stop_event = threading.Event()

    def _handle_sigint(signum, frame):
        logger.warning("Interrupt received; finishing in-flight pages and stopping")
        stop_event.set()

    previous = signal.signal(signal.SIGINT, _handle_sigint)
    crawler = container.lead_crawler()
    try:
        report = crawler.crawl(args.urls, args.depth, keyword=args.keyword, stop_event=stop_event)
    finally:
        signal.signal(signal.SIGINT, previous)
        container.driver_factory().close()

    logger.info(
        "Fetched %d page(s), %d lead(s), %d duplicate(s), %d rejected; failures: %s",
        report.pages_fetched, len(report.leads), report.duplicates, report.rejected, report.failures or "none",
    )
    if not report.leads:
        logger.warning("No leads found; nothing exported")
        return 1

    path = container.lead_exporter().write(report.leads, args.fmt)
    print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
