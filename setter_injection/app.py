import argparse
import logging
from typing import List, Optional

from beandi import ClassPathXmlApplicationContext, FileSystemXmlApplicationContext


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="setter_injection",
        description="Builds a laptop, injecting its OS through a setter.",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="XML bean definitions file to use instead of the packaged one",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="log the container activity"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = get_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.config:
        context = FileSystemXmlApplicationContext(args.config)
    else:
        context = ClassPathXmlApplicationContext("spring-config.xml")

    with context:
        laptop = context.get_bean("laptop")
        laptop.build()
    return 0
