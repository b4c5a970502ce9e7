"""
Suricata correlation source: standalone lookup tool.

Runs the same startup phases the host pipeline would (config, EveBox version
check, field registration) against an in-process RecordingHost, then
correlates each flow tuple given on the command line and prints the matches.

    suricata-wise --config config/suricata.yaml "1490640063;tcp;10.0.2.2;57000;10.0.2.15;22"

Environment variables:
    EVBOX_URL        Override evBox from the config file
    SURICATA_FIELDS  Override the field list, e.g. "severity;signature"
    SURICATA_DEBUG   Override the debug level
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from .bootstrap import init_source
from .config import ConfigLoader
from .errors import ConfigError
from .host import RecordingHost

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="suricata-wise",
        description="Correlate flow tuples with Suricata alerts stored in EveBox",
    )
    parser.add_argument(
        "--config",
        default=ConfigLoader.DEFAULT_CONFIG_PATH,
        help="YAML config file (default: %(default)s)",
    )
    parser.add_argument("tuples", nargs="+", help='Flow tuples, e.g. "1490640063;tcp;10.0.2.2;57000;10.0.2.15;22"')
    return parser.parse_args(argv)


async def run(config_path: str, tuples: list[str]) -> int:
    """Start the source and look up each tuple; returns the process exit code."""
    try:
        config = ConfigLoader(config_path).load()
    except (OSError, ConfigError) as exc:
        logger.error("Cannot load config %s: %s", config_path, exc)
        return 1

    host = RecordingHost(debug=config.debug)
    running = await init_source(host, config=config)
    if running is None:
        return 1

    names = {d.handle: d.identifier for d in running.source.fields}
    try:
        results = await asyncio.gather(*[running.source.lookup(t) for t in tuples])
        for raw, result in zip(tuples, results):
            if result is None:
                print(f"{raw}: no correlation found")
                continue
            print(f"{raw}: {result.num} values")
            for handle, value in result.pairs:
                print(f"  {names[handle]} = {value}")
    finally:
        await running.close()
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stdout,
    )
    args = parse_args(argv)
    try:
        sys.exit(asyncio.run(run(args.config, args.tuples)))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()
