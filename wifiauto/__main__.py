"""
Command line for the wifiauto agent.

usage:
    python -m wifiauto [options] [commands]

examples:
    # Switch monitoring on and keep the agent running
    python -m wifiauto --monitoring on --run

    # Geofencing needs a platform bridge and the location capability
    python -m wifiauto --grant location --zmq-pub tcp://127.0.0.1:5570 \\
            --zmq-sub tcp://127.0.0.1:5571 --geofencing on --run

    # Standalone ZMQ forwarder between the agent and the platform
    python -m wifiauto --run-proxy

    # Diagnostics
    python -m wifiauto --show-log
    python -m wifiauto --export-region region.kml
"""

import asyncio
import json
import sys
from argparse import ArgumentParser
from typing import List, Optional

from .config import AgentConfig
from .geofence import write_region_kml
from .grace import GraceActivation
from .log import configure_logging, get_logger
from .runtime import Agent
from .zmqutil import run_zmq_proxy

logger = get_logger()


def _on_off(value: str) -> bool:
    value = value.strip().lower()
    if value in ("on", "true", "1", "yes"):
        return True
    if value in ("off", "false", "0", "no"):
        return False
    raise ValueError(value)


_on_off.__name__ = "on|off"


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(description="wifiauto - automatic Wi-Fi radio management")
    parser.add_argument("--config", help="settings file", default="wifiauto-settings.json",
            dest="config_path")
    parser.add_argument("--event-log", help="diagnostic event log file",
            default="wifiauto-events.log", dest="event_log_path")
    parser.add_argument("--log-level", help="log level (DEBUG, INFO, WARNING, ERROR)",
            default="INFO", dest="log_level")
    parser.add_argument("--log-file", help="also write log records to this file",
            default=None, dest="log_file")
    parser.add_argument("--interface", help="wireless interface (default: any)", default=None)
    parser.add_argument("--grant", help="granted capability (repeatable), e.g. location",
            action="append", default=[], dest="granted")
    parser.add_argument("--grace-minutes", help="grace period length in minutes",
            type=float, default=15.0, dest="grace_minutes")
    parser.add_argument("--grace-policy",
            help="comma separated grace activation points "
                 "[geofence_enable, user_enable, monitoring_start, none]",
            default="geofence_enable,user_enable", dest="grace_policy")
    parser.add_argument("--zmq-pub", help="endpoint the agent publishes commands to",
            default=None, dest="zmq_pub_addr")
    parser.add_argument("--zmq-sub", help="endpoint the agent receives platform events from",
            default=None, dest="zmq_sub_addr")
    parser.add_argument("--run-proxy", help="run zmq proxy", action="store_true",
            default=False, dest="run_zmq_proxy")

    # Commands
    parser.add_argument("--monitoring", help="switch Wi-Fi monitoring on|off", type=_on_off,
            default=None)
    parser.add_argument("--geofencing", help="switch geofencing on|off", type=_on_off,
            default=None)
    parser.add_argument("--boot", help="re-arm persisted schedules and region",
            action="store_true", default=False)
    parser.add_argument("--show-log", help="print the diagnostic event log",
            action="store_true", default=False, dest="show_log")
    parser.add_argument("--reset-log", help="clear the diagnostic event log",
            action="store_true", default=False, dest="reset_log")
    parser.add_argument("--export-region", help="write the trusted area as KML to PATH",
            default=None, dest="export_region", metavar="PATH")
    parser.add_argument("--status", help="print current settings as JSON",
            action="store_true", default=False)
    parser.add_argument("--run", help="keep the agent running", action="store_true",
            default=False)
    return parser


def config_from_args(args) -> AgentConfig:
    return AgentConfig(
        config_path=args.config_path,
        event_log_path=args.event_log_path,
        interface=args.interface,
        granted=frozenset(args.granted),
        grace_period_s=args.grace_minutes * 60,
        grace_policy=args.grace_policy,
        zmq_pub_addr=args.zmq_pub_addr,
        zmq_sub_addr=args.zmq_sub_addr,
        log_level=args.log_level,
        log_file=args.log_file,
    )


async def _run_agent(agent: Agent, args) -> int:
    if args.run:
        await agent.start()
    elif args.boot:
        await agent.controller.on_boot_completed()

    await agent.apply(monitoring=args.monitoring, geofencing=args.geofencing)

    if args.geofencing and not args.run:
        logger.warning("Location acquisition only proceeds while the agent runs (--run)")

    try:
        if args.run:
            await agent.serve()
    finally:
        await agent.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the wifiauto CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level, log_file=args.log_file)

    if args.run_zmq_proxy:
        run_zmq_proxy()
        return 0

    try:
        GraceActivation.parse(args.grace_policy)
    except ValueError as e:
        parser.error(str(e))
    if bool(args.zmq_pub_addr) != bool(args.zmq_sub_addr):
        parser.error("--zmq-pub and --zmq-sub must be given together")

    agent = Agent(config_from_args(args))

    if args.reset_log:
        agent.event_log.reset()
    if args.show_log:
        for line in agent.event_log.read_all():
            print(line)
    if args.export_region:
        region = agent.controller.geofence.current_region()
        if region is None:
            logger.error("No trusted area registered yet")
            return 1
        write_region_kml(region, args.export_region)
        logger.info(f"Trusted area written to {args.export_region}")

    if args.run or args.boot or args.monitoring is not None or args.geofencing is not None:
        code = asyncio.run(_run_agent(agent, args))
        if code:
            return code

    if args.status:
        print(json.dumps(agent.controller.status(), indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
