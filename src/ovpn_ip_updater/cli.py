"""
CLI entry point for OpenVPN IP Updater.

This module provides the command-line interface, suitable for a crontab.
"""

from __future__ import annotations

import logging
import sys

from ovpn_ip_updater.config import ConfigValidationError, load_config, parse_args
from ovpn_ip_updater.logging_config import setup_logging
from ovpn_ip_updater.resolver import ResolutionError
from ovpn_ip_updater.routeros import RouterOSError, Session
from ovpn_ip_updater.updater import UpdaterError, check_and_update

logger = logging.getLogger(__name__)


def main() -> None:
    """
    Check the router's OpenVPN client once and fix its endpoint if needed.

    Parse command-line arguments, load configuration, connect to the router
    and run the update check. Exits with status 1 on any failure.
    """
    args = parse_args()
    try:
        config = load_config(args)
    except ConfigValidationError as e:
        print(e, file=sys.stderr)  # noqa: T201
        sys.exit(1)

    setup_logging(config.logging)

    router = config.router
    logger.info("Checking VPN on %s:%d.", router.host, router.port)
    try:
        with Session(
            router.host,
            router.port,
            router.user,
            router.password,
            timeout=router.timeout,
            logger=logging.getLogger("ovpn_ip_updater.routeros"),
        ) as session:
            result = check_and_update(session, config.vpn)
    except (RouterOSError, ResolutionError, UpdaterError) as e:
        logger.error("Error: %s", e)  # noqa: TRY400
        sys.exit(1)

    logger.info("Finished: %s.", result.outcome)


if __name__ == "__main__":
    main()
