# FirePass - Main Entry Point
#
# Starts the local vault API. The session token printed here must be
# sent as X-Session-Token by the UI.

import sys
import argparse

from . import __version__
from .core import get_audit_logger, load_config, EventType, EventSeverity


def main(argv=None):
    """Parse arguments and run the FirePass API server."""
    config = load_config()

    parser = argparse.ArgumentParser(
        prog="firepass",
        description="FirePass - encrypted local credential vault",
    )

    parser.add_argument(
        "--host",
        default=config.host,
        help=f"API host (default: {config.host})"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=config.port,
        help=f"API port (default: {config.port})"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"FirePass v{__version__}"
    )

    args = parser.parse_args(argv)

    get_audit_logger().log_event(
        event_type=EventType.SYSTEM_START,
        severity=EventSeverity.INFO,
        message="FirePass starting",
        details={"version": __version__, "host": args.host, "port": args.port}
    )

    from .api.main import start_api_server
    from .api.security import initialize_session_token

    token = initialize_session_token()

    print("=" * 60)
    print(f"  FirePass v{__version__}")
    print(f"  API: http://{args.host}:{args.port}/api/vault")
    print(f"  Session token: {token}")
    print("  Press Ctrl+C to stop")
    print("=" * 60)

    try:
        start_api_server(host=args.host, port=args.port)
    except KeyboardInterrupt:
        print("\nShutting down...")
    except Exception as e:
        print(f"\nError: {str(e)}")
        get_audit_logger().log_event(
            event_type=EventType.SYSTEM_STOP,
            severity=EventSeverity.CRITICAL,
            message=f"FirePass API crashed: {str(e)}"
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
