"""CLI entry point for Repscope."""

import argparse
import os

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="repscope",
        description="Search reputation monitoring server",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Bind host")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    parser.add_argument("--data-dir", help="Directory holding projects.json (overrides DATA_DIR)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Application log level (overrides REPSCOPE_LOG_LEVEL)",
    )
    args = parser.parse_args()

    # Settings are read from the environment when the app starts
    if args.data_dir:
        os.environ["DATA_DIR"] = args.data_dir
    if args.log_level:
        os.environ["REPSCOPE_LOG_LEVEL"] = args.log_level

    uvicorn.run(
        "repscope.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=(args.log_level or "info").lower(),
    )


if __name__ == "__main__":
    main()
