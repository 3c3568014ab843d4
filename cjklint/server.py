"""cjklint HTTP server.

Run:
  cjklint-server --port 18081
Then:
  curl -s localhost:18081/api/v1/lint -d '{"text": "汉字和English"}'
"""

from __future__ import annotations

import argparse
import sys

import uvicorn


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="cjklint-server", add_help=True)
    parser.add_argument("--host", default="127.0.0.1", help="Bind host (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=18081, help="Bind port (default: 18081)")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug", "trace"],
        help="uvicorn log level (default: info)",
    )
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")

    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    uvicorn.run(
        "cjklint.api:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        reload=bool(args.reload),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
