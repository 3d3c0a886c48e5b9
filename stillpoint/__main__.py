"""python -m stillpoint: terminal host, or the web host with --web."""

import argparse
import sys


def _run_web(argv: list[str]) -> None:
    parser = argparse.ArgumentParser(prog="stillpoint --web")
    parser.add_argument("--config", "-c", type=str, help="Path to configuration file")
    parser.add_argument("--host", type=str, help="Bind address")
    parser.add_argument("--port", "-p", type=int, help="Port to listen on")
    parser.add_argument("--debug", action="store_true", help="Flask debug mode")
    args = parser.parse_args(argv)

    from .web import run_web
    run_web(config_path=args.config, host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    if "--web" in sys.argv:
        sys.argv.remove("--web")
        _run_web(sys.argv[1:])
    else:
        from .main import main
        main()
