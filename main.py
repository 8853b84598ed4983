import sys
import os
import argparse

# Inject the webshot-service directory into sys.path
# so the packages (webshot, rendering, imagestore, api) resolve from a checkout.
sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), "webshot-service"))

from rendering.models import RenderOptions
from webshot.core import ServerConfig, setup_logger
from webshot.errors import WebshotError
from webshot.url_utils import display_name, validate_url

logger = setup_logger("webshot.cli")


def _options_from_args(args) -> RenderOptions:
    return RenderOptions(
        width=args.width,
        height=args.height,
        delay_ms=args.delay,
        user_agent=args.user_agent,
        full_page=args.full,
    )


def cmd_serve(args):
    from api.app import app

    config = ServerConfig.from_env()
    host = args.host or config.host
    port = args.port or config.port
    debug = args.debug or config.debug

    if config.log_file:
        setup_logger("webshot", log_file=config.log_file)

    logger.info(f"[SYSTEM] Webshot service listening on {host}:{port}")
    app.run(host=host, port=port, debug=debug, threaded=True)
    return 0


def cmd_generate(args):
    from webshot.service import build_service

    validate_url(args.url)
    output = args.output or display_name(args.url)
    with build_service().generate(args.url, _options_from_args(args)) as image:
        data = image.read_bytes()

    with open(output, "wb") as f:
        f.write(data)
    print(output)
    return 0


def cmd_store(args):
    from webshot.service import build_service

    print(build_service().store(args.name, args.url, _options_from_args(args)))
    return 0


def cmd_fetch(args):
    from webshot.service import build_service

    print(build_service().fetch_redirect_target(args.name))
    return 0


def _add_render_options(parser):
    parser.add_argument("--width", type=int, help="Viewport width in pixels (default 1024)")
    parser.add_argument("--height", type=int, help="Viewport height in pixels (default 768, ignored with --full)")
    parser.add_argument("--delay", type=int, help="Milliseconds to wait after load (default 0, max 10000)")
    parser.add_argument("--user-agent", dest="user_agent", help="User agent to present")
    parser.add_argument("--full", action="store_true", help="Capture the full page height")


def build_parser():
    parser = argparse.ArgumentParser(description="Webshot: screenshot URLs and store them by name")
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the HTTP service")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    serve.add_argument("--debug", action="store_true")
    serve.set_defaults(func=cmd_serve)

    generate = subparsers.add_parser("generate", help="Render a URL to a local PNG")
    generate.add_argument("url")
    generate.add_argument("-o", "--output", help="Output file (default: derived from host and path)")
    _add_render_options(generate)
    generate.set_defaults(func=cmd_generate)

    store = subparsers.add_parser("store", help="Render a URL and store it under a name")
    store.add_argument("name")
    store.add_argument("url")
    _add_render_options(store)
    store.set_defaults(func=cmd_store)

    fetch = subparsers.add_parser("fetch", help="Print the signed URL of a stored image")
    fetch.add_argument("name")
    fetch.set_defaults(func=cmd_fetch)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        args = parser.parse_args(["serve"] + list(argv or []))

    try:
        return args.func(args)
    except WebshotError as e:
        logger.error(f"[CLI] {e.kind.value}: {e.message}")
        return 1
    except ValueError as e:
        logger.error(f"[CLI] Configuration error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
