"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           main.py
Version:        1.0.0
Description:    Command line entry point. Loads configuration and logging,
                then runs one merge, extract or image workflow and writes the
                assembled PDF.
------------------------------------------------------------------------------
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from PyQt6.QtCore import QCoreApplication

from pageflux.config import AppConfig
from pageflux.exceptions import PageFluxError
from pageflux.logger import get_logger, setup_logging
from pageflux.models.options import ImageLayout, OutputOptions
from pageflux.models.types import ColorMode, Orientation, PageSize, WorkflowMode
from pageflux.session import ComposerSession

# Keeps the Qt core application alive for the whole run
_qt_app = None

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_EMPTY = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pageflux", description="PageFlux - Compose PDF documents from pages")
    parser.add_argument("-P", "--profile", type=str, help="Application profile for isolation (e.g. 'dev', 'test')")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-o", "--output", type=str, help="Output file (default: derived from input names)")
    common.add_argument("--title", default="", help="Document title")
    common.add_argument("--author", default=None, help="Document author (default: from settings)")
    common.add_argument("--subject", default="", help="Document subject")
    common.add_argument("--keywords", default="", help="Comma separated keywords")
    common.add_argument("--user-password", default="", help="Password required to open the document")
    common.add_argument("--owner-password", default="", help="Password for permissions (default: user password)")
    common.add_argument("--no-print", action="store_true", help="Disallow printing when encrypted")
    common.add_argument("--no-copy", action="store_true", help="Disallow copying text when encrypted")

    sub = parser.add_subparsers(dest="command", required=True)

    p_merge = sub.add_parser("merge", parents=[common], help="Merge PDF files in the given order")
    p_merge.add_argument("files", nargs="+", help="PDF files")

    p_extract = sub.add_parser("extract", parents=[common], help="Extract and reorder pages of one PDF")
    p_extract.add_argument("file", help="PDF file")
    p_extract.add_argument("--order", required=True, help="Ordered page range, e.g. '3,1-2'")

    p_images = sub.add_parser("images", parents=[common], help="Convert images to one PDF")
    p_images.add_argument("files", nargs="+", help="Image files")
    p_images.add_argument("--page-size", choices=[p.value for p in PageSize], help="Page size")
    p_images.add_argument("--orientation", choices=[o.value for o in Orientation], help="Page orientation")
    p_images.add_argument("--margin", type=int, help="Margin in millimetres")
    p_images.add_argument("--color-mode", choices=[c.value for c in ColorMode], default=ColorMode.COLOR.value)
    p_images.add_argument("--quality", type=float, default=0.75, help="JPEG quality 0.1-1.0")

    return parser


def options_from_args(args: argparse.Namespace, config: AppConfig) -> OutputOptions:
    return OutputOptions(
        title=args.title,
        author=args.author if args.author is not None else config.get_default_author(),
        subject=args.subject,
        keywords=args.keywords,
        user_password=args.user_password,
        owner_password=args.owner_password,
        allow_print=not args.no_print,
        allow_copy=not args.no_copy,
        color_mode=getattr(args, "color_mode", ColorMode.COLOR.value),
        image_quality=getattr(args, "quality", 0.75),
    )


async def run(args: argparse.Namespace, config: AppConfig) -> int:
    """Runs one workflow. Returns the process exit code."""
    logger = get_logger("cli")
    options = options_from_args(args, config)

    kwargs = {"options": options}
    if args.command == "images":
        kwargs["image_layout"] = ImageLayout(
            page_size=args.page_size or config.get_page_size(),
            orientation=args.orientation or config.get_orientation(),
            margin_mm=args.margin if args.margin is not None else config.get_margin_mm(),
        )

    mode = {
        "merge": WorkflowMode.MERGE,
        "extract": WorkflowMode.SPLIT,
        "images": WorkflowMode.IMAGES,
    }[args.command]
    session = ComposerSession.from_config(mode, config, **kwargs)

    try:
        if args.command == "extract":
            await session.load_source(Path(args.file).read_bytes(), Path(args.file).name)
            session.apply_page_range(args.order)
        elif args.command == "images":
            for path in map(Path, args.files):
                await session.load_image(path.read_bytes(), path.name)
        else:
            for path in map(Path, args.files):
                await session.load_source(path.read_bytes(), path.name)

        result = await session.trigger_download_assembly(options)
        if result is None:
            print(QCoreApplication.translate("PageFlux", "Nothing selected."), file=sys.stderr)
            return EXIT_EMPTY

        output = Path(args.output) if args.output else Path(session.download_name("pdf"))
        output.write_bytes(result.data)
        logger.info(f"Wrote {result.page_count} pages to {output}")
        print(f"{output} ({result.page_count} pages)")
        return EXIT_OK
    except PageFluxError as e:
        logger.error(f"{args.command} failed: {e}")
        print(e.user_message(), file=sys.stderr)
        return EXIT_ERROR
    except OSError as e:
        logger.error(f"I/O error: {e}")
        print(str(e), file=sys.stderr)
        return EXIT_ERROR
    finally:
        session.reset()


def main(argv: Optional[List[str]] = None) -> int:
    """
    PageFlux Entry Point.
    Initializes configuration and logging, then runs the requested workflow.
    """
    args = build_parser().parse_args(argv)

    app_id = "pageflux"
    if args.profile:
        app_id = f"pageflux-{args.profile}"
    global _qt_app
    _qt_app = QCoreApplication.instance() or QCoreApplication([sys.argv[0]])
    _qt_app.setApplicationName(app_id)

    app_config = AppConfig(profile=args.profile)

    setup_logging(
        level=app_config.get_log_level(),
        log_file=str(app_config.get_log_file_path()),
        component_levels=app_config.get_log_components()
    )
    get_logger("cli").info(f"PageFlux started (Profile: {args.profile or 'default'})")

    return asyncio.run(run(args, app_config))


if __name__ == "__main__":
    sys.exit(main())
