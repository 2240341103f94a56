#!/usr/bin/env python
"""
Command-line interface for document structure reconstruction.

Usage:
    pagestruct --input <pdf_or_json> --output <output_dir> [options]

Examples:
    # Convert a text PDF to DOCX
    pagestruct --input document.pdf --output ./output --format docx

    # OCR a scanned PDF, pages 3-8 at high quality
    pagestruct --input scan.pdf --output ./output --mode ocr --pages range --start 3 --end 8 --quality high

    # Reconstruct from pre-extracted fragments
    pagestruct --input fragments.json --output ./output --mode text
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from .config import get_config
from .errors import ConfigurationError, PageStructError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("pagestruct")


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        description="Document Structure Reconstruction - convert PDF text or OCR output to an editable document",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Text PDF to DOCX and Markdown:
    pagestruct --input document.pdf --output ./output --format docx markdown

  Scanned PDF through OCR (first page only by default):
    pagestruct --input scan.pdf --output ./output --mode ocr

  Try the text layer first and report whether OCR is recommended:
    pagestruct --input document.pdf --output ./output --mode auto
        """
    )

    parser.add_argument("--input", "-i", required=True,
                        help="Input PDF, or JSON file of fragment / OCR pages")
    parser.add_argument("--output", "-o", required=True,
                        help="Output directory for generated files")
    parser.add_argument("--format", "-f", nargs="+", default=["json", "docx"],
                        choices=["json", "markdown", "docx", "all"],
                        help="Output format(s) (default: json docx)")
    parser.add_argument("--mode", choices=["text", "ocr", "auto"], default="text",
                        help="Reconstruction path (default: text)")

    text_group = parser.add_argument_group("text path")
    text_group.add_argument("--max-pages", type=int, default=None,
                            help="Maximum pages to read, 1-200 (default: 50)")
    text_group.add_argument("--no-tables", action="store_true",
                            help="Disable simple table detection")

    ocr_group = parser.add_argument_group("ocr path")
    ocr_group.add_argument("--pages", choices=["first", "range", "all"], default="first",
                           help="Pages to OCR (default: first)")
    ocr_group.add_argument("--start", type=int, default=None, help="First page of the range")
    ocr_group.add_argument("--end", type=int, default=None, help="Last page of the range")
    ocr_group.add_argument("--dpi", type=int, default=None,
                           help="Render DPI for OCR, 120-250 (default: 200)")
    ocr_group.add_argument("--quality", choices=["draft", "standard", "high"], default=None,
                           help="Render quality preset (ignored when --dpi is given)")
    ocr_group.add_argument("--lang", choices=["eng", "fra", "spa"], default="eng",
                           help="OCR language (default: eng)")

    parser.add_argument("--title", action="store_true",
                        help="Write a 'Converted from: <file>' line at the top of the output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Suppress non-error output")
    parser.add_argument("--version", action="version", version="%(prog)s 1.0.0")

    return parser


def _run_text(args, assembler, input_path: Path, input_type: str, progress):
    from .utils.guardrails import VectorOptions
    from .utils.io import iter_text_pages, load_fragment_pages

    options = VectorOptions(
        try_tables=not args.no_tables,
        max_pages=args.max_pages or assembler.config.guardrails.default_max_pages
    )
    options.validate(assembler.config.guardrails)

    if input_type == "pdf":
        pages = iter_text_pages(input_path, max_pages=options.max_pages)
    else:
        pages = load_fragment_pages(input_path)

    return assembler.reconstruct_from_vector_text(
        pages, options, progress=progress, source_file=str(input_path)
    )


def _run_ocr(args, assembler, input_path: Path, input_type: str, progress):
    from .utils.guardrails import OcrOptions, plan_ocr_run
    from .utils.io import get_pdf_page_count, iter_pdf_pages, load_ocr_pages

    if input_type == "json":
        pages = load_ocr_pages(input_path)
        return assembler.reconstruct_from_ocr(
            pages, OcrOptions(), progress=progress, source_file=str(input_path)
        )

    from .utils.ocr_text import TesseractEngine

    total = get_pdf_page_count(input_path)
    plan = plan_ocr_run(
        total,
        mode=args.pages,
        start=args.start,
        end=args.end,
        dpi=args.dpi,
        quality=args.quality,
        config=assembler.config.guardrails
    )

    logger.info("Starting OCR engine...")
    engine = TesseractEngine(language=args.lang)
    images = iter_pdf_pages(input_path, plan.first_page, plan.last_page, dpi=plan.dpi)
    pages = (engine.recognize_page(image) for image in images)

    return assembler.reconstruct_from_ocr(
        pages, OcrOptions(first_page=plan.first_page), progress=progress, source_file=str(input_path)
    )


def run_pipeline(args) -> int:
    """Run the reconstruction pipeline."""
    from .utils.assembler import DocumentAssembler
    from .utils.export import DocumentExporter
    from .utils.io import ProcessingProgress, detect_input_type, ensure_dir
    from .utils.nodes import NodeType

    start_time = time.time()

    output_dir = ensure_dir(args.output)
    input_path = Path(args.input)
    input_type = detect_input_type(input_path)
    logger.info(f"Input type detected: {input_type}")

    if input_type == "unknown":
        logger.error(f"Unsupported or missing input: {input_path}")
        return 1

    config = get_config()
    if config.debug_mode:
        logging.getLogger().setLevel(logging.DEBUG)
    assembler = DocumentAssembler(config)
    progress = ProcessingProgress()

    if args.mode == "ocr":
        document = _run_ocr(args, assembler, input_path, input_type, progress)
    else:
        document = _run_text(args, assembler, input_path, input_type, progress)

    title = f"Converted from: {input_path.name}" if args.title else None
    exporter = DocumentExporter(output_dir, input_path.stem)
    results = exporter.export(document, args.format, title=title)
    for fmt, path in results.items():
        logger.info(f"Exported {fmt}: {path}")

    elapsed = time.time() - start_time

    if not args.quiet:
        print("\n" + "=" * 60)
        print("DOCUMENT RECONSTRUCTION COMPLETE")
        print("=" * 60)
        print(f"Source: {input_path}")
        print(f"Output: {output_dir}")
        print(f"Pages read: {document.pages_read}"
              + (f" of {document.total_pages}" if document.total_pages else ""))
        print(f"Nodes: {len(document.nodes)}")
        print(f"  Headings: {document.count(NodeType.HEADING)}")
        print(f"  Tables: {document.count(NodeType.TABLE)}")
        print(f"  Scan warnings: {len(document.scan_warnings)}")
        print(f"Processing time: {elapsed:.2f}s")
        for warning in document.warnings:
            print(f"Warning: {warning}")
        if args.mode == "auto" and document.likely_scanned:
            print("Recommendation: re-run with --mode ocr")
        print("=" * 60)

    return 0


def main(argv: Optional[list] = None):
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    try:
        exit_code = run_pipeline(args)
    except ConfigurationError as e:
        logger.error(str(e))
        exit_code = 2
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        exit_code = 130
    except (PageStructError, ImportError, RuntimeError, FileNotFoundError, ValueError) as e:
        logger.error(f"Processing failed: {e}")
        if args.verbose:
            raise
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
