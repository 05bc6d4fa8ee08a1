#!/usr/bin/env python3
"""
Invoice Template Studio - Main Entry Point.

This is the main entry point for the template studio. It provides a
command-line interface and programmatic access to the render pipeline:
record JSON (or documents sent to an extraction service) merged with a
template and written as PDF, PNG preview, CSV or Excel.

Usage:
    Command Line:
        python main.py --input record.json --output outputs/
        python main.py --input record.json --template template.json --format pdf csv
        python main.py --input ./timesheets/ --extract --kind timesheet --rates rates.csv

    Python:
        from main import run_render
        outputs = run_render("record.json")

Author: ML Engineering Team
Version: 1.0.0
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

# Import project modules
from config import ConfigurationManager, set_config
from template_studio.utils.exceptions import TemplateStudioError
from template_studio.utils.helpers import document_filename, ensure_directory
from template_studio.utils.logger import get_logger, setup_logger_from_config

OUTPUT_FORMATS = ('pdf', 'png', 'csv', 'xlsx')


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Invoice Template Studio",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Render a record with the built-in template:
        python main.py --input record.json

    Render with a saved template to PDF and CSV:
        python main.py --input record.json --template template.json --format pdf csv

    Extract a folder of timesheets, apply catalog rates and zip the PDFs:
        python main.py --input ./timesheets/ --extract --kind timesheet --rates rates.csv
        """
    )

    # Input/Output arguments
    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="Record JSON file, or a document/directory with --extract"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output directory (default: paths.output_dir)"
    )

    parser.add_argument(
        "--template", "-t",
        type=str,
        default=None,
        help="Template JSON file (flat or stored-row form); built-in template if omitted"
    )

    parser.add_argument(
        "--format", "-f",
        nargs="+",
        choices=OUTPUT_FORMATS,
        default=["pdf"],
        help="Output formats (default: pdf)"
    )

    # Processing options
    parser.add_argument(
        "--kind", "-k",
        choices=["invoice", "po", "timesheet"],
        default="invoice",
        help="Document kind used for the template merge"
    )

    parser.add_argument(
        "--rates", "-r",
        type=str,
        default=None,
        help="Rate catalog CSV; matching rates are applied by client reference"
    )

    parser.add_argument(
        "--invoice-number",
        type=str,
        default=None,
        help="Invoice number set when rates are applied"
    )

    parser.add_argument(
        "--extract",
        action="store_true",
        help="Send input documents to the extraction service"
    )

    parser.add_argument(
        "--endpoint",
        type=str,
        default=None,
        help="Extraction service URL (overrides extraction.endpoint)"
    )

    parser.add_argument(
        "--words",
        action="store_true",
        help="Print the grand total and amount in words"
    )

    parser.add_argument(
        "--zoom",
        type=float,
        default=1.0,
        help="Zoom factor for PNG previews (default: 1.0)"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    # Logging options
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    return parser.parse_args(argv)


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Initialize the studio with configuration and logging.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Initialized configuration manager.
    """
    # Load configuration
    config = ConfigurationManager(args.config)
    if args.endpoint:
        set_config("extraction.endpoint", args.endpoint)

    # Setup logging
    if args.debug:
        set_config("logging.level", "DEBUG")
    logger = setup_logger_from_config()

    logger.info("=" * 60)
    logger.info("INVOICE TEMPLATE STUDIO")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.0')}")
    logger.info(f"Input: {args.input}")
    logger.info(f"Formats: {', '.join(args.format)}")

    return config


def load_template(template_path: Optional[str]):
    """Load a template JSON file, or the built-in template when no path is given."""
    from template_studio.model.defaults import default_template
    from template_studio.model.template import TemplateData

    if not template_path:
        return default_template()
    data = json.loads(Path(template_path).read_text(encoding='utf-8'))
    if isinstance(data, dict) and isinstance(data.get('data'), dict):
        return TemplateData.from_row(data)
    return TemplateData.from_dict(data)


def load_records(input_path: str) -> List[Dict[str, Any]]:
    """
    Load record JSON: a single object or a list of objects.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file holds neither an object nor a list.
    """
    path = Path(input_path)
    if not path.is_file():
        raise FileNotFoundError(f"Input file not found: {path}")
    data = json.loads(path.read_text(encoding='utf-8'))
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list) and all(isinstance(item, dict) for item in data):
        return data
    raise ValueError(f"Expected a record object or a list of records in {path}")


def collect_documents(input_path: str) -> List[Path]:
    """Files to extract: the input file itself or every supported file in a directory."""
    from template_studio.queue.intake import DocumentIntake

    path = Path(input_path)
    if not path.exists():
        raise FileNotFoundError(f"Input path not found: {path}")
    if path.is_file():
        return [path]

    intake = DocumentIntake()
    return sorted(
        p for p in path.iterdir()
        if p.is_file() and intake.guess_mime_type(p.name) in intake.supported_mime_types
    )


def run_render(
    input_path: str,
    output_dir: Optional[str] = None,
    template_path: Optional[str] = None,
    formats: Optional[List[str]] = None,
    kind: str = "invoice",
    rates_path: Optional[str] = None,
    invoice_number: Optional[str] = None,
    zoom: float = 1.0
) -> Dict[str, Any]:
    """
    Merge record JSON with a template and write the requested outputs.

    This is the main programmatic entry point for rendering.

    Args:
        input_path: Record JSON file (object or list of objects).
        output_dir: Directory for outputs.
        template_path: Template JSON file; built-in template if None.
        formats: Any of pdf, png, csv, xlsx.
        kind: Document kind used for the merge.
        rates_path: Optional rate catalog CSV.
        invoice_number: Invoice number set when rates are applied.
        zoom: Zoom factor for PNG previews.

    Returns:
        Dictionary with the merged records and written paths.

    Example:
        >>> outputs = run_render("record.json", formats=["pdf", "csv"])
        >>> print(outputs['pdf_paths'])
    """
    logger = get_logger(__name__)

    from template_studio.model.document import DocumentKind, InvoiceData
    from template_studio.output_handler import OutputHandler
    from template_studio.rates import RateMatcher, load_rates_csv

    formats = formats or ["pdf"]
    template = load_template(template_path)
    records = [
        InvoiceData.from_dict(data).merge_with_template(template, DocumentKind(kind))
        for data in load_records(input_path)
    ]

    if rates_path:
        rates = load_rates_csv(rates_path)
        matcher = RateMatcher()
        for index, record in enumerate(records):
            suggestion = matcher.suggest(record, rates)
            if suggestion is None:
                logger.info(f"No catalog rates match reference '{record.metadata.client_ref or ''}'")
                continue
            if invoice_number is not None:
                suggestion.invoice_number = invoice_number
            records[index] = matcher.apply_suggestion(record, suggestion)

    handler = OutputHandler(
        pdf_enabled='pdf' in formats,
        csv_enabled='csv' in formats,
        excel_enabled='xlsx' in formats,
        output_dir=output_dir
    )
    outputs = handler.save(template, records)
    outputs['records'] = records

    if 'png' in formats:
        from template_studio.rendering.preview_renderer import PreviewRenderer

        preview = PreviewRenderer()
        directory = ensure_directory(handler.output_dir)
        outputs['png_paths'] = []
        for record in records:
            image = preview.render(template, record, zoom=zoom, show_grid=False)
            name = document_filename(
                record.metadata.invoice_number,
                fallback=record.original_file_name or template.name,
                extension=".png"
            )
            path = directory / name
            image.save(path)
            outputs['png_paths'].append(path)
            logger.info(f"Preview saved to: {path}")

    return outputs


def run_extraction(
    input_path: str,
    output_dir: Optional[str] = None,
    template_path: Optional[str] = None,
    kind: str = "invoice",
    rates_path: Optional[str] = None,
    invoice_number: Optional[str] = None
) -> Dict[str, Any]:
    """
    Send documents to the extraction service and zip the rendered PDFs.

    Rate suggestions found for timesheets are applied automatically.

    Returns:
        Dictionary with the queue items and the batch archive path.
    """
    logger = get_logger(__name__)

    from template_studio.queue import DocumentIntake, DocumentQueue, HttpExtractor, QueueStatus
    from template_studio.rates import load_rates_csv

    intake = DocumentIntake()
    files = []
    for path in collect_documents(input_path):
        try:
            files.append(intake.load(path))
        except TemplateStudioError as e:
            logger.warning(f"Skipping {path.name}: {e}")

    queue = DocumentQueue(
        kind,
        HttpExtractor(),
        template=load_template(template_path),
        rates=load_rates_csv(rates_path) if rates_path else None,
    )
    queue.add_files(files)
    asyncio.run(queue.process_pending())

    for item in queue.pending_suggestions():
        queue.apply_suggestion(item.id, invoice_number)

    failed = [item for item in queue.items if item.status == QueueStatus.ERROR]
    for item in failed:
        logger.warning(f"{item.filename}: {item.message}")

    archive = None
    if queue.successful_items():
        archive = asyncio.run(queue.export_batch(output_dir))

    return {'items': queue.items, 'archive_path': archive, 'failed': len(failed)}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    try:
        # Parse command-line arguments
        args = parse_arguments(argv)

        # Initialize system
        initialize_system(args)
        logger = get_logger(__name__)

        if args.extract:
            outputs = run_extraction(
                input_path=args.input,
                output_dir=args.output,
                template_path=args.template,
                kind=args.kind,
                rates_path=args.rates,
                invoice_number=args.invoice_number
            )
            logger.info("=" * 60)
            logger.info(
                f"Extraction complete. {len(outputs['items'])} document(s), "
                f"{outputs['failed']} failed."
            )
            if outputs['archive_path']:
                logger.info(f"Batch archive: {outputs['archive_path']}")
            logger.info("=" * 60)
            return 0 if outputs['failed'] == 0 else 1

        outputs = run_render(
            input_path=args.input,
            output_dir=args.output,
            template_path=args.template,
            formats=args.format,
            kind=args.kind,
            rates_path=args.rates,
            invoice_number=args.invoice_number,
            zoom=args.zoom
        )

        if args.words:
            for record in outputs['records']:
                print(f"{record.currency} {record.grand_total:,.2f}: {record.amount_in_words}")

        logger.info("=" * 60)
        logger.info(f"Render complete. Processed {len(outputs['records'])} record(s).")
        logger.info("=" * 60)

        return 0

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except TemplateStudioError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
