# Main script to orchestrate the knowledge-base export
import logging
import sys

from config_loader import load_config
from logger_setup import setup_logging
from content_renderer import get_converter, detect_pdf_engine, PdfRenderer
from exporter import export_knowledge_base, fetch_categories


def preflight(config):
    """
    Startup checks. Returns (converter, pdf_renderer) or None when the run
    cannot start. PDF generation silently degrades to disabled.
    """
    converter = get_converter(config['converter'])
    if not converter.is_available():
        logging.error(f"Missing required tool for the '{config['converter']}' converter.")
        logging.error("Install it or set CONVERTER=html2text and try again.")
        return None

    pdf_renderer = None
    if config['generate_pdf']:
        engine = detect_pdf_engine(config['pdf_engines'])
        if engine:
            pdf_renderer = PdfRenderer(engine)
        else:
            config['generate_pdf'] = False
    return converter, pdf_renderer


def log_summary(stats, config):
    logging.info("=" * 39)
    logging.info("Export complete!")
    logging.info(f"Markdown files:   {stats.exported}")
    if config['generate_pdf']:
        logging.info(f"PDF files:        {stats.pdfs}")
    if stats.skipped_unchanged:
        logging.info(f"Unchanged:        {stats.skipped_unchanged}")
    if stats.skipped_drafts:
        logging.info(f"Drafts skipped:   {stats.skipped_drafts}")
    if stats.backups:
        logging.info(f"Backups written:  {stats.backups}")
    if stats.failed:
        logging.warning(f"Failed/empty:     {stats.failed}")
    logging.info(f"Output directory: {config['output_dir']}")
    logging.info("=" * 39)


# --- Main Execution ---
def main(argv=None):
    """Main function to orchestrate the export. Returns the process exit code."""
    argv = sys.argv[1:] if argv is None else argv
    config_path = argv[0] if argv else "config.json"

    try:
        config = load_config(config_path)
    except ValueError as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(config['log_file'])

    prepared = preflight(config)
    if prepared is None:
        return 1
    converter, pdf_renderer = prepared

    logging.info("Starting Freshservice Solutions export...")
    logging.info(f"Domain: {config['helpdesk_host']}")
    logging.info(f"Output: {config['output_dir']}")

    logging.info("Fetching categories...")
    categories = fetch_categories(config)
    if categories is None:
        logging.error("Failed to fetch solution categories. Check your API key and domain.")
        return 1
    if not categories:
        logging.warning("No solution categories found. Check your API key and domain.")
        return 1
    logging.info(f"Found {len(categories)} category/categories")

    stats = export_knowledge_base(categories, config, converter, pdf_renderer)
    log_summary(stats, config)
    return 0


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
