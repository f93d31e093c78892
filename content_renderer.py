# Module for HTML -> Markdown conversion, document rendering and PDF output

import json
import logging
import os
import re
import shutil
import subprocess

import html2text
from bs4 import BeautifulSoup

import constants # Import constants

logger = logging.getLogger(__name__)


class ConversionError(Exception):
    """Raised when a converter cannot run at all."""


# --- HTML -> Markdown ---
def _plain_text_fallback(html_string):
    return BeautifulSoup(html_string, 'html.parser').get_text('\n').strip()


class Html2TextConverter:
    """Converts with html2text, keeping links and images and disabling wrapping."""

    name = constants.CONVERTER_HTML2TEXT

    def is_available(self):
        return True

    def convert(self, html_string):
        if not html_string:
            return ''
        try:
            h = html2text.HTML2Text()
            h.ignore_links = False
            h.ignore_images = False
            h.body_width = 0 # Prevent line wrapping
            return h.handle(html_string)
        except Exception as e:
            logger.warning(f"    html2text conversion issue, falling back to plain text: {e}")
            return _plain_text_fallback(html_string)


class PandocConverter:
    """Converts with `pandoc -f html -t gfm --wrap=none`."""

    name = constants.CONVERTER_PANDOC

    def __init__(self, command=constants.PANDOC_COMMAND):
        self.command = command

    def is_available(self):
        return shutil.which(self.command) is not None

    def convert(self, html_string):
        if not html_string:
            return ''
        try:
            result = subprocess.run(
                [self.command, '-f', 'html', '-t', 'gfm', '--wrap=none'],
                input=html_string, capture_output=True, text=True, encoding='utf-8',
            )
        except OSError as e:
            raise ConversionError(f"Could not run {self.command}: {e}") from e
        if result.returncode != 0:
            # Keep whatever pandoc managed to produce
            logger.warning(f"    pandoc conversion issue: {result.stderr.strip()}")
        return result.stdout


def get_converter(name):
    if name == constants.CONVERTER_PANDOC:
        return PandocConverter()
    if name == constants.CONVERTER_HTML2TEXT:
        return Html2TextConverter()
    raise ValueError(f"Unknown converter '{name}'")


def convert_html(converter, html_string):
    """Runs the converter without letting a failure escape; returns best-effort Markdown."""
    try:
        return converter.convert(html_string)
    except ConversionError as e:
        logger.warning(f"    {e}; using plain text instead.")
        return _plain_text_fallback(html_string)


# --- Document Rendering ---
def render_frontmatter(article):
    lines = [
        '---',
        f"title: {json.dumps(article.title, ensure_ascii=False)}",
        f"id: {article.id}",
        f"folder_id: {article.folder_id}",
    ]
    if article.created_at:
        lines.append(f"created_at: {article.created_at}")
    if article.updated_at:
        lines.append(f"updated_at: {article.updated_at}")
    if article.tags:
        lines.append(f"tags: [{', '.join(article.tags)}]")
    lines.append(f"status: {article.status}")
    lines.append(f"source: {constants.FRONTMATTER_SOURCE}")
    lines.append('---')
    return '\n'.join(lines)


def render_document(article, body_markdown):
    """
    Full Markdown file content: frontmatter, H1 title, converted body.
    Contains nothing run-dependent, so identical input gives identical bytes.
    """
    body = re.sub(r'\n{3,}', '\n\n', (body_markdown or '').replace('\r\n', '\n')).strip()
    parts = [render_frontmatter(article), '', f"# {article.title}", '']
    if body:
        parts.append(body)
    return '\n'.join(parts).rstrip('\n') + '\n'


# --- PDF ---
def detect_pdf_engine(engines=None, pandoc_command=constants.PANDOC_COMMAND):
    """First engine from the priority list found on PATH, or None. Pandoc is required too."""
    if shutil.which(pandoc_command) is None:
        logger.warning(f"{pandoc_command} not found. PDF generation will be skipped.")
        return None
    for engine in engines or constants.DEFAULT_PDF_ENGINES:
        if shutil.which(engine):
            logger.info(f"PDF engine: {engine}")
            return engine
    logger.warning("No PDF engine found. PDF generation will be skipped.")
    logger.warning(f"Install one of: {', '.join(engines or constants.DEFAULT_PDF_ENGINES)}")
    return None


class PdfRenderer:
    """Renders a finished Markdown file to PDF with pandoc and a fixed engine."""

    def __init__(self, engine, pandoc_command=constants.PANDOC_COMMAND):
        self.engine = engine
        self.pandoc_command = pandoc_command

    def render(self, markdown_path, pdf_path):
        # Run inside the folder so relative 'assets/...' references resolve
        workdir = os.path.dirname(os.path.abspath(markdown_path))
        command = [
            self.pandoc_command, os.path.basename(markdown_path),
            '-o', os.path.basename(pdf_path),
            f"--pdf-engine={self.engine}",
            '-V', 'geometry:margin=1in',
            '-V', 'colorlinks=true',
            '--resource-path=.',
        ]
        try:
            result = subprocess.run(command, cwd=workdir, capture_output=True, text=True)
        except OSError as e:
            logger.warning(f"    PDF generation failed: {e}")
            return False
        if result.returncode != 0:
            logger.warning(f"    PDF generation failed: {result.stderr.strip()}")
            return False
        return True
