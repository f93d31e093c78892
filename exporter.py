# Module walking categories -> folders -> articles and exporting each article

import logging
import os
import time
from dataclasses import dataclass

import constants # Import constants
from api_clients import freshservice_client
from content_renderer import convert_html, render_document
from file_handler import Decision, ensure_directory, reconcile, sanitize_name
from html_processor import download_attachments, rewrite_assets
from models import Article, Category, Folder

logger = logging.getLogger(__name__)


@dataclass
class ExportStats:
    """Run report threaded through the walker. One instance per run."""

    exported: int = 0
    pdfs: int = 0
    skipped_unchanged: int = 0
    skipped_drafts: int = 0
    failed: int = 0
    backups: int = 0
    categories: int = 0
    folders: int = 0


# --- Listings ---
def fetch_categories(config):
    """All categories, or None when the listing failed."""
    items = freshservice_client.fetch_all(constants.CATEGORIES_ENDPOINT, 'categories', config)
    if items is None:
        return None
    return [Category.from_api(item) for item in items]


def fetch_folders(category, config):
    endpoint = constants.FOLDERS_ENDPOINT.format(category_id=category.id)
    items = freshservice_client.fetch_all(endpoint, 'folders', config)
    if items is None:
        return None
    return [Folder.from_api(item, category_id=category.id) for item in items]


def fetch_articles(folder, config):
    endpoint = constants.ARTICLES_ENDPOINT.format(folder_id=folder.id)
    items = freshservice_client.fetch_all(endpoint, 'articles', config)
    if items is None:
        return None
    return [Article.from_api(item, folder_id=folder.id) for item in items]


# --- Naming ---
def article_filename(article, used_names):
    """
    '<sanitized title>.md'; titles that sanitize to nothing use 'article-<id>',
    and a name already taken in this folder during this run gets '-<id>'.
    """
    stem = sanitize_name(article.title) or f"article-{article.id}"
    if stem in used_names:
        stem = f"{stem}-{article.id}"
    used_names.add(stem)
    return f"{stem}.md"


def assign_filenames(listings):
    """
    Maps article id -> file name for a whole folder listing up front, so a
    failed article never hands its name to a later one with the same title.
    """
    used_names = set()
    return {listing.id: article_filename(listing, used_names) for listing in listings}


# --- Article ---
def export_article(listing, folder, folder_dir, filename, config, converter, pdf_renderer, stats):
    """Exports one article. Every failure is contained here and counted."""
    logger.info(f"    Processing: {listing.title}")

    data = freshservice_client.fetch_article(listing.id, config=config)
    if data is None:
        logger.warning(f"    Could not fetch article {listing.id}, skipping: {listing.title}")
        stats.failed += 1
        return
    article = Article.from_api(data, folder_id=folder.id)
    # The detail payload may omit listing fields
    if article.title == constants.UNTITLED_TITLE and listing.title != constants.UNTITLED_TITLE:
        article.title = listing.title
    if data.get('status') is None:
        article.status = listing.status
    if article.folder_id is None:
        article.folder_id = folder.id

    if not article.description.strip():
        logger.warning(f"    Article has no content, skipping: {article.title}")
        stats.failed += 1
        return

    md_path = os.path.join(folder_dir, filename)
    assets_dir = os.path.join(folder_dir, constants.ASSETS_DIR_NAME)

    html = rewrite_assets(article.description, assets_dir, config)
    body = convert_html(converter, html)
    content = render_document(article, body)

    try:
        result = reconcile(content, md_path, backup_on_change=config.get('backup_on_change', True))
    except OSError as e:
        logger.error(f"    Could not write {md_path}: {e}")
        stats.failed += 1
        return

    if result.decision is Decision.SKIP:
        stats.skipped_unchanged += 1
        return

    stats.exported += 1
    stats.backups += len(result.backups)
    logger.info(f"    Saved: {md_path}")

    download_attachments(article, assets_dir, config)

    if pdf_renderer is not None:
        pdf_path = os.path.splitext(md_path)[0] + '.pdf'
        if pdf_renderer.render(md_path, pdf_path):
            stats.pdfs += 1
            logger.info(f"    Saved: {pdf_path}")


# --- Folder / Category ---
def export_folder(folder, category_dir, config, converter, pdf_renderer, stats):
    folder_dir = ensure_directory(os.path.join(category_dir, sanitize_name(folder.name) or f"folder-{folder.id}"))
    logger.info(f"  Folder: {folder.name} (id: {folder.id})")
    stats.folders += 1

    articles = fetch_articles(folder, config)
    if articles is None:
        logger.error(f"    Could not list articles for folder {folder.name} (id: {folder.id}); skipping folder.")
        return
    logger.info(f"    Found {len(articles)} article(s)")

    if config.get('published_only'):
        for listing in articles:
            if not listing.is_published:
                logger.info(f"    Skipping draft: {listing.title}")
                stats.skipped_drafts += 1
        articles = [listing for listing in articles if listing.is_published]

    filenames = assign_filenames(articles)
    delay = config.get('request_delay_seconds', constants.DEFAULT_REQUEST_DELAY)
    for listing in articles:
        try:
            export_article(listing, folder, folder_dir, filenames[listing.id], config, converter, pdf_renderer, stats)
        except Exception:
            logger.exception(f"    Unexpected error exporting article {listing.id} ({listing.title})")
            stats.failed += 1
        time.sleep(delay)


def export_category(category, config, converter, pdf_renderer, stats):
    category_dir = ensure_directory(
        os.path.join(config['output_dir'], sanitize_name(category.name) or f"category-{category.id}")
    )
    logger.info(f"Category: {category.name} (id: {category.id})")
    stats.categories += 1

    folders = fetch_folders(category, config)
    if folders is None:
        logger.error(f"  Could not list folders for category {category.name} (id: {category.id}); skipping category.")
        return
    logger.info(f"  Found {len(folders)} folder(s)")

    for folder in folders:
        export_folder(folder, category_dir, config, converter, pdf_renderer, stats)


def export_knowledge_base(categories, config, converter, pdf_renderer=None, stats=None):
    """
    Exports every article below `categories`, strictly sequentially.
    Returns the run's ExportStats.
    """
    stats = stats if stats is not None else ExportStats()
    ensure_directory(config['output_dir'])
    for category in categories:
        export_category(category, config, converter, pdf_renderer, stats)
    return stats
