# Module for the asset pipeline: media discovery, download and link rewriting

import logging
import os
from urllib.parse import urljoin, urlparse, unquote

from bs4 import BeautifulSoup

import constants # Import constants
from api_clients.freshservice_client import fetch_asset
from file_handler import sanitize_name, write_bytes

logger = logging.getLogger(__name__)


# --- Asset Discovery ---
def _is_downloadable(src, attachment_pattern):
    if not src or src.startswith('data:'):
        return False
    path = urlparse(src).path.lower()
    if path.endswith(constants.IMAGE_EXTENSIONS):
        return True
    return bool(attachment_pattern) and attachment_pattern.lower() in src.lower()


def find_asset_urls(html_content, config):
    """
    Returns the embedded media URLs worth downloading, in first-seen order.

    Every `src` attribute is considered; a value qualifies when it is not a
    data: URI and either ends in an image extension or matches the helpdesk
    attachment URL marker (attachment links often carry no extension).
    """
    if not html_content:
        return []

    pattern = config.get('attachment_url_pattern', constants.DEFAULT_ATTACHMENT_URL_PATTERN)
    soup = BeautifulSoup(html_content, 'html.parser')

    urls = []
    seen = set()
    for tag in soup.find_all(src=True):
        src = tag['src'].strip()
        if src in seen or not _is_downloadable(src, pattern):
            continue
        seen.add(src)
        urls.append(src)
    return urls


def asset_filename(url, position):
    """
    Local filename for a media URL: the path's basename without query string.
    URLs whose basename has no extension get 'image-<position>.png'.

    Placeholders are numbered per article while assets/ is shared by the
    folder, so two articles with extensionless images both write
    'image-1.png' and the later download replaces the earlier one.
    """
    basename = os.path.basename(unquote(urlparse(url).path))
    if '.' not in basename:
        basename = constants.PLACEHOLDER_IMAGE_TEMPLATE.format(position=position)
    filename = sanitize_name(basename)
    if not filename or filename.startswith('.'):
        filename = constants.PLACEHOLDER_IMAGE_TEMPLATE.format(position=position)
    return filename


def _unique_filename(filename, used_names):
    """Adds '-1', '-2', ... before the extension when two URLs of one article share a basename."""
    if filename not in used_names:
        return filename
    base, ext = os.path.splitext(filename)
    for counter in range(1, constants.FILENAME_COLLISION_LIMIT + 1):
        candidate = f"{base}-{counter}{ext}"
        if candidate not in used_names:
            return candidate
    return filename


def _absolute_url(url, config):
    if urlparse(url).scheme:
        return url
    return urljoin(f"https://{config.get('helpdesk_host', '')}/", url)


# --- Link Rewriting ---
def _rewrite_srcset(value, url, local_path):
    candidates = []
    changed = False
    for candidate in value.split(','):
        parts = candidate.strip().split()
        if parts and parts[0] == url:
            parts[0] = local_path
            changed = True
        candidates.append(' '.join(parts))
    return ', '.join(candidates) if changed else value


def _rewrite_references(soup, url, local_path):
    """Points every attribute that references `url` at `local_path`. Returns the count."""
    count = 0
    for tag in soup.find_all(True):
        for attr in constants.REWRITABLE_ATTRIBUTES:
            value = tag.get(attr)
            if not isinstance(value, str):
                continue
            if attr == 'srcset':
                new_value = _rewrite_srcset(value, url, local_path)
            else:
                new_value = local_path if value.strip() == url else value
            if new_value != value:
                tag[attr] = new_value
                count += 1
    return count


def rewrite_assets(html_content, assets_dir, config):
    """
    Downloads the media referenced by `html_content` into `assets_dir` and
    rewrites the references to 'assets/<filename>'.

    A failed download leaves the original URL in place. Returns the rewritten
    HTML (the input unchanged when there is nothing to download).
    """
    urls = find_asset_urls(html_content, config)
    if not urls:
        return html_content

    soup = BeautifulSoup(html_content, 'html.parser')
    used_names = set()
    saved = 0

    for position, url in enumerate(urls, start=1):
        filename = _unique_filename(asset_filename(url, position), used_names)
        used_names.add(filename)

        content = fetch_asset(_absolute_url(url, config), config=config)
        if content is None:
            logger.warning(f"    Failed to download image: {url}")
            continue
        try:
            write_bytes(content, os.path.join(assets_dir, filename))
        except OSError as e:
            logger.warning(f"    Failed to save image {filename}: {e}")
            continue

        local_path = f"{constants.ASSETS_DIR_NAME}/{filename}"
        rewritten = _rewrite_references(soup, url, local_path)
        saved += 1
        logger.debug(f"    Rewrote {rewritten} reference(s): {url} -> {local_path}")

    logger.debug(f"    Saved {saved}/{len(urls)} embedded asset(s) to {assets_dir}")
    return str(soup)


# --- Attachments ---
def download_attachments(article, assets_dir, config):
    """
    Downloads the article's explicit attachments into `assets_dir`.
    Each failure is logged and skipped. Returns (downloaded, failed).
    """
    attachments = [a for a in article.attachments if a.url]
    if not attachments:
        return 0, 0

    logger.info(f"    Downloading {len(attachments)} attachment(s)...")
    downloaded = failed = 0
    for index, attachment in enumerate(attachments):
        name = sanitize_name(attachment.name) or constants.ATTACHMENT_FALLBACK_TEMPLATE.format(index=index)
        content = fetch_asset(_absolute_url(attachment.url, config), config=config)
        if content is None:
            logger.warning(f"    Failed to download attachment: {name}")
            failed += 1
            continue
        try:
            write_bytes(content, os.path.join(assets_dir, name))
        except OSError as e:
            logger.warning(f"    Failed to save attachment {name}: {e}")
            failed += 1
            continue
        logger.info(f"    Downloaded attachment: {name}")
        downloaded += 1
    return downloaded, failed
