# constants.py - Define constants used throughout the application

# --- API Endpoints ---
API_BASE_URL_TEMPLATE = "https://{host}/api/v2"
HELPDESK_HOST_SUFFIX = ".freshservice.com"
CATEGORIES_ENDPOINT = "/solutions/categories"
FOLDERS_ENDPOINT = "/solutions/folders?category_id={category_id}"
ARTICLES_ENDPOINT = "/solutions/articles?folder_id={folder_id}"
ARTICLE_DETAIL_ENDPOINT = "/solutions/articles/{article_id}"
API_PASSWORD = "X" # Freshservice ignores the password half of Basic auth

# --- Credentials ---
PLACEHOLDER_DOMAIN = "your-company"
PLACEHOLDER_API_KEY = "your-api-key-here"

# --- File/Directory Names ---
DEFAULT_OUTPUT_DIR = "./freshservice-export"
DEFAULT_CONFIG_FILE = "config.json"
ASSETS_DIR_NAME = "assets" # Shared by all articles of a folder
UNTITLED_TITLE = "Untitled"
UNNAMED_CATEGORY = "Unnamed-Category"
UNNAMED_FOLDER = "Unnamed-Folder"
UNTITLED_FILENAME = "untitled"
PLACEHOLDER_IMAGE_TEMPLATE = "image-{position}.png" # For media URLs without an extension
ATTACHMENT_FALLBACK_TEMPLATE = "attachment-{index}"
STAGING_PREFIX = ".staging-"

# --- Backups ---
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
BACKUP_INFIX = "bak"

# --- Limits ---
FILENAME_MAX_LENGTH = 200
FILENAME_COLLISION_LIMIT = 100
MAX_PER_PAGE = 100 # Largest page size the API accepts
HASH_CHUNK_SIZE = 65536

# --- Request Defaults ---
DEFAULT_USER_AGENT = "freshservice-kb-export/1.0"
DEFAULT_PER_PAGE = 100
DEFAULT_REQUEST_DELAY = 0.5 # Seconds between API calls
DEFAULT_MAX_RETRIES = 3
DEFAULT_TIMEOUT_API = 30
DEFAULT_TIMEOUT_CONTENT = 60

# --- Articles ---
STATUS_DRAFT = 1
STATUS_PUBLISHED = 2
FRONTMATTER_SOURCE = "freshservice"

# --- Asset Discovery ---
IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.gif', '.svg', '.webp', '.bmp')
DEFAULT_ATTACHMENT_URL_PATTERN = "freshservice"
REWRITABLE_ATTRIBUTES = ('src', 'href', 'srcset', 'data-src')

# --- Rendering ---
CONVERTER_HTML2TEXT = "html2text"
CONVERTER_PANDOC = "pandoc"
SUPPORTED_CONVERTERS = (CONVERTER_HTML2TEXT, CONVERTER_PANDOC)
PANDOC_COMMAND = "pandoc"
DEFAULT_PDF_ENGINES = ["xelatex", "pdflatex", "weasyprint", "wkhtmltopdf"] # Priority order
