# Module for loading and validating configuration
import json
import os
import constants # Import constants

# Environment variable -> config key. Environment wins over the config file.
ENV_OVERRIDES = {
    'FRESHSERVICE_DOMAIN': 'domain',
    'FRESHSERVICE_API_KEY': 'api_key',
    'FRESHSERVICE_API_URL': 'api_base_url',
    'OUTPUT_DIR': 'output_dir',
    'PER_PAGE': 'per_page',
    'RATE_LIMIT_SLEEP': 'request_delay_seconds',
    'PUBLISHED_ONLY': 'published_only',
    'GENERATE_PDF': 'generate_pdf',
    'BACKUP_ON_CHANGE': 'backup_on_change',
    'CONVERTER': 'converter',
    'LOG_FILE': 'log_file',
    'MAX_RETRIES': 'max_retries',
}

BOOLEAN_KEYS = ('published_only', 'generate_pdf', 'backup_on_change')
INTEGER_KEYS = ('per_page', 'max_retries')
FLOAT_KEYS = ('request_delay_seconds', 'request_timeout_api', 'request_timeout_content')

_TRUE_VALUES = ('true', '1', 'yes', 'on')
_FALSE_VALUES = ('false', '0', 'no', 'off')


def parse_bool(value, key):
    """Interprets config/env booleans ("true", "0", "yes", ...)."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"Config '{key}' must be a boolean, got '{value}'.")


def helpdesk_host(domain):
    """Accepts either 'acme' or 'acme.freshservice.com' and returns the full host."""
    domain = domain.strip().lower()
    for prefix in ('https://', 'http://'):
        if domain.startswith(prefix):
            domain = domain[len(prefix):]
    domain = domain.split('/', 1)[0]
    if '.' in domain:
        return domain
    return f"{domain}{constants.HELPDESK_HOST_SUFFIX}"


def _read_config_file(config_path):
    if not config_path or not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Error decoding JSON from config file '{config_path}': {e}") from e
    if not isinstance(config, dict):
        raise ValueError(f"Config file '{config_path}' must contain a JSON object.")
    return config


def load_config(config_path=constants.DEFAULT_CONFIG_FILE, environ=None):
    """
    Loads configuration from an optional JSON file plus environment variables,
    sets defaults and validates. Raises ValueError for invalid settings.
    """
    environ = os.environ if environ is None else environ
    config = _read_config_file(config_path)

    for env_name, key in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value not in (None, ''):
            config[key] = value

    # --- Required Keys ---
    missing_keys = [key for key in ('domain', 'api_key') if not config.get(key)]
    if missing_keys:
        raise ValueError(
            f"Missing required settings: {', '.join(missing_keys)}. "
            f"Set FRESHSERVICE_DOMAIN and FRESHSERVICE_API_KEY or add them to '{config_path}'."
        )
    if config['domain'] == constants.PLACEHOLDER_DOMAIN or config['api_key'] == constants.PLACEHOLDER_API_KEY:
        raise ValueError("Replace the placeholder FRESHSERVICE_DOMAIN / FRESHSERVICE_API_KEY values before running.")

    # --- Set Defaults for Optional Keys ---
    config['output_dir'] = config.get('output_dir', constants.DEFAULT_OUTPUT_DIR)
    config['per_page'] = config.get('per_page', constants.DEFAULT_PER_PAGE)
    config['request_delay_seconds'] = config.get('request_delay_seconds', constants.DEFAULT_REQUEST_DELAY)
    config['max_retries'] = config.get('max_retries', constants.DEFAULT_MAX_RETRIES)
    config['request_timeout_api'] = config.get('request_timeout_api', constants.DEFAULT_TIMEOUT_API)
    config['request_timeout_content'] = config.get('request_timeout_content', constants.DEFAULT_TIMEOUT_CONTENT)
    config['user_agent'] = config.get('user_agent', constants.DEFAULT_USER_AGENT)
    config['published_only'] = config.get('published_only', False)
    config['generate_pdf'] = config.get('generate_pdf', True)
    config['backup_on_change'] = config.get('backup_on_change', True)
    config['converter'] = config.get('converter', constants.CONVERTER_HTML2TEXT)
    config['log_file'] = config.get('log_file')
    config['attachment_url_pattern'] = config.get('attachment_url_pattern', constants.DEFAULT_ATTACHMENT_URL_PATTERN)
    config['pdf_engines'] = config.get('pdf_engines', list(constants.DEFAULT_PDF_ENGINES))

    # --- Type Coercion (env values arrive as strings) ---
    for key in BOOLEAN_KEYS:
        config[key] = parse_bool(config[key], key)
    for key in INTEGER_KEYS:
        try:
            config[key] = int(config[key])
        except (TypeError, ValueError):
            raise ValueError(f"Config '{key}' must be an integer, got '{config[key]}'.")
    for key in FLOAT_KEYS:
        try:
            config[key] = float(config[key])
        except (TypeError, ValueError):
            raise ValueError(f"Config '{key}' must be a number, got '{config[key]}'.")

    # --- Further Validation ---
    if not 1 <= config['per_page'] <= constants.MAX_PER_PAGE:
        raise ValueError(f"Config 'per_page' must be between 1 and {constants.MAX_PER_PAGE}.")
    if config['request_delay_seconds'] < 0:
        raise ValueError("Config 'request_delay_seconds' must be a non-negative number.")
    if config['max_retries'] < 0:
        raise ValueError("Config 'max_retries' must be a non-negative integer.")
    config['converter'] = str(config['converter']).strip().lower()
    if config['converter'] not in constants.SUPPORTED_CONVERTERS:
        raise ValueError(
            f"Config 'converter' must be one of {', '.join(constants.SUPPORTED_CONVERTERS)}, got '{config['converter']}'."
        )
    if isinstance(config['pdf_engines'], str):
        config['pdf_engines'] = [e.strip() for e in config['pdf_engines'].split(',') if e.strip()]

    # --- Derived Values ---
    config['helpdesk_host'] = helpdesk_host(config['domain'])
    if not config.get('api_base_url'):
        config['api_base_url'] = constants.API_BASE_URL_TEMPLATE.format(host=config['helpdesk_host'])
    config['api_base_url'] = config['api_base_url'].rstrip('/')

    return config
