import re

PATTERN_SEPARATOR = "/"
PLACEHOLDER_MARKER = ":"

DEFAULT_PATTERN = "/assets/:uid/:filename"
DEFAULT_BASE_DIR = "./_contents"
DEFAULT_LANGUAGE = "en"
DEFAULT_DIR_MODE = 0o755

DEFAULT_LOCALES = [
    {"code": "en-us", "relative_url_prefix": "/"},
    {"code": "es-es", "relative_url_prefix": "/es/"},
    {"code": "fr-fr", "relative_url_prefix": "/fr/"},
]

# https://assets.contentstack.io/v3/assets/<api_key>/<download_id>/<hash>/<filename>
CDN_URL_PATTERN = re.compile(
    r"https://(assets|images)\.contentstack\.io/(v\d)/assets/(.*?)/(.*?)/(.*?)/(.*)"
)

TMP_FILE_SUFFIX = ".part"

__all__ = [
    "PATTERN_SEPARATOR",
    "PLACEHOLDER_MARKER",
    "DEFAULT_PATTERN",
    "DEFAULT_BASE_DIR",
    "DEFAULT_LANGUAGE",
    "DEFAULT_DIR_MODE",
    "DEFAULT_LOCALES",
    "CDN_URL_PATTERN",
    "TMP_FILE_SUFFIX",
]
