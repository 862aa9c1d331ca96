from pathlib import PurePosixPath

from asset_sync.config.schema import LocaleConfig
from asset_sync.constants import DEFAULT_LANGUAGE


def language_of(locale_code: str) -> str:
    return locale_code.split("-", 1)[0].lower()


class LocaleUrlMapper:
    """
    Derives the public relative url of a stored asset.

    The first component of the relative path is the locale folder. Locales with a
    configured prefix use it; otherwise the default language maps to ``/`` and any
    other language to ``/<language>/``.
    """

    def __init__(self, locales: list[LocaleConfig] | None = None, default_language: str = DEFAULT_LANGUAGE):
        self.prefixes = {loc.code.lower(): loc.relative_url_prefix for loc in locales or []}
        self.default_language = default_language

    def prefix_for(self, locale_code: str) -> str:
        configured = self.prefixes.get(locale_code.lower())
        if configured is not None:
            configured = configured.strip("/")
            return f"/{configured}/" if configured else "/"

        language = language_of(locale_code)
        if language == self.default_language:
            return "/"
        return f"/{language}/"

    def public_url(self, relative_path: str) -> str:
        parts = PurePosixPath(relative_path).parts
        if len(parts) < 2:
            raise ValueError(f"Expected '<locale>/<path>', got '{relative_path}'")

        locale_code, rest = parts[0], parts[1:]
        return self.prefix_for(locale_code) + "/".join(rest)
