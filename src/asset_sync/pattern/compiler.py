from typing import NamedTuple

from asset_sync.asset_store.errors import InvalidPatternError
from asset_sync.config.schema import AssetStoreConfig
from asset_sync.constants import PATTERN_SEPARATOR, PLACEHOLDER_MARKER


class LiteralSegment(NamedTuple):
    text: str


class Placeholder(NamedTuple):
    key: str


PathSegment = LiteralSegment | Placeholder


class PathPattern(NamedTuple):
    raw: str
    segments: tuple[PathSegment, ...]

    @property
    def keys(self) -> list[str]:
        return [s.key for s in self.segments if isinstance(s, Placeholder)]


def compile_pattern(raw: str) -> PathPattern:
    """
    Compiles a slash-delimited template such as ``/assets/:uid/:filename``.

    Tokens starting with ``:`` become placeholders, everything else is kept
    as a literal. Empty tokens (leading, trailing or doubled slashes) are dropped.
    """
    segments: list[PathSegment] = []
    for token in raw.split(PATTERN_SEPARATOR):
        token = token.strip()
        if not token:
            continue
        if token.startswith(PLACEHOLDER_MARKER):
            key = token[len(PLACEHOLDER_MARKER):]
            if not key:
                raise InvalidPatternError(f"Empty placeholder in pattern '{raw}'")
            segments.append(Placeholder(key))
        else:
            segments.append(LiteralSegment(token))

    return PathPattern(raw=raw, segments=tuple(segments))


class CompiledStoreConfig(NamedTuple):
    settings: AssetStoreConfig
    pattern: PathPattern


def compile_store_config(cfg: AssetStoreConfig) -> CompiledStoreConfig:
    return CompiledStoreConfig(settings=cfg, pattern=compile_pattern(cfg.pattern))
