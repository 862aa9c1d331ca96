from pathlib import Path

from asset_sync.asset import AssetDescriptor
from asset_sync.config.schema import LayoutStrategy
from asset_sync.pattern.compiler import compile_pattern
from asset_sync.pattern.resolver import (
    MissingPlaceholder,
    PathResolver,
    Resolved,
    UnsafeSegment,
    extract_cdn_metadata,
)

CDN_URL = "https://images.contentstack.io/v3/assets/blt123api/blt456dl/5f9a/logo.png"


def make_asset(**overrides) -> AssetDescriptor:
    data = {"uid": "u1", "filename": "logo.png", "locale": "en-us", "url": "https://host/logo.png"}
    data.update(overrides)
    return AssetDescriptor(**data)


def test_resolve_uid_and_filename():
    resolver = PathResolver(compile_pattern("/:uid/:filename"))

    result = resolver.resolve(make_asset())

    assert isinstance(result, Resolved)
    assert result.components == ("u1", "logo.png")
    assert result.relative_path == "en-us/u1/logo.png"
    assert result.file_path("/base") == Path("/base/en-us/u1/logo.png")
    assert result.folder_path("/base") == Path("/base/en-us/u1")


def test_resolve_with_static_prefix():
    resolver = PathResolver(compile_pattern("/:uid/:filename"), prefix="v3/assets")

    result = resolver.resolve(make_asset())

    assert result.file_path("/base") == Path("/base/en-us/v3/assets/u1/logo.png")


def test_missing_placeholder_names_the_key():
    resolver = PathResolver(compile_pattern("/:uid/:filename"))

    result = resolver.resolve(make_asset(uid=None))

    assert result == MissingPlaceholder(key="uid", uid=None)


def test_empty_value_counts_as_missing():
    resolver = PathResolver(compile_pattern("/:uid/:filename"))

    result = resolver.resolve(make_asset(filename=""))

    assert isinstance(result, MissingPlaceholder)
    assert result.key == "filename"
    assert result.uid == "u1"


def test_missing_locale_is_reported():
    resolver = PathResolver(compile_pattern("/:uid/:filename"))

    assert resolver.resolve(make_asset(locale=None)) == MissingPlaceholder(key="locale", uid="u1")


def test_legacy_flat_drops_literals():
    resolver = PathResolver(compile_pattern("/assets/:uid/:filename"), layout=LayoutStrategy.LEGACY_FLAT)

    assert resolver.resolve(make_asset()).relative_path == "en-us/u1/logo.png"


def test_prefixed_v2_keeps_literals_in_place():
    resolver = PathResolver(
        compile_pattern("/assets/:uid/files/:filename"),
        layout=LayoutStrategy.PREFIXED_V2,
        prefix="v3",
    )

    assert resolver.resolve(make_asset()).relative_path == "en-us/v3/assets/u1/files/logo.png"


def test_placeholder_can_reference_extra_metadata():
    resolver = PathResolver(compile_pattern("/:content_type/:uid/:filename"))

    result = resolver.resolve(make_asset(content_type="images"))

    assert result.components == ("images", "u1", "logo.png")


def test_unsafe_values_are_rejected():
    resolver = PathResolver(compile_pattern("/:uid/:filename"))

    assert resolver.resolve(make_asset(filename="..")) == UnsafeSegment(key="filename", value="..", uid="u1")
    assert isinstance(resolver.resolve(make_asset(uid="a/b")), UnsafeSegment)


def test_cdn_metadata_is_extracted_without_mutating_input():
    asset = make_asset(url=CDN_URL)

    enriched = extract_cdn_metadata(asset)

    assert enriched.api_version == "v3"
    assert enriched.api_key == "blt123api"
    assert enriched.cdn_download_id == "blt456dl"
    assert asset.api_key is None
    assert enriched.to_json()["apiKey"] == "blt123api"


def test_non_cdn_url_is_left_untouched():
    asset = make_asset(api_key="preset")

    assert extract_cdn_metadata(asset) is asset


def test_extracted_metadata_is_available_to_placeholders():
    resolver = PathResolver(compile_pattern("/:apiKey/:downloadId/:filename"))

    result = resolver.resolve(make_asset(url=CDN_URL))

    assert result.components == ("blt123api", "blt456dl", "logo.png")
    assert result.asset.api_version == "v3"
