import typer
import asyncio
import json
import yaml
from pathlib import Path
from pydantic import TypeAdapter, ValidationError

from asset_sync.asset import AssetDescriptor
from asset_sync.asset_store.errors import AssetStoreError
from asset_sync.config.factory import create_asset_store, create_fetcher, create_observer, load_config
from asset_sync.config.schema import AppConfig
from asset_sync.pipeline.sync import AssetEvent, run_sync_pipeline

app = typer.Typer(help="Filesystem asset store CLI")


def _load_config(config_path: Path | None) -> AppConfig:
    try:
        data = yaml.safe_load(config_path.read_text()) if config_path else None
        return load_config(data)
    except ValidationError as e:
        typer.echo("Config validation failed:", err=True)
        typer.echo(e, err=True)
        raise typer.Exit(code=1)


def _load_assets(asset_path: Path) -> list[AssetDescriptor]:
    try:
        data = json.loads(asset_path.read_text())
        items = data if isinstance(data, list) else [data]
        return [AssetDescriptor.from_json(item) for item in items]
    except (ValidationError, json.JSONDecodeError) as e:
        typer.echo("Asset payload validation failed:", err=True)
        typer.echo(e, err=True)
        raise typer.Exit(code=1)


def _echo(asset: AssetDescriptor) -> None:
    typer.echo(json.dumps(asset.to_json(), indent=2))


async def _run_operation(cfg: AppConfig, action: str, assets: list[AssetDescriptor]) -> AssetDescriptor:
    observer = create_observer(cfg.observer, cfg.asset_store.base_dir)
    async with create_fetcher(cfg.fetch) as fetcher:
        store = create_asset_store(cfg, fetcher=fetcher, observer=observer)
        match action:
            case "download":
                return await store.download(assets[0])
            case "delete":
                return await store.delete(assets)
            case "unpublish":
                return await store.unpublish(assets[0])
            case _:
                raise RuntimeError(f"Unreachable state in _run_operation (action: {action})")


def _operation(action: str, asset_path: Path, config_path: Path | None) -> None:
    cfg = _load_config(config_path)
    assets = _load_assets(asset_path)
    if not assets:
        typer.echo("No assets given", err=True)
        raise typer.Exit(code=1)

    try:
        result = asyncio.run(_run_operation(cfg, action, assets))
    except AssetStoreError as e:
        typer.echo(f"{type(e).__name__}: {e}", err=True)
        raise typer.Exit(code=2)
    _echo(result)


@app.command()
def resolve(
    asset_path: Path = typer.Argument(..., help="Path to the JSON asset payload"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to the YAML config file"),
):
    """Dry run: print the target path and public url without downloading"""
    cfg = _load_config(config_path)
    assets = _load_assets(asset_path)
    store = create_asset_store(cfg, fetcher=None)  # type: ignore[arg-type]

    for asset in assets:
        try:
            resolved = store.resolve(asset)
        except AssetStoreError as e:
            typer.echo(f"{type(e).__name__}: {e}", err=True)
            raise typer.Exit(code=2)
        typer.echo(json.dumps({
            "uid": asset.uid,
            "path": str(resolved.file_path(store.base_dir)),
            **store.with_urls(resolved).to_json(),
        }, indent=2))


@app.command()
def download(
    asset_path: Path = typer.Argument(..., help="Path to the JSON asset payload"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to the YAML config file"),
):
    """Download an asset into the base directory"""
    _operation("download", asset_path, config_path)


@app.command()
def delete(
    asset_path: Path = typer.Argument(..., help="Path to the JSON asset payload (object or list)"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to the YAML config file"),
):
    """Remove the folder holding an asset"""
    _operation("delete", asset_path, config_path)


@app.command()
def unpublish(
    asset_path: Path = typer.Argument(..., help="Path to the JSON asset payload"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to the YAML config file"),
):
    """Remove a single stored asset file"""
    _operation("unpublish", asset_path, config_path)


@app.command()
def sync(
    events_path: Path = typer.Argument(..., help="Path to the JSON list of asset events"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to the YAML config file"),
):
    """Apply a batch of download/delete/unpublish events"""
    cfg = _load_config(config_path)
    try:
        events = TypeAdapter(list[AssetEvent]).validate_json(events_path.read_text())
    except ValidationError as e:
        typer.echo("Event validation failed:", err=True)
        typer.echo(e, err=True)
        raise typer.Exit(code=1)

    report = asyncio.run(run_sync_pipeline(cfg, events))
    typer.echo(report.model_dump_json(by_alias=True, exclude_none=True, indent=2))
    if report.failed:
        raise typer.Exit(code=2)


if __name__ == "__main__":
    app()
