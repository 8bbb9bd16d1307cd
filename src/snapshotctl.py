#!/usr/bin/env python3
"""
CLI tool for the snapshot reconciler.

A minimal plugin host: declarations are read from YAML/JSON files, handed
to the reconciler for their resource type, and the returned attributes are
persisted verbatim in a local JSON state file.
"""

import asyncio
import json
import logging
import os
from typing import Any, Dict, Optional

import click
import yaml
from tabulate import tabulate

from config import get_config
from errors import SnapshotError
from plugins.base import LifecycleState, ResourceData
from plugins.reconcilers.base import ReconcilerPlugin
from plugins.registry import get_registry, register_builtin_plugins
from validation import validate_declaration

DEFAULT_STATE_FILE = "snapshots.state.json"
DEFAULT_RESOURCE_TYPE = "civo_snapshot"

# Fields of a declaration file that are not resource attributes
HOST_FIELDS = ("resource_type",)


class StateStore:
    """JSON file holding the persisted attribute set of every resource."""

    def __init__(self, path: str):
        self.path = path
        self.resources: Dict[str, Dict[str, Any]] = {}
        if os.path.exists(path):
            with open(path, "r") as f:
                self.resources = json.load(f)

    def get(self, name: str) -> Optional[Dict[str, Any]]:
        return self.resources.get(name)

    def to_resource_data(self, name: str) -> Optional[ResourceData]:
        record = self.get(name)
        if record is None:
            return None
        return ResourceData(
            attributes=dict(record.get("attributes", {})),
            id=record.get("id"),
            state=LifecycleState(record.get("state", "unrealized")),
        )

    def put(self, name: str, resource_type: str, data: ResourceData) -> None:
        self.resources[name] = {
            "resource_type": resource_type,
            "id": data.id,
            "state": data.state.value,
            "attributes": data.attributes,
        }
        self.save()

    def remove(self, name: str) -> None:
        self.resources.pop(name, None)
        self.save()

    def save(self) -> None:
        with open(self.path, "w") as f:
            json.dump(self.resources, f, indent=2, sort_keys=True)


def load_declaration(filename: str) -> Dict[str, Any]:
    """Read a declaration from a YAML or JSON file."""
    with open(filename, "r") as f:
        if filename.endswith(".yaml") or filename.endswith(".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if not isinstance(data, dict):
        raise click.ClickException(f"{filename} does not contain a declaration")
    return data


async def _get_reconciler(resource_type: str) -> ReconcilerPlugin:
    """Get the reconciler registered for a resource type."""
    cfg = get_config()
    registry = get_registry()
    if not registry.list_reconciler_plugins():
        register_builtin_plugins()

    reconciler = await registry.get_reconciler_for_resource_type(
        resource_type, poll_config=cfg.poll, config=cfg.reconciler
    )
    if reconciler is None:
        raise click.ClickException(f"No reconciler handles '{resource_type}'")
    return reconciler


def _echo_attributes(name: str, record: Dict[str, Any], output: str) -> None:
    if output == "json":
        click.echo(json.dumps(record, indent=2))
    elif output == "yaml":
        click.echo(yaml.dump(record, default_flow_style=False))
    else:
        rows = [["name", name], ["id", record.get("id")], ["lifecycle", record.get("state")]]
        rows.extend([key, value] for key, value in record.get("attributes", {}).items())
        click.echo(tabulate(rows, headers=["Attribute", "Value"], tablefmt="grid"))


@click.group()
@click.option(
    "--state-file",
    envvar="SNAPSHOT_STATE_FILE",
    default=DEFAULT_STATE_FILE,
    show_default=True,
    help="Path of the local state file",
)
@click.option("--log-level", envvar="LOG_LEVEL", default=None, help="Logging level")
@click.pass_context
def cli(ctx, state_file, log_level):
    """Snapshot reconciler CLI - declarative management of instance snapshots"""
    logging.basicConfig(
        level=(log_level or get_config().reconciler.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = StateStore(state_file)


@cli.command()
@click.argument("filename", type=click.Path(exists=True))
@click.option("--timeout", "-t", type=float, default=None, help="Create timeout in seconds")
@click.option(
    "--output", "-o", type=click.Choice(["table", "json", "yaml"]), default="table"
)
@click.pass_obj
def apply(store, filename, timeout, output):
    """Create a snapshot from a YAML/JSON declaration, or refresh it"""
    declaration = load_declaration(filename)
    resource_type = declaration.get("resource_type", DEFAULT_RESOURCE_TYPE)
    attributes = {k: v for k, v in declaration.items() if k not in HOST_FIELDS}
    name = attributes.get("name")
    if not name:
        raise click.ClickException("Declaration must have a name")

    if resource_type == DEFAULT_RESOURCE_TYPE:
        is_valid, error_message = validate_declaration(attributes)
        if not is_valid:
            raise click.ClickException(f"Invalid snapshot declaration: {error_message}")

    data = store.to_resource_data(name)
    if data is not None and data.id is not None:
        # Declared fields are immutable: a change needs delete + apply
        changed = [
            key
            for key, value in attributes.items()
            if (data.attributes.get(key) or None) != (value or None)
        ]
        if changed:
            raise click.ClickException(
                f"Snapshot {name} already exists and {', '.join(sorted(changed))} "
                f"cannot be changed. Delete it and apply again."
            )

    async def run() -> ResourceData:
        reconciler = await _get_reconciler(resource_type)
        if data is not None and data.id is not None:
            await reconciler.read(data)
            return data
        new_data = ResourceData(attributes=attributes)
        try:
            await reconciler.create(new_data, timeout=timeout)
        finally:
            if new_data.id is not None:
                store.put(name, resource_type, new_data)
        return new_data

    try:
        result = asyncio.run(run())
    except SnapshotError as e:
        raise click.ClickException(e.message)

    store.put(name, resource_type, result)
    _echo_attributes(name, store.get(name), output)


@cli.command()
@click.argument("name")
@click.option(
    "--output", "-o", type=click.Choice(["table", "json", "yaml"]), default="table"
)
@click.pass_obj
def get(store, name, output):
    """Refresh a snapshot from the remote API and show it"""
    data = store.to_resource_data(name)
    if data is None:
        raise click.ClickException(f"Snapshot {name} is not in {store.path}")
    resource_type = store.get(name).get("resource_type", DEFAULT_RESOURCE_TYPE)

    async def run() -> None:
        reconciler = await _get_reconciler(resource_type)
        await reconciler.read(data)

    try:
        asyncio.run(run())
    except SnapshotError as e:
        raise click.ClickException(e.message)

    store.put(name, resource_type, data)
    _echo_attributes(name, store.get(name), output)


@cli.command(name="list")
@click.pass_obj
def list_snapshots(store):
    """List snapshots in the local state file"""
    if not store.resources:
        click.echo("No snapshots")
        return

    headers = ["Name", "ID", "Lifecycle", "State", "Instance", "Size (GB)", "Cron"]
    rows = []
    for name, record in sorted(store.resources.items()):
        attributes = record.get("attributes", {})
        rows.append(
            [
                name,
                record.get("id"),
                record.get("state"),
                attributes.get("state", ""),
                attributes.get("instance_id", ""),
                attributes.get("size_gb", ""),
                attributes.get("cron_timing") or "",
            ]
        )

    click.echo(tabulate(rows, headers=headers, tablefmt="grid"))


@cli.command()
@click.argument("name")
@click.confirmation_option(prompt="Are you sure you want to delete this snapshot?")
@click.pass_obj
def delete(store, name):
    """Delete a snapshot and remove it from the state file"""
    data = store.to_resource_data(name)
    if data is None:
        raise click.ClickException(f"Snapshot {name} is not in {store.path}")
    resource_type = store.get(name).get("resource_type", DEFAULT_RESOURCE_TYPE)

    async def run() -> None:
        reconciler = await _get_reconciler(resource_type)
        await reconciler.delete(data)

    try:
        asyncio.run(run())
    except SnapshotError as e:
        raise click.ClickException(e.message)

    store.remove(name)
    click.echo(f"Snapshot {name} deleted")


if __name__ == "__main__":
    cli()
