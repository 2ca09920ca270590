"""CLI entry point for servald-client."""

from pathlib import Path
from typing import Annotated

import typer
from mm_clikit import TyperPlus

from servald_client.app_context import AppContext
from servald_client.commands.config import config_del, config_get, config_set
from servald_client.commands.keyring import dna_lookup, keyring_add, keyring_list, keyring_set, lookup
from servald_client.commands.meshms import meshms_conversations, meshms_list, meshms_read, meshms_send
from servald_client.commands.rhizome import rhizome_add, rhizome_export_manifest, rhizome_extract, rhizome_list
from servald_client.commands.server import peers, start, status, stop
from servald_client.config import Config
from servald_client.executor import SerializedExecutor, SubprocessExecutor
from servald_client.lifecycle import DaemonLifecycle
from servald_client.log import setup_logging
from servald_client.output import Output
from servald_client.servald import ServalD

app = TyperPlus(package_name="servald-client")


@app.callback()
def callback(
    ctx: typer.Context,
    *,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON.")] = False,
    data_dir: Annotated[Path | None, typer.Option("--data-dir", help="Data directory path.")] = None,
) -> None:
    """Run servald commands and show their decoded results."""
    cfg = Config.build(data_dir)
    cfg.data_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(cfg.log_path, debug=cfg.trace)
    executor = SerializedExecutor(
        SubprocessExecutor(cfg.servald_path, cfg.instance_path, delimiter=cfg.output_delimiter, timeout=cfg.command_timeout)
    )
    servald = ServalD(executor, trace=cfg.trace)
    ctx.obj = AppContext(
        out=Output(json_mode=json_output),
        servald=servald,
        lifecycle=DaemonLifecycle(servald, cfg.servald_path),
        cfg=cfg,
    )


# Server
app.command()(start)
app.command()(stop)
app.command(aliases=["s"])(status)
app.command()(peers)

# Identities
app.command("keyring-list", aliases=["kl"])(keyring_list)
app.command("keyring-add")(keyring_add)
app.command("keyring-set")(keyring_set)
app.command()(lookup)
app.command("dna")(dna_lookup)

# Rhizome
app.command("rhizome-list", aliases=["rl"])(rhizome_list)
app.command("rhizome-add")(rhizome_add)
app.command("rhizome-extract")(rhizome_extract)
app.command("rhizome-export-manifest")(rhizome_export_manifest)

# Config
app.command("config-get")(config_get)
app.command("config-set")(config_set)
app.command("config-del")(config_del)

# MeshMS
app.command("meshms-send")(meshms_send)
app.command("meshms-conversations")(meshms_conversations)
app.command("meshms-list")(meshms_list)
app.command("meshms-read")(meshms_read)
