"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdsite.cli.commands import build_cmd, init_cmd, main_callback, render_cmd, serve_cmd


app = typer.Typer(name="mdsite", no_args_is_help=True, help="Static site generator for markdown content")

app.callback()(main_callback)
app.command(name="build")(build_cmd)
app.command(name="render")(render_cmd)
app.command(name="serve")(serve_cmd)
app.command(name="init")(init_cmd)
