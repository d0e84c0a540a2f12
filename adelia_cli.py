#!/usr/bin/env python
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from config import cfg, Config
from db_meta import DB
from db_main import PostStore
from posting import ThreadService
import errors as err

console = Console()


def _setup_logging(verbose):
    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


@click.group()
@click.option("--db", "db_uri", envvar="ADELIA_DB", default=cfg.master, help="SQLAlchemy database URL")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_uri, verbose):
    """ Adelia imageboard admin tool """
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj['conf'] = Config(master=db_uri)
    ctx.obj['db'] = DB(db_uri, cfg.slave, cfg.debug)


@cli.command()
@click.pass_context
def initdb(ctx):
    """ create the posts table and its indexes """
    ctx.obj['db'].create_db()
    console.print("[green]✓[/green] schema ready")


@cli.command()
@click.option("--page", default=1, type=int, help="Board page to show")
@click.pass_context
def threads(ctx, page):
    """ show one page of the board, like the index does """
    service = ThreadService(PostStore(ctx.obj['db']), ctx.obj['conf'])
    data = service.board_page(page)
    table = Table(title="%s - page %s/%s" % (ctx.obj['conf'].board_desc, data['page'], data['total_pages']),
                  show_header=True, header_style="bold cyan")
    table.add_column("No", style="bold", justify="right")
    table.add_column("Title", max_width=40)
    table.add_column("Replies", justify="right")
    table.add_column("Has File", justify="center")
    for thread, count in data['threads']:
        table.add_row(str(thread['id']), escape(thread['title'] or ''), str(count),
                      "✓" if thread['file'] else "")
    console.print(table)


@cli.command()
@click.argument("threadid", type=int)
@click.pass_context
def thread(ctx, threadid):
    """ print a thread and its replies """
    service = ThreadService(PostStore(ctx.obj['db']), ctx.obj['conf'])
    try:
        data = service.thread_view(threadid)
    except err.ThreadNotFound as e:
        console.print("[red]✗[/red] %s" % (e.message,))
        sys.exit(1)
    op = data['thread']
    console.print("[bold]%s[/bold] (No.%s, %s replies)" % (escape(op['title']), op['id'], data['reply_count']))
    console.print(op['message'], markup=False)
    for r in data['replies']:
        console.rule("No.%s" % (r['id'],))
        console.print(r['message'], markup=False)


@cli.command()
@click.option("--host", default="127.0.0.1")
@click.option("--port", default=5000, type=int)
@click.pass_context
def serve(ctx, host, port):
    """ run the development server """
    from adelia import create_app
    app = create_app(ctx.obj['conf'], PostStore(ctx.obj['db']))
    app.run(host=host, port=port, debug=ctx.obj['conf'].debug)


if __name__ == '__main__':
    cli()
