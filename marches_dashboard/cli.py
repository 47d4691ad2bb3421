"""
Command-line front end of the marchés dashboard.

Usage:
    python main.py login user@example.org
    python main.py list --organization commune --page 2
    python main.py tree 12
    python main.py upload 12 4 ./scan.pdf --type copie --count 2

Run `python main.py --help` for every command.
"""

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.tree import Tree

from marches_dashboard.api import ApiClient
from marches_dashboard.config import DashboardSettings
from marches_dashboard.errors import AuthenticationRequiredError, DashboardError, ValidationError, user_message
from marches_dashboard.models import TreeNode
from marches_dashboard.storage import HandoffStore, SessionStore
from marches_dashboard.sync import load_stats
from marches_dashboard.ui.access import resolve_route
from marches_dashboard.ui.browser import DocumentBrowser, piece_count_label
from marches_dashboard.ui.dialogs import DialogKind
from marches_dashboard.ui.forms import (
    RecordFormController,
    validate_password_reset,
    validate_registration,
)
from marches_dashboard.ui.map import MapController
from marches_dashboard.ui.navigation import DASHBOARD, FROM_ADD_RECORD, LOGIN, MAP, REGISTER, Location, Navigator
from marches_dashboard.ui.notifier import Notifier
from marches_dashboard.ui.records import RecordListView
from marches_dashboard.utils.logging import setup_logging

console = Console()

# Page each command stands for, for access control
COMMAND_ROUTES = {
    "login": LOGIN,
    "register": REGISTER,
    "forgot": "/forgot-password",
    "reset": "/reset-password",
    "verify": "/verify-email",
}


class Context:
    """Objects shared by the command handlers of one invocation."""

    def __init__(self, api: ApiClient, settings: DashboardSettings, session: SessionStore):
        self.api = api
        self.settings = settings
        self.session = session
        self.handoff = HandoffStore(settings.state_dir)
        self.navigator = Navigator(Location(DASHBOARD))
        self.notifier = Notifier(settings.banner_duration, sink=lambda m: console.print(f"[yellow]{m}[/yellow]"))


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def cmd_login(ctx: Context, args) -> int:
    password = args.password or Prompt.ask("Password", password=True)
    token = await ctx.api.auth.login(args.email, password)
    if not token:
        console.print("[red]Login succeeded but the backend did not return a session token[/red]")
        return 1
    ctx.session.save_token(token)
    user = await ctx.api.auth.current_user()
    console.print(f"[green]Logged in as {user.display_name}[/green]")
    return 0


async def cmd_logout(ctx: Context, args) -> int:
    try:
        await ctx.api.auth.logout()
    finally:
        ctx.session.clear()
    console.print("Logged out")
    return 0


async def cmd_whoami(ctx: Context, args) -> int:
    user = await ctx.api.auth.current_user()
    console.print(f"{user.display_name} <{user.email}>")
    return 0


async def cmd_register(ctx: Context, args) -> int:
    password = args.password or Prompt.ask("Password", password=True)
    confirm = args.password or Prompt.ask("Confirm password", password=True)
    validate_registration(args.name, args.last_name, args.email, password, confirm)
    await ctx.api.auth.register(args.name, args.last_name, args.email, password)
    console.print("[green]Account created. Check your mailbox to verify the email address.[/green]")
    return 0


async def cmd_forgot(ctx: Context, args) -> int:
    data = await ctx.api.auth.forgot_password(args.email)
    message = data.get("message") if isinstance(data, dict) else None
    console.print(message or "If the address is known, a reset link has been sent.")
    return 0


async def cmd_reset(ctx: Context, args) -> int:
    password = args.password or Prompt.ask("New password", password=True)
    confirm = args.password or Prompt.ask("Confirm password", password=True)
    validate_password_reset(password, confirm)
    await ctx.api.auth.reset_password(args.token, password)
    console.print("[green]Password updated. You can now log in.[/green]")
    return 0


async def cmd_verify(ctx: Context, args) -> int:
    console.print(await ctx.api.auth.verify_email(args.token))
    return 0


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

def _records_table(records, title: Optional[str] = None) -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAD, header_style="bold")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Reference")
    table.add_column("Subject", overflow="fold")
    table.add_column("Year", justify="right")
    table.add_column("Box")
    table.add_column("Organization")
    table.add_column("Type")
    table.add_column("Location")
    for r in records:
        location = f"{r.latitude:.5f}, {r.longitude:.5f}" if r.has_coordinates else "-"
        table.add_row(
            str(r.id), r.reference, r.subject, str(r.year or ""), r.box_number,
            r.organization, r.community_type, location,
        )
    return table


async def cmd_list(ctx: Context, args) -> int:
    view = RecordListView(ctx.api, ctx.navigator, ctx.notifier, ctx.settings)
    view.store.filters.reference = args.reference or ""
    view.store.filters.subject = args.subject or ""
    view.store.filters.organization = args.organization or ""
    view.store.filters.year = args.year or ""
    view.store.filters.box_number = args.box or ""
    view.store.filters.community_type = args.type or ""
    await view.store.fetch(args.page)

    store = view.store
    if store.error:
        console.print(f"[red]{store.error}[/red]")
        return 1
    console.print(_records_table(store.records))
    console.print(f"Page {store.page} / {store.total_pages}  ({store.total_items} records)")
    return 0


async def cmd_show(ctx: Context, args) -> int:
    record = await ctx.api.records.get(args.record_id)
    console.print(_records_table([record], title=f"Record {record.id}"))
    geometries = await ctx.api.geometries.for_record(record.id)
    if geometries:
        console.print(f"{len(geometries)} geometry(ies): " + ", ".join(g.geometry_type for g in geometries))
    return 0


def _apply_record_args(form: RecordFormController, args) -> None:
    draft = form.draft
    for attr, value in (
        ("reference", args.reference),
        ("subject", args.subject),
        ("box_number", args.box),
        ("organization", args.organization),
        ("community_type", args.type),
    ):
        if value is not None:
            setattr(draft, attr, value)
    if args.year is not None:
        draft.year = args.year
    if args.geom is not None:
        draft.apply_wkt(args.geom)
    if args.lat is not None and args.lng is not None:
        draft.latitude, draft.longitude = args.lat, args.lng


async def _save_record(ctx: Context, args, record_id: Optional[int]) -> int:
    form = RecordFormController(
        ctx.api, ctx.handoff, ctx.navigator, notifier=ctx.notifier,
        record_id=record_id, settings=ctx.settings,
    )
    if not await form.load():
        console.print(f"[red]{form.error}[/red]")
        return 1
    if args.resume and form.restore():
        console.print(f"Using map coordinates {form.draft.latitude}, {form.draft.longitude}")
    _apply_record_args(form, args)

    if args.choose_on_map:
        form.choose_on_map()
        console.print(
            "Form saved. Run [bold]pick LAT LNG[/bold], then repeat this command with [bold]--resume[/bold]."
        )
        return 0

    result = await form.submit()
    if not result.ok:
        if isinstance(result.error, ValidationError):
            console.print(f"[red]{result.message}[/red]")
        return 1
    console.print("[green]Record saved[/green]")
    return 0


async def cmd_add(ctx: Context, args) -> int:
    return await _save_record(ctx, args, None)


async def cmd_edit(ctx: Context, args) -> int:
    return await _save_record(ctx, args, args.record_id)


async def cmd_delete(ctx: Context, args) -> int:
    view = RecordListView(ctx.api, ctx.navigator, ctx.notifier, ctx.settings)
    record = await ctx.api.records.get(args.record_id)
    view.store.records = [record]
    view.request_delete(record)
    if not args.yes and not Confirm.ask(f"Delete record {record.reference or record.id}?"):
        view.cancel_delete()
        return 0
    result = await view.confirm_delete()
    if result.ok:
        console.print("[green]Record deleted[/green]")
    return 0 if result.ok else 1


async def cmd_pick(ctx: Context, args) -> int:
    """Pick coordinates for a parked record form, as a click on the map would."""
    ctx.navigator.push(MAP, **{"from": FROM_ADD_RECORD})
    controller = MapController.from_navigation(
        ctx.navigator.current.params,
        ctx.api, ctx.handoff, ctx.navigator,
        notifier=ctx.notifier, settings=ctx.settings,
    )
    controller.click(args.lat, args.lng)
    await asyncio.sleep(ctx.settings.navigation_delay)
    console.print(f"Selected {args.lat}, {args.lng}")
    return 0


async def cmd_polygon(ctx: Context, args) -> int:
    vertices = []
    for pair in args.vertices:
        lat, _, lng = pair.partition(",")
        try:
            vertices.append((float(lat), float(lng)))
        except ValueError:
            console.print(f"[red]Invalid vertex {pair!r}; expected LAT,LNG[/red]")
            return 1

    controller = MapController(ctx.api, ctx.handoff, ctx.navigator, notifier=ctx.notifier, settings=ctx.settings)
    await controller.load_records()
    if controller.backend_error:
        console.print(f"[red]{controller.backend_error}[/red]")
        return 1
    controller.start_search_draw()
    try:
        controller.complete_polygon(vertices)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return 1
    if args.filter:
        controller.set_results_filter(args.filter)
    console.print(_records_table(controller.filtered_results, title="Records inside the polygon"))
    return 0


async def cmd_stats(ctx: Context, args) -> int:
    stats = await load_stats(ctx.api, ctx.settings)
    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column(style="bold")
    table.add_column(justify="right")
    table.add_row("Records", str(stats.total_records))
    table.add_row("Located records", str(stats.located_records))
    table.add_row("Folders", str(stats.total_folders))
    table.add_row("Pieces", str(stats.total_pieces))
    console.print(table)
    return 0


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

def _add_branch(parent: Tree, node: TreeNode) -> None:
    branch = parent.add(f"[bold]{node.name}[/bold] [dim]#{node.id} · {piece_count_label(node)}[/dim]")
    for child in node.children:
        _add_branch(branch, child)
    for piece in node.pieces:
        branch.add(f"{piece.name} [dim]#{piece.id} · {piece.piece_type} · x{piece.count}[/dim]")


async def _browser(ctx: Context, record_id: int) -> DocumentBrowser:
    browser = DocumentBrowser(ctx.api, record_id, ctx.notifier, ctx.settings)
    await browser.load()
    return browser


async def _confirm_dialog(browser: DocumentBrowser, kind: DialogKind) -> int:
    result = await browser.confirm(kind)
    if not result.ok:
        console.print(f"[red]{result.message}[/red]")
        return 1
    console.print(f"[green]{browser.notifier.visible_banners[-1].message}[/green]")
    return 0


async def cmd_tree(ctx: Context, args) -> int:
    browser = await _browser(ctx, args.record_id)
    if browser.error:
        console.print(f"[red]{browser.error}[/red]")
        return 1
    browser.set_query(args.query or "")
    root = Tree(f"Record {args.record_id}")
    for node in browser.roots:
        _add_branch(root, node)
    console.print(root)
    return 0


async def cmd_mkdir(ctx: Context, args) -> int:
    browser = await _browser(ctx, args.record_id)
    dialog = browser.open_create_folder(args.parent)
    dialog.name = args.name
    return await _confirm_dialog(browser, DialogKind.CREATE_FOLDER)


async def cmd_rename(ctx: Context, args) -> int:
    browser = await _browser(ctx, args.record_id)
    dialog = browser.open_rename_folder(args.node_id)
    dialog.name = args.name
    return await _confirm_dialog(browser, DialogKind.RENAME_FOLDER)


async def cmd_rmdir(ctx: Context, args) -> int:
    browser = await _browser(ctx, args.record_id)
    dialog = browser.open_delete_folder(args.node_id)
    if not args.yes and not Confirm.ask(f"Delete folder '{dialog.name}'?"):
        browser.cancel(DialogKind.DELETE_FOLDER)
        return 0
    return await _confirm_dialog(browser, DialogKind.DELETE_FOLDER)


async def cmd_upload(ctx: Context, args) -> int:
    browser = await _browser(ctx, args.record_id)
    dialog = browser.open_upload(args.node_id)
    dialog.file_path = Path(args.file)
    dialog.description = args.description or ""
    dialog.piece_type = args.type
    dialog.count = args.count
    with console.status(f"Uploading {dialog.file_path.name}..."):
        return await _confirm_dialog(browser, DialogKind.UPLOAD_PIECE)


async def cmd_edit_piece(ctx: Context, args) -> int:
    browser = await _browser(ctx, args.record_id)
    dialog = browser.open_edit_piece(args.piece_id)
    if args.description is not None:
        dialog.description = args.description
    if args.type is not None:
        dialog.piece_type = args.type
    if args.count is not None:
        dialog.count = args.count
    return await _confirm_dialog(browser, DialogKind.EDIT_PIECE)


async def cmd_rm_piece(ctx: Context, args) -> int:
    browser = await _browser(ctx, args.record_id)
    dialog = browser.open_delete_piece(args.piece_id)
    if not args.yes and not Confirm.ask(f"Delete piece '{dialog.name}'?"):
        browser.cancel(DialogKind.DELETE_PIECE)
        return 0
    return await _confirm_dialog(browser, DialogKind.DELETE_PIECE)


async def cmd_download(ctx: Context, args) -> int:
    browser = await _browser(ctx, args.record_id)
    with console.status("Downloading..."):
        target = await browser.download(args.piece_id, Path(args.dest))
    if target is None:
        return 1
    console.print(f"Saved to {target}")
    return 0


async def cmd_geometries(ctx: Context, args) -> int:
    geometries = await ctx.api.geometries.for_record(args.record_id)
    table = Table(box=box.SIMPLE_HEAD, header_style="bold")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Type")
    table.add_column("Created")
    for g in geometries:
        table.add_row(str(g.id or ""), g.geometry_type, g.created_at)
    console.print(table)
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def _record_fields(p: argparse.ArgumentParser) -> None:
    p.add_argument("--reference", help="Reference number (num_marche)")
    p.add_argument("--subject", help="Subject (objet)")
    p.add_argument("--year", type=int, help="Year (annee)")
    p.add_argument("--box", help="Archive box number (num_boite)")
    p.add_argument("--organization", help="Organization (organisme)")
    p.add_argument("--type", help="Public community type")
    p.add_argument("--lat", type=float, help="Latitude")
    p.add_argument("--lng", type=float, help="Longitude")
    p.add_argument("--geom", metavar="WKT", help="Location as POINT(lng lat); an empty string clears it")
    p.add_argument("--choose-on-map", action="store_true", help="Park the form and pick coordinates with 'pick'")
    p.add_argument("--resume", action="store_true", help="Restore a parked form and the picked coordinates")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marches",
        description="Browse and manage public procurement records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py login user@example.org
  python main.py list --year 2021 --page 2
  python main.py polygon 34,-5 34,-4 33,-4.5
        """
    )
    parser.add_argument("--api-base", help="Backend URL (default: $MARCHES_API_BASE or http://localhost:5001)")
    parser.add_argument("--state-dir", help="Directory for the session and handoff files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging (debug level)")
    sub = parser.add_subparsers(dest="command", metavar="command")

    p = sub.add_parser("login", help="Log in")
    p.add_argument("email")
    p.add_argument("--password")
    p.set_defaults(handler=cmd_login)

    sub.add_parser("logout", help="Log out").set_defaults(handler=cmd_logout)
    sub.add_parser("whoami", help="Show the logged-in user").set_defaults(handler=cmd_whoami)

    p = sub.add_parser("register", help="Create an account")
    p.add_argument("--name", required=True, help="First name")
    p.add_argument("--last-name", required=True)
    p.add_argument("--email", required=True)
    p.add_argument("--password")
    p.set_defaults(handler=cmd_register)

    p = sub.add_parser("forgot", help="Request a password reset email")
    p.add_argument("email")
    p.set_defaults(handler=cmd_forgot)

    p = sub.add_parser("reset", help="Set a new password with a reset token")
    p.add_argument("token")
    p.add_argument("--password")
    p.set_defaults(handler=cmd_reset)

    p = sub.add_parser("verify", help="Verify an email address")
    p.add_argument("token")
    p.set_defaults(handler=cmd_verify)

    p = sub.add_parser("list", help="List records")
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--reference")
    p.add_argument("--subject")
    p.add_argument("--organization")
    p.add_argument("--year")
    p.add_argument("--box")
    p.add_argument("--type", help="Public community type")
    p.set_defaults(handler=cmd_list)

    p = sub.add_parser("show", help="Show one record")
    p.add_argument("record_id", type=int)
    p.set_defaults(handler=cmd_show)

    p = sub.add_parser("add", help="Add a record")
    _record_fields(p)
    p.set_defaults(handler=cmd_add)

    p = sub.add_parser("edit", help="Edit a record")
    p.add_argument("record_id", type=int)
    _record_fields(p)
    p.set_defaults(handler=cmd_edit)

    p = sub.add_parser("delete", help="Delete a record")
    p.add_argument("record_id", type=int)
    p.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    p.set_defaults(handler=cmd_delete)

    p = sub.add_parser("pick", help="Pick coordinates for a parked record form")
    p.add_argument("lat", type=float)
    p.add_argument("lng", type=float)
    p.set_defaults(handler=cmd_pick)

    p = sub.add_parser("polygon", help="List records inside a polygon")
    p.add_argument("vertices", nargs="+", metavar="LAT,LNG")
    p.add_argument("--filter", help="Text filter over reference, subject and organization")
    p.set_defaults(handler=cmd_polygon)

    sub.add_parser("stats", help="Dashboard statistics").set_defaults(handler=cmd_stats)

    p = sub.add_parser("geometries", help="List the shapes drawn for a record")
    p.add_argument("record_id", type=int)
    p.set_defaults(handler=cmd_geometries)

    p = sub.add_parser("tree", help="Show the document tree of a record")
    p.add_argument("record_id", type=int)
    p.add_argument("--query", help="Search folder and piece names")
    p.set_defaults(handler=cmd_tree)

    p = sub.add_parser("mkdir", help="Create a folder")
    p.add_argument("record_id", type=int)
    p.add_argument("name")
    p.add_argument("--parent", type=int, help="Parent folder id (default: root)")
    p.set_defaults(handler=cmd_mkdir)

    p = sub.add_parser("rename", help="Rename a folder")
    p.add_argument("record_id", type=int)
    p.add_argument("node_id", type=int)
    p.add_argument("name")
    p.set_defaults(handler=cmd_rename)

    p = sub.add_parser("rmdir", help="Delete a folder")
    p.add_argument("record_id", type=int)
    p.add_argument("node_id", type=int)
    p.add_argument("-y", "--yes", action="store_true")
    p.set_defaults(handler=cmd_rmdir)

    p = sub.add_parser("upload", help="Upload a file into a folder")
    p.add_argument("record_id", type=int)
    p.add_argument("node_id", type=int)
    p.add_argument("file")
    p.add_argument("--description")
    p.add_argument("--type", default="originale", choices=["originale", "copie"])
    p.add_argument("--count", type=int, default=1)
    p.set_defaults(handler=cmd_upload)

    p = sub.add_parser("edit-piece", help="Edit a piece")
    p.add_argument("record_id", type=int)
    p.add_argument("piece_id", type=int)
    p.add_argument("--description")
    p.add_argument("--type", choices=["originale", "copie"])
    p.add_argument("--count", type=int)
    p.set_defaults(handler=cmd_edit_piece)

    p = sub.add_parser("rm-piece", help="Delete a piece")
    p.add_argument("record_id", type=int)
    p.add_argument("piece_id", type=int)
    p.add_argument("-y", "--yes", action="store_true")
    p.set_defaults(handler=cmd_rm_piece)

    p = sub.add_parser("download", help="Download a piece's file")
    p.add_argument("record_id", type=int)
    p.add_argument("piece_id", type=int)
    p.add_argument("--dest", default=".", help="Destination directory (default: current)")
    p.set_defaults(handler=cmd_download)

    return parser


def _settings_from_args(args) -> DashboardSettings:
    settings = DashboardSettings.from_env()
    overrides = {}
    if args.api_base:
        overrides["api_base"] = args.api_base
    if args.state_dir:
        overrides["state_dir"] = Path(args.state_dir)
    if overrides:
        settings = replace(settings, **overrides)
    return settings


async def run(args, settings: DashboardSettings) -> int:
    """Run one parsed command; errors are printed, never raised."""
    session = SessionStore(settings.state_dir, settings.api_base)
    token = session.load_token()

    redirect = resolve_route(COMMAND_ROUTES.get(args.command, DASHBOARD), authenticated=bool(token))
    if redirect == LOGIN:
        console.print("[red]Not logged in.[/red] Run [bold]login EMAIL[/bold] first.")
        return 1
    if redirect == DASHBOARD:
        console.print("Already logged in. Run [bold]logout[/bold] first to switch accounts.")
        return 1

    async with ApiClient(settings, token=token) as api:
        ctx = Context(api, settings, session)
        try:
            return await args.handler(ctx, args)
        except AuthenticationRequiredError as e:
            if not token:
                # Wrong credentials on login
                console.print(f"[red]{user_message(e, 'Authentication failed')}[/red]")
                return 1
            session.clear()
            console.print("[red]Session expired.[/red] Run [bold]login EMAIL[/bold] again.")
            return 1
        except DashboardError as e:
            console.print(f"[red]{user_message(e, 'The operation failed')}[/red]")
            return 1


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    settings = _settings_from_args(args)
    setup_logging(settings.state_dir / "logs", verbose=args.verbose)
    sys.exit(asyncio.run(run(args, settings)))


if __name__ == "__main__":
    main()
