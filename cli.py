# cli.py
import asyncio
import logging
import os
import sys
from datetime import datetime
from typing import List, Dict, Any, Optional

from dotenv import load_dotenv

load_dotenv()

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import Confirm
from rich.logging import RichHandler
from rich import box

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from sdk.catalog_client import AsyncCatalogClient, DEFAULT_BASE_URL
from sdk.commands import (
    LoadRequest, SubmitFormRequest, DeleteRequest, ConfirmDeleteRequest,
    CancelDeleteRequest, SeedRequest, FilterRequest, SortRequest,
    BeginCellEditRequest, CommitCellEditRequest, CancelCellEditRequest,
)
from sdk.state import CatalogState, EventType, StateEvent, SORT_KEYS
from sdk.validation import EDITABLE_FIELDS, format_cell

console = Console()

LOW_STOCK = 5

# Custom prompt style for prompt_toolkit
custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Display helpers
# ---------------------------
def _stock_cell(stock: Any) -> str:
    style = "red" if (stock or 0) < LOW_STOCK else "green"
    return f"[{style}]{stock}[/{style}]"


def show_products(products: List[Dict[str, Any]], title: str = "📦 Products Catalog"):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("Name", style="bold", width=22)
    table.add_column("Category", width=14)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Stock", justify="right", width=7)
    table.add_column("Description", width=48)

    for p in products:
        table.add_row(
            p.get("name", "N/A"),
            p.get("category", "N/A"),
            f"${format_cell(p, 'price')}",
            _stock_cell(p.get("stock")),
            p.get("description", ""),
        )
    console.print(table)


def show_management_table(products: List[Dict[str, Any]]):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(title="🛠️ Manage Products", box=box.ROUNDED, header_style="bold yellow", show_lines=True)
    table.add_column("ID", style="dim", width=12)
    table.add_column("Name", style="bold", width=22)
    table.add_column("Category", width=14)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Stock", justify="right", width=7)
    table.add_column("Added", style="dim", width=19)

    for p in products:
        table.add_row(
            str(p.get("id", ""))[:12],
            p.get("name", "N/A"),
            p.get("category", "N/A"),
            format_cell(p, "price"),
            _stock_cell(p.get("stock")),
            str(p.get("dateAdded", ""))[:19],
        )
    console.print(table)


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


def on_state_event(event: StateEvent):
    # transient notifications; re-rendering happens on demand from the menu
    if event.type is EventType.SUCCESS:
        console.print(show_status(event.message, True))
    elif event.type is EventType.ERROR:
        console.print(show_status(event.message, False))


def create_header(state: CatalogState):
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        f"🛍️ Catalog ({state.count} products)",
        "[bold blue]Product Catalog Manager[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Input helpers with autocomplete
# ---------------------------
async def ask(session: PromptSession, message: str, completer=None, default: str = "") -> str:
    text = await session.prompt_async(f"{message} ", completer=completer, style=custom_style, default=default)
    return text.strip()


def get_product_completer(state: CatalogState):
    names = [p.get("name", "") for p in state.products]
    ids = [p.get("id", "") for p in state.products]
    return WordCompleter([n for n in (names + ids) if n], ignore_case=True, sentence=True)


def resolve_product(state: CatalogState, text: str) -> Optional[str]:
    text = text.strip()
    if state.get(text):
        return text
    matches = [p for p in state.products if p.get("name", "").lower() == text.lower()]
    if len(matches) == 1:
        return matches[0]["id"]
    prefixed = [p for p in state.products if text and str(p.get("id", "")).startswith(text)]
    if len(prefixed) == 1:
        return prefixed[0]["id"]
    return None


async def pick_product(session: PromptSession, state: CatalogState) -> Optional[str]:
    text = await ask(session, "Product (name or ID)", completer=get_product_completer(state))
    pid = resolve_product(state, text)
    if pid is None:
        console.print(f"[yellow]No single product matches '{text}'[/yellow]")
    return pid


async def ask_draft(session: PromptSession, initial: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    initial = initial or {}
    draft = {}
    for field in EDITABLE_FIELDS:
        current = "" if initial.get(field) is None else str(initial[field])
        draft[field] = await ask(session, f"{field.capitalize()}:", default=current)
    draft["imageUrl"] = await ask(session, "Image URL (blank for placeholder):", default=initial.get("imageUrl", ""))
    return draft


# ---------------------------
# Main menu
# ---------------------------
async def menu(state: CatalogState, session: PromptSession):
    console.clear()
    console.print(create_header(state))

    while True:
        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "📦 Browse products", "6", "✏️ Quick edit a cell"),
            ("2", "🔍 Search", "7", "🗑️ Delete product"),
            ("3", "↕️ Sort", "8", "🌱 Seed sample data"),
            ("4", "➕ Add product", "9", "🔄 Reload"),
            ("5", "📝 Edit product", "10", "🛠️ Management table"),
            ("", "", "q", "👋 Quit")
        ]
        for row in options:
            menu_table.add_row(*row)

        subtitle = f"filter='{state.filter_term}' sort={state.sort_key or 'none'}"
        console.print(Panel(menu_table, title="📋 Menu", subtitle=subtitle, border_style="yellow"))

        choice = await ask(
            session, "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 11)] + ["q", "quit", "exit"])
        )

        try:
            await handle_choice(choice, state, session)
        except (KeyboardInterrupt, EOFError):
            # Ctrl-C inside a sub-prompt abandons that action only
            if state.editing_id is not None:
                state.cancel_form_edit()
            console.print("[dim]cancelled[/dim]")

        console.print()
        console.rule(style="dim")


async def handle_choice(choice: str, state: CatalogState, session: PromptSession):
    if choice == "1":
        show_products(state.view())

    elif choice == "2":
        term = await ask(session, "Search term (blank clears):", default=state.filter_term)
        await state.dispatch(FilterRequest(term=term))
        show_products(state.view(), title=f"🔍 Results for '{term}'" if term else "📦 Products Catalog")

    elif choice == "3":
        key = await ask(session, "Sort by", completer=WordCompleter(list(SORT_KEYS) + ["none"]), default=state.sort_key or "")
        await state.dispatch(SortRequest(key=None if key in ("", "none") else key))
        show_products(state.view())

    elif choice == "4":
        draft = await ask_draft(session)
        result = await state.dispatch(SubmitFormRequest(draft=draft))
        if result.ok:
            show_products([result.value], title="➕ Added")

    elif choice == "5":
        pid = await pick_product(session, state)
        if pid is None:
            return
        initial = state.begin_form_edit(pid)
        try:
            draft = await ask_draft(session, initial)
        except (KeyboardInterrupt, EOFError):
            state.cancel_form_edit()
            console.print("[dim]edit cancelled[/dim]")
            return
        result = await state.dispatch(SubmitFormRequest(draft=draft))
        if result.ok:
            show_products([result.value], title="📝 Updated")
        else:
            state.cancel_form_edit()

    elif choice == "6":
        pid = await pick_product(session, state)
        if pid is None:
            return
        field = await ask(session, "Field", completer=WordCompleter(list(EDITABLE_FIELDS)))
        if field not in EDITABLE_FIELDS:
            console.print(f"[yellow]'{field}' is not an editable field[/yellow]")
            return
        cell = await state.dispatch(BeginCellEditRequest(id=pid, field=field))
        if cell is None:
            return
        try:
            value = await ask(session, f"{field.capitalize()}:", default=cell.rollback)
        except (KeyboardInterrupt, EOFError):
            await state.dispatch(CancelCellEditRequest(id=pid, field=field))
            console.print(f"[dim]{field} left at {cell.displayed}[/dim]")
            return
        cell = await state.dispatch(CommitCellEditRequest(id=pid, field=field, value=value))
        console.print(f"[bold]{field}[/bold] → {cell.displayed}")

    elif choice == "7":
        pid = await pick_product(session, state)
        if pid is None:
            return
        result = await state.dispatch(DeleteRequest(id=pid))
        if not result.ok:
            return
        name = state.get(pid).get("name", pid)
        if Confirm.ask(f"[red]Delete '{name}'? This cannot be undone.[/red]"):
            await state.dispatch(ConfirmDeleteRequest())
        else:
            await state.dispatch(CancelDeleteRequest())

    elif choice == "8":
        if Confirm.ask("[red]This will replace all products with sample data. Continue?[/red]"):
            await state.dispatch(SeedRequest())
            show_products(state.view())

    elif choice == "9":
        result = await state.dispatch(LoadRequest())
        if result.ok:
            console.print(show_status(f"Loaded {result.value} products"))

    elif choice == "10":
        show_management_table(state.products)

    elif choice.lower() in ("q", "quit", "exit"):
        if Confirm.ask("Are you sure you want to quit?"):
            console.print(Panel.fit("[bold green]Goodbye! 👋[/bold green]", title="Goodbye"))
            raise SystemExit(0)


async def main(base_url: str = DEFAULT_BASE_URL):
    logging.basicConfig(
        level=os.getenv("CATALOG_LOG_LEVEL", "WARNING").upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    client = AsyncCatalogClient(base_url=base_url)
    state = CatalogState(client)
    state.subscribe(on_state_event)
    try:
        await state.dispatch(LoadRequest())
        await menu(state, PromptSession())
    finally:
        await client.aclose()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
