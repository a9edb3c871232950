"""CLI for Money Splitter using Typer."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date

import typer
from rich.console import Console
from rich.table import Table

from .config import load_settings
from .db import Database
from .engine import is_negative, is_positive, is_zero, split_equally
from .exceptions import InvalidExpenseError, MoneySplitterError
from .models import Debt, ExpenseCategory
from .scenarios import ScenarioResult, all_scenarios
from .service import LedgerService
from .ui import confirm, select_person_interactive

app = typer.Typer(
    name="money-splitter",
    help="Track shared expenses and settle up with the fewest payments",
)
friend_app = typer.Typer(help="Manage friends")
group_app = typer.Typer(help="Manage groups")
expense_app = typer.Typer(help="Record and review expenses")

app.add_typer(friend_app, name="friend")
app.add_typer(group_app, name="group")
app.add_typer(expense_app, name="expense")

console = Console()

VerboseOption = typer.Option(False, "--verbose", "-v", help="Verbose output")


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@contextmanager
def open_service(verbose: bool = False) -> Iterator[LedgerService]:
    """Load settings, open the database and yield a ready service."""
    setup_logging(verbose)
    db = None

    try:
        settings = load_settings()
        if settings.use_database:
            db = Database(settings.database_path)
        yield LedgerService(settings, db)

    except (MoneySplitterError, ValueError) as e:
        console.print(f"\n[bold yellow]⚠️  {e}[/bold yellow]\n")
        if verbose:
            raise
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if db is not None:
            db.close()


def format_money(amount: float, symbol: str = "Rs.", use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: (Rs.85.02)
    Positive amounts have spaces:      Rs.85.02
    The spaces ensure decimal points align in tables.
    """
    abs_amount = abs(amount)
    if is_zero(amount):
        abs_amount = 0.0
    if is_negative(amount):
        if use_color:
            return f"({symbol}[red]{abs_amount:,.2f}[/red])"
        return f"({symbol}{abs_amount:,.2f})"
    if use_color:
        return f" [green]{symbol}{abs_amount:,.2f}[/green] "
    return f" {symbol}{abs_amount:,.2f} "


def parse_amounts(
    service: LedgerService, values: list[str], option: str
) -> dict[str, float]:
    """Turn NAME=AMOUNT strings into a person id -> amount mapping."""
    amounts: dict[str, float] = {}
    for value in values:
        name, sep, raw_amount = value.rpartition("=")
        if not sep or not name:
            raise InvalidExpenseError(f"{option} expects NAME=AMOUNT, got '{value}'")
        try:
            amount = float(raw_amount)
        except ValueError as e:
            raise InvalidExpenseError(f"Invalid amount in {option} '{value}'") from e
        person = service.find_person(name)
        amounts[person.id] = amounts.get(person.id, 0.0) + amount
    return amounts


def display_debts(service: LedgerService, debts: list[Debt], title: str):
    """Display debts in a table."""
    symbol = service.settings.currency_symbol
    if not debts:
        console.print("[green]All settled up! Nobody owes anything.[/green]")
        return

    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Who pays", style="cyan")
    table.add_column("Who receives", style="cyan")
    table.add_column("Amount", justify="right", width=14)

    for debt in debts:
        table.add_row(
            service.person_name(debt.from_id),
            service.person_name(debt.to_id),
            format_money(debt.amount, symbol),
        )

    console.print(table)


def display_balances(service: LedgerService, balances: dict[str, float], title: str):
    """Display net balances, largest creditor first."""
    symbol = service.settings.currency_symbol
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Person", style="cyan")
    table.add_column("Balance", justify="right", width=16)
    table.add_column("Status", style="dim")

    for person_id, balance in sorted(balances.items(), key=lambda x: -x[1]):
        if is_positive(balance):
            status = "should receive"
        elif is_negative(balance):
            status = "should pay"
        else:
            status = "settled"
        table.add_row(
            service.person_name(person_id), format_money(balance, symbol), status
        )

    console.print(table)


def display_scenario(result: ScenarioResult, symbol: str):
    """Print one worked example."""
    expense = result.expense

    def name(person_id: str) -> str:
        person = result.people.get(person_id)
        return person.name if person else person_id

    console.print(f"\n[bold]{result.title}[/bold]")
    console.print(f"  Description: {expense.description}")
    console.print(f"  Total amount: {format_money(expense.amount, symbol)}")

    console.print("\n  [bold]Contributions (who paid):[/bold]")
    for person_id, paid in expense.paid_by.items():
        console.print(f"    {name(person_id)}: {format_money(paid, symbol)}")

    console.print("\n  [bold]Shares (what each person owes):[/bold]")
    for person_id, share in expense.participants.items():
        console.print(f"    {name(person_id)}: {format_money(share, symbol)}")

    console.print("\n  [bold]Net balances:[/bold]")
    for person_id, balance in sorted(result.balances.items(), key=lambda x: -x[1]):
        console.print(f"    {name(person_id)}: {format_money(balance, symbol)}")

    console.print("\n  [bold]Simplified settlements:[/bold]")
    if not result.debts:
        console.print("    All balanced! No settlements needed.")
    for debt in result.debts:
        console.print(
            f"    {name(debt.from_id)} should pay {name(debt.to_id)}: "
            f"{format_money(debt.amount, symbol)}"
        )


# ============================================================================
# Friends
# ============================================================================


@friend_app.command("add")
def friend_add(
    name: str = typer.Argument(..., help="Friend's name"),
    phone: str = typer.Option(None, "--phone", help="Phone number"),
    email: str = typer.Option(None, "--email", help="Email address"),
    app_user: bool = typer.Option(False, "--app-user", help="Friend uses the app"),
    verbose: bool = VerboseOption,
):
    """Add a friend."""
    with open_service(verbose) as service:
        friend = service.add_friend(
            name, phone_number=phone, email=email, is_app_user=app_user
        )
        console.print(f"[green]✓ Added {friend.name}[/green] [dim]({friend.id})[/dim]")


@friend_app.command("list")
def friend_list(verbose: bool = VerboseOption):
    """List friends."""
    with open_service(verbose) as service:
        friends = service.list_friends()
        if not friends:
            console.print("[yellow]No friends yet.[/yellow]")
            return

        table = Table(title="Friends", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("App user", justify="center")
        table.add_column("Contact")

        for friend in friends:
            contact = ", ".join(c for c in (friend.phone_number, friend.email) if c)
            table.add_row(
                friend.id, friend.name, "✓" if friend.is_app_user else "", contact
            )

        console.print(table)


@friend_app.command("remove")
def friend_remove(
    friend: str = typer.Argument(..., help="Friend's name or id"),
    verbose: bool = VerboseOption,
):
    """Remove a friend (their expenses are kept)."""
    with open_service(verbose) as service:
        person = service.find_person(friend)
        service.delete_friend(person.id)
        console.print(f"[green]✓ Removed {person.name}[/green]")


# ============================================================================
# Groups
# ============================================================================


@group_app.command("add")
def group_add(
    name: str = typer.Argument(..., help="Group name"),
    members: list[str] = typer.Option(
        [], "--member", "-m", help="Member name or id (repeatable)"
    ),
    verbose: bool = VerboseOption,
):
    """Create a group."""
    with open_service(verbose) as service:
        member_ids = [service.find_person(member).id for member in members]
        group = service.add_group(name, member_ids)
        console.print(
            f"[green]✓ Created group {group.name}[/green] [dim]({group.id})[/dim]"
        )


@group_app.command("list")
def group_list(verbose: bool = VerboseOption):
    """List groups."""
    with open_service(verbose) as service:
        groups = service.list_groups()
        if not groups:
            console.print("[yellow]No groups yet.[/yellow]")
            return

        table = Table(title="Groups", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Members")

        for group in groups:
            names = ", ".join(service.person_name(mid) for mid in group.member_ids)
            table.add_row(group.id, group.name, names)

        console.print(table)


@group_app.command("remove")
def group_remove(
    group_id: str = typer.Argument(..., help="Group id"),
    verbose: bool = VerboseOption,
):
    """Delete a group."""
    with open_service(verbose) as service:
        service.delete_group(group_id)
        console.print("[green]✓ Group deleted[/green]")


# ============================================================================
# Expenses
# ============================================================================


@expense_app.command("add")
def expense_add(
    description: str = typer.Argument(..., help="What the money was spent on"),
    amount: float = typer.Argument(..., help="Total amount"),
    paid_by: list[str] = typer.Option(
        [], "--paid-by", help="NAME=AMOUNT a person paid (repeatable)"
    ),
    payers: list[str] = typer.Option(
        [], "--payer", help="Person who paid, amount split equally (repeatable)"
    ),
    shares: list[str] = typer.Option(
        [], "--share", help="NAME=AMOUNT a person owes (repeatable)"
    ),
    split_with: list[str] = typer.Option(
        [], "--split-with", help="Person sharing equally (repeatable)"
    ),
    group_id: str = typer.Option(
        None, "--group", "-g", help="Split equally between a group's members"
    ),
    on: str = typer.Option(None, "--date", help="Date (YYYY-MM-DD), default today"),
    category: ExpenseCategory = typer.Option(
        ExpenseCategory.OTHER, "--category", "-c", help="Expense category"
    ),
    verbose: bool = VerboseOption,
):
    """
    Record an expense.

    If no payer is given, you paid the whole amount. Participants are given
    with --share, --split-with or --group.
    """
    with open_service(verbose) as service:
        if paid_by:
            payer_amounts = parse_amounts(service, paid_by, "--paid-by")
        elif payers:
            payer_amounts = split_equally(
                [service.find_person(p).id for p in payers], amount
            )
        else:
            payer_amounts = {service.current_user.id: amount}

        if shares:
            participant_shares = parse_amounts(service, shares, "--share")
        else:
            sharing_ids = [service.find_person(p).id for p in split_with]
            if group_id:
                sharing_ids.extend(service.get_group(group_id).member_ids)
            participant_shares = split_equally(sharing_ids, amount)

        if not participant_shares:
            raise InvalidExpenseError(
                "No participants: use --share, --split-with or --group"
            )

        expense = service.record_expense(
            description=description,
            amount=amount,
            paid_by=payer_amounts,
            participants=participant_shares,
            on=date.fromisoformat(on) if on else None,
            category=category,
        )

        console.print(
            f"[green]✓ Recorded {expense.description}: "
            f"{format_money(expense.amount, service.settings.currency_symbol, use_color=False).strip()}"
            f"[/green] [dim]({expense.id})[/dim]"
        )
        if not expense.is_balanced():
            console.print(
                "[yellow]⚠️  Payments or shares don't add up to the total; "
                "balances will not sum to zero.[/yellow]"
            )


@expense_app.command("list")
def expense_list(verbose: bool = VerboseOption):
    """List expenses."""
    with open_service(verbose) as service:
        expenses = service.list_expenses()
        if not expenses:
            console.print("[yellow]No expenses recorded.[/yellow]")
            return

        symbol = service.settings.currency_symbol
        table = Table(title="Expenses", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", width=10)
        table.add_column("Date")
        table.add_column("Description", style="cyan")
        table.add_column("Category", style="yellow")
        table.add_column("Amount", justify="right", width=14)
        table.add_column("Paid by")

        for expense in expenses:
            payer_names = ", ".join(service.person_name(p) for p in expense.paid_by)
            table.add_row(
                expense.id[:8],
                expense.date.isoformat(),
                expense.description,
                expense.category.value,
                format_money(expense.amount, symbol),
                payer_names,
            )

        console.print(table)


@expense_app.command("show")
def expense_show(
    expense_id: str = typer.Argument(..., help="Expense id"),
    verbose: bool = VerboseOption,
):
    """Show who paid and who owes for one expense."""
    with open_service(verbose) as service:
        expense = service.get_expense(expense_id)
        symbol = service.settings.currency_symbol

        console.print(f"\n[bold]{expense.description}[/bold] ({expense.date})")
        console.print(f"  Total: {format_money(expense.amount, symbol)}")
        console.print(f"  Category: {expense.category.value}")

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Person", style="cyan")
        table.add_column("Paid", justify="right")
        table.add_column("Share", justify="right")

        for person_id in dict.fromkeys([*expense.paid_by, *expense.participants]):
            table.add_row(
                service.person_name(person_id),
                format_money(expense.paid_by.get(person_id, 0.0), symbol),
                format_money(expense.participants.get(person_id, 0.0), symbol),
            )

        console.print(table)


@expense_app.command("remove")
def expense_remove(
    expense_id: str = typer.Argument(..., help="Expense id"),
    verbose: bool = VerboseOption,
):
    """Delete an expense and recompute who owes whom."""
    with open_service(verbose) as service:
        service.delete_expense(expense_id)
        console.print("[green]✓ Expense deleted[/green]")


# ============================================================================
# Balances and settling up
# ============================================================================


@app.command()
def balances(
    from_expenses: bool = typer.Option(
        False, "--from-expenses", help="Compute from all expenses, ignoring settlements"
    ),
    verbose: bool = VerboseOption,
):
    """Show each person's net balance."""
    with open_service(verbose) as service:
        if from_expenses:
            display_balances(service, service.expense_balances(), "Expense Balances")
        else:
            display_balances(service, service.net_balances(), "Outstanding Balances")


@app.command()
def debts(
    simplified: bool = typer.Option(
        False, "--simplified", "-s", help="Fewest payments that settle everything"
    ),
    per_expense: bool = typer.Option(
        False, "--expenses", help="Direct debts derived from each expense"
    ),
    verbose: bool = VerboseOption,
):
    """Show who owes whom."""
    with open_service(verbose) as service:
        if simplified:
            display_debts(service, service.simplified_debts(), "Simplified Debts")
        elif per_expense:
            display_debts(service, service.expense_debts(), "Debts by Expense")
        else:
            display_debts(service, service.all_debts(), "Who to Pay")


@app.command()
def payments(
    settled: bool = typer.Option(False, "--settled", help="Show settled history"),
    verbose: bool = VerboseOption,
):
    """List payments in the settlement plan."""
    with open_service(verbose) as service:
        symbol = service.settings.currency_symbol
        selected = [p for p in service.list_payments() if p.is_settled == settled]
        if not selected:
            console.print("[yellow]No payments to show.[/yellow]")
            return

        title = "Settled Payments" if settled else "Pending Payments"
        table = Table(title=title, show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Date")
        table.add_column("From", style="cyan")
        table.add_column("To", style="cyan")
        table.add_column("Amount", justify="right", width=14)

        for payment in selected:
            table.add_row(
                payment.id,
                payment.date.isoformat(),
                service.person_name(payment.from_id),
                service.person_name(payment.to_id),
                format_money(payment.amount, symbol),
            )

        console.print(table)


@app.command("settle")
def settle_command(
    payment_id: str = typer.Argument(..., help="Payment id"),
    verbose: bool = VerboseOption,
):
    """Mark one payment as settled."""
    with open_service(verbose) as service:
        if not any(p.id == payment_id for p in service.list_payments()):
            console.print(f"[yellow]No payment with id {payment_id}.[/yellow]")
            return

        service.settle_payment(payment_id)
        console.print("[green]✓ Payment settled[/green]")


@app.command("settle-pair")
def settle_pair(
    debtor: str = typer.Argument(None, help="Who paid (name or id)"),
    creditor: str = typer.Argument(None, help="Who received (name or id)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    verbose: bool = VerboseOption,
):
    """Record that one person paid back everything they owed another."""
    with open_service(verbose) as service:
        people = service.list_people()

        debtor_id = (
            service.find_person(debtor).id
            if debtor
            else select_person_interactive(people, "Debtor")
        )
        creditor_id = (
            service.find_person(creditor).id
            if creditor
            else select_person_interactive(people, "Creditor")
        )
        if not debtor_id or not creditor_id:
            console.print("[yellow]Cancelled.[/yellow]")
            return

        debtor_name = service.person_name(debtor_id)
        creditor_name = service.person_name(creditor_id)
        if not yes and not confirm(
            f"Mark everything {debtor_name} owes {creditor_name} as paid?"
        ):
            console.print("[yellow]Cancelled.[/yellow]")
            return

        service.settle_payments_by_pair(debtor_id, creditor_id)
        console.print(f"[green]✓ {debtor_name} settled up with {creditor_name}[/green]")


@app.command()
def summary(verbose: bool = VerboseOption):
    """Show what you owe and are owed."""
    with open_service(verbose) as service:
        symbol = service.settings.currency_symbol
        home = service.home_summary()

        console.print("\n[bold]Your balance[/bold]")
        console.print(f"  You are owed: {format_money(home.total_owed, symbol)}")
        console.print(f"  You owe:      {format_money(-home.total_owe, symbol)}")

        if not home.friend_debts:
            console.print("\n[green]You're all settled up.[/green]")
            return

        console.print()
        for friend_id, amount in home.friend_debts:
            name = service.person_name(friend_id)
            if is_positive(amount):
                console.print(f"  {name} owes you {format_money(amount, symbol)}")
            else:
                console.print(f"  You owe {name} {format_money(-amount, symbol)}")


@app.command()
def demo():
    """Walk through two example expenses."""
    for result in all_scenarios():
        display_scenario(result, "Rs.")
    console.print("\n[bold green]✨ All scenarios completed![/bold green]\n")


if __name__ == "__main__":
    app()
