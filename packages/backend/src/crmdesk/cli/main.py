"""crmdesk CLI — the terminal front-end for the CRM API.

Usage:
    crmdesk register --first-name Ann --last-name Lee --email a@x.com --phone 1111111111
    crmdesk login a@x.com                        # prompts for the password
    crmdesk contacts list                        # contacts with addresses + tasks
    crmdesk contacts add Jane Doe 2222222222
    crmdesk tasks add "Call Jane" --contact-id 1
    crmdesk tasks done 3
    crmdesk email send jane@x.com "Hello"
    crmdesk logout

The session (token + absolute expiry) lives in ~/.crmdesk/session.json
(override with CRMDESK_SESSION_FILE). An expired session is cleared the
next time any command runs.
"""

from __future__ import annotations

import json
import os
import sys
from datetime import datetime
from functools import wraps
from typing import Optional

import click

from crmdesk import __version__
from crmdesk.client.api import DEFAULT_BASE_URL, ApiError, CrmClient
from crmdesk.client.session import FileTokenStore, SessionManager

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_SESSION_FILE = "~/.crmdesk/session.json"


def _api_url() -> str:
    return os.environ.get("CRMDESK_API_URL", DEFAULT_BASE_URL).rstrip("/")


def _session_file() -> str:
    return os.environ.get("CRMDESK_SESSION_FILE", DEFAULT_SESSION_FILE)


def _on_expire() -> None:
    click.secho("Session expired. Please log in again.", fg="yellow", err=True)


def _client() -> CrmClient:
    """Build a client whose session is restored from disk."""
    session = SessionManager(FileTokenStore(_session_file()), on_expire=_on_expire)
    session.restore()
    return CrmClient(base_url=_api_url(), session=session)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _handle_api_errors(fn):
    """Print API errors in red and exit 1 instead of dumping a traceback."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except ApiError as e:
            click.secho(f"Error: {e.message}", fg="red", err=True)
            if e.status_code == 401:
                click.echo("Log in with: crmdesk login <email-or-phone>", err=True)
            sys.exit(1)

    return wrapper


def _require_login(client: CrmClient) -> None:
    if not client.session.is_authenticated:
        click.secho("Not logged in. Run: crmdesk login <email-or-phone>", fg="red", err=True)
        sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(
            str(row.get(k) if row.get(k) is not None else "—")[:w].ljust(w)
            for _, k, w in columns
        )
        click.echo(line)


def _status_color(status: str) -> str:
    return {"pending": "yellow", "in_progress": "cyan", "completed": "green"}.get(status, "white")


def _contact_name(contact: dict) -> str:
    return contact.get("contact_full_name") or (
        f"{contact['contact_first_name']} {contact['contact_last_name']}".strip()
    )


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="crmdesk")
def main():
    """crmdesk — contacts, tasks and addresses from the terminal."""


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


@main.command()
@click.option("--first-name", prompt=True)
@click.option("--last-name", prompt=True)
@click.option("--email", prompt=True)
@click.option("--phone", prompt=True)
@click.password_option()
@_handle_api_errors
def register(first_name: str, last_name: str, email: str, phone: str, password: str):
    """Create an account."""
    with _client() as c:
        user_id = c.register(first_name, last_name, email, phone, password)
    click.secho(f"Registered user #{user_id}. Now run: crmdesk login {email}", fg="green")


@main.command()
@click.argument("email_or_phone")
@click.password_option(confirmation_prompt=False)
@_handle_api_errors
def login(email_or_phone: str, password: str):
    """Log in and store the session token."""
    with _client() as c:
        body = c.login(email_or_phone, password)
    expires = datetime.fromtimestamp(c.session.expires_at or 0)
    click.secho(
        f"Logged in. Session valid for {body['expiresInSeconds'] // 60} min "
        f"(until {expires:%H:%M:%S}).",
        fg="green",
    )


@main.command()
def logout():
    """Forget the stored session."""
    with _client() as c:
        c.logout()
    click.echo("Logged out.")


@main.command()
@_handle_api_errors
def whoami():
    """Show the signed-in user and the session's remaining lifetime."""
    with _client() as c:
        _require_login(c)
        me = c.me()
        remaining = int(c.session.seconds_remaining())
    click.echo(f"{me['first_name']} {me['last_name']} <{me['email']}> ({me['phone']})")
    click.echo(f"Session expires in {remaining // 60}m {remaining % 60}s")


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------


@main.group()
def contacts():
    """Manage contacts."""


@contacts.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
@_handle_api_errors
def contacts_list(as_json: bool):
    """List contacts with their addresses and tasks."""
    with _client() as c:
        _require_login(c)
        rows = c.list_contacts()
    if as_json:
        click.echo(_pretty_json(rows))
        return
    if not rows:
        click.echo("No contacts yet.")
        return
    for contact in rows:
        click.secho(f"#{contact['id']}  {_contact_name(contact)}  {contact['contact_number']}", bold=True)
        if contact.get("contact_email"):
            click.echo(f"    email: {contact['contact_email']}")
        for a in contact["addresses"]:
            parts = [a["address_line1"], a.get("address_line2"), a.get("city"),
                     a.get("state"), a.get("pincode"), a.get("country")]
            click.echo("    address: " + ", ".join(p for p in parts if p))
        for t in contact["tasks"]:
            status = click.style(t["status"], fg=_status_color(t["status"]))
            click.echo(f"    task #{t['id']}: {t['title']} [{status}]")


@contacts.command("add")
@click.argument("first_name")
@click.argument("last_name")
@click.argument("number")
@click.option("--email", help="Contact email")
@click.option("--note", help="Free-form note")
@_handle_api_errors
def contacts_add(first_name: str, last_name: str, number: str,
                 email: Optional[str], note: Optional[str]):
    """Add a contact."""
    with _client() as c:
        _require_login(c)
        contact_id = c.create_contact(first_name, last_name, number, email=email, note=note)
    click.secho(f"Contact #{contact_id} created", fg="green")


@contacts.command("show")
@click.argument("contact_id", type=int)
@_handle_api_errors
def contacts_show(contact_id: int):
    """Show one contact as JSON."""
    with _client() as c:
        _require_login(c)
        click.echo(_pretty_json(c.get_contact(contact_id)))


@contacts.command("delete")
@click.argument("contact_id", type=int)
@click.confirmation_option(prompt="Delete this contact and its addresses?")
@_handle_api_errors
def contacts_delete(contact_id: int):
    """Delete a contact."""
    with _client() as c:
        _require_login(c)
        c.delete_contact(contact_id)
    click.echo(f"Contact #{contact_id} deleted")


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


@main.group()
def address():
    """Manage contact addresses."""


@address.command("add")
@click.argument("contact_id", type=int)
@click.argument("address_line1")
@click.option("--line2", "address_line2")
@click.option("--city", required=True)
@click.option("--state")
@click.option("--pincode")
@click.option("--country")
@_handle_api_errors
def address_add(contact_id: int, address_line1: str, address_line2: Optional[str],
                city: str, state: Optional[str], pincode: Optional[str],
                country: Optional[str]):
    """Add an address to a contact."""
    with _client() as c:
        _require_login(c)
        address_id = c.create_address(
            contact_id, address_line1, city,
            address_line2=address_line2, state=state, pincode=pincode, country=country,
        )
    click.secho(f"Address #{address_id} added to contact #{contact_id}", fg="green")


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@main.group()
def tasks():
    """Manage tasks."""


@tasks.command("list")
@_handle_api_errors
def tasks_list():
    """List tasks, newest first."""
    with _client() as c:
        _require_login(c)
        rows = c.list_tasks()
    if not rows:
        click.echo("No tasks yet.")
        return
    _print_table(rows, [
        ("ID", "id", 5),
        ("Title", "title", 40),
        ("Status", "status", 12),
        ("Due", "due_date", 10),
        ("Contact", "contact_name", 20),
    ])


@tasks.command("add")
@click.argument("title")
@click.option("--description", "-d")
@click.option("--contact-id", "-c", type=int)
@click.option("--due", "due_date", type=click.DateTime(formats=["%Y-%m-%d"]))
@_handle_api_errors
def tasks_add(title: str, description: Optional[str], contact_id: Optional[int],
              due_date: Optional[datetime]):
    """Create a task, optionally linked to a contact."""
    fields: dict = {}
    if description:
        fields["description"] = description
    if contact_id is not None:
        fields["contact_id"] = contact_id
    if due_date is not None:
        fields["due_date"] = due_date.date()
    with _client() as c:
        _require_login(c)
        task_id = c.create_task(title, **fields)
    click.secho(f"Task #{task_id} created", fg="green")


@tasks.command("done")
@click.argument("task_id", type=int)
@_handle_api_errors
def tasks_done(task_id: int):
    """Mark a task completed (other fields are left alone)."""
    with _client() as c:
        _require_login(c)
        c.complete_task(task_id)
    click.secho(f"Task #{task_id} completed", fg="green")


@tasks.command("delete")
@click.argument("task_id", type=int)
@_handle_api_errors
def tasks_delete(task_id: int):
    """Delete a task."""
    with _client() as c:
        _require_login(c)
        c.delete_task(task_id)
    click.echo(f"Task #{task_id} deleted")


# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------


@main.group()
def email():
    """Simulated email log."""


@email.command("send")
@click.argument("to_email")
@click.argument("subject")
@click.option("--body", "-b", help="Message body")
@_handle_api_errors
def email_send(to_email: str, subject: str, body: Optional[str]):
    """Record a (simulated) email."""
    with _client() as c:
        _require_login(c)
        email_id = c.send_email(to_email, subject, body)
    click.secho(f"Email #{email_id} logged as sent", fg="green")


@email.command("list")
@click.option("--limit", "-n", type=int, default=20, show_default=True)
@_handle_api_errors
def email_list(limit: int):
    """Show recently sent emails."""
    with _client() as c:
        _require_login(c)
        rows = c.list_emails(limit=limit)
    if not rows:
        click.echo("No emails sent yet.")
        return
    _print_table(rows, [
        ("ID", "id", 5),
        ("To", "to_email", 28),
        ("Subject", "subject", 36),
        ("Sent", "sent_at", 19),
    ])


if __name__ == "__main__":
    main()
