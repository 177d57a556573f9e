#!/usr/bin/env python3
"""
crmdesk Quickstart — a whole working session in one script.

Registers a user → adds a contact → gives it an address → schedules a
follow-up task → completes it → logs an email → cleans up.
Run with: python examples/quickstart.py

Requires: pip install -e .
Backend must be running: http://localhost:4000
"""

from _common import create_client


def main():
    client = create_client()

    # ── Create contact ────────────────────────────────────────────
    print("\n1. Creating contact...")
    contact_id = client.create_contact(
        "Jane", "Doe", "2222222222", email="jane@example.com", note="Met at the expo"
    )
    print(f"   Contact #{contact_id}: Jane Doe")

    # ── Add an address ────────────────────────────────────────────
    print("\n2. Adding address...")
    address_id = client.add_contact_address(
        contact_id, "1 Main St", city="Springfield", state="IL", country="US"
    )
    print(f"   Address #{address_id}")

    # ── Schedule a follow-up ──────────────────────────────────────
    print("\n3. Creating task...")
    task_id = client.create_task(
        "Call Jane", description="Ask about the renewal", contact_id=contact_id
    )
    print(f"   Task #{task_id}: Call Jane")

    # ── Everything comes back nested under the contact ────────────
    print("\n4. Contact list:")
    for contact in client.list_contacts():
        print(f"   #{contact['id']} {contact['contact_first_name']} {contact['contact_last_name']}")
        for address in contact["addresses"]:
            print(f"      address: {address['address_line1']}, {address['city']}")
        for task in contact["tasks"]:
            print(f"      task #{task['id']}: {task['title']} [{task['status']}]")

    # ── Complete the task (only the status changes) ───────────────
    print("\n5. Completing task...")
    client.complete_task(task_id)
    task = client.get_task(task_id)
    print(f"   → {task['status']} (title still '{task['title']}')")

    # ── Log an email ──────────────────────────────────────────────
    print("\n6. Sending (simulated) email...")
    email_id = client.send_email("jane@example.com", "Thanks for the call", "Talk soon.")
    print(f"   Email #{email_id} recorded")

    # ── Clean up ──────────────────────────────────────────────────
    print("\n7. Deleting contact...")
    client.delete_contact(contact_id)
    remaining = client.list_tasks()
    print(f"   Contact gone; {len(remaining)} task(s) kept, now unlinked")

    client.logout()
    client.close()
    print("\n✓ Quickstart finished.")


if __name__ == "__main__":
    main()
