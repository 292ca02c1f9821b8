#!/usr/bin/env python3
import requests
import json
from typing import Dict, Any, Optional
import os
import sys
from datetime import date

BASE_URL = os.environ.get("BUDGET_TRACKER_URL", "http://localhost:8000/api/v1")

# Store created entities for reference in subsequent requests
STORED_IDS = {
    "user_id": None,
    "budgets": {},
    "transactions": {}
}

def clear_screen():
    os.system('cls' if os.name == 'nt' else 'clear')

def print_header(title: str):
    clear_screen()
    print("=" * 50)
    print(f" {title} ".center(50, "="))
    print("=" * 50)
    print()

def get_input(prompt: str, default: str = None) -> str:
    if default:
        result = input(f"{prompt} [{default}]: ").strip()
        if not result:
            return default
        return result
    return input(f"{prompt}: ").strip()

def pause():
    input("\nPress Enter to continue...")

def make_request(method, endpoint, data=None, params=None) -> Optional[Any]:
    """Helper function to make requests to the API"""
    url = f"{BASE_URL}{endpoint}"

    print(f"\nMaking {method.upper()} request to {url}")
    if data:
        print(f"Request data: {json.dumps(data, indent=2)}")
    if params:
        print(f"Query params: {params}")

    try:
        response = requests.request(method.upper(), url, json=data, params=params, timeout=10)
    except requests.exceptions.RequestException as e:
        print(f"Request error: {str(e)}")
        return None

    if not 200 <= response.status_code < 300:
        print(f"Error {response.status_code}: {response.text}")
        return None
    if not response.text:
        return {}
    try:
        result = response.json()
    except json.JSONDecodeError:
        print(f"Warning: Response was not valid JSON: {response.text}")
        return {}
    print(f"Response: {json.dumps(result, indent=2)}")
    return result

def current_user() -> str:
    if not STORED_IDS["user_id"]:
        STORED_IDS["user_id"] = get_input("User ID", "demo-user")
    return STORED_IDS["user_id"]

def pick_stored(kind: str) -> Optional[str]:
    stored = STORED_IDS[kind]
    if stored:
        print(f"Stored {kind}: " + ", ".join(stored.keys()))
    name = get_input(f"Select {kind[:-1]} (name or id)")
    return stored.get(name, name or None)

# --- Budgets ---

def create_budget():
    print_header("Create Budget")
    today = date.today()
    name = get_input("Budget Name", "Monthly")
    data = {
        "user_id": current_user(),
        "name": name,
        "amount": get_input("Amount", "500"),
        "period": get_input("Period (daily, weekly, monthly, yearly, custom)", "monthly"),
        "start_date": get_input("Start date", today.replace(day=1).isoformat()),
        "end_date": get_input("End date", today.replace(day=28).isoformat()),
        "alert_threshold": get_input("Alert threshold (%)", "80"),
        "repeat_automatically": get_input("Repeat automatically? (y/n)", "n").lower() == "y"
    }
    category_ids = get_input("Category IDs (comma separated, blank for all)", "")
    data["category_ids"] = [c.strip() for c in category_ids.split(",") if c.strip()]

    result = make_request("post", "/budgets/", data=data)
    if result:
        STORED_IDS["budgets"][name] = result["id"]
        print(f"\nBudget created: {result['status']} ({result['percentage_used']:.1f}% used)")
    pause()

def list_budgets():
    print_header("List Budgets")
    result = make_request("get", "/budgets/", params={"user_id": current_user()})
    if result:
        for budget in result:
            STORED_IDS["budgets"][budget["name"]] = budget["id"]
            print(f"- {budget['name']}: {budget['spent']:,.2f} / {budget['amount']:,.2f} [{budget['status']}]")
    pause()

def budget_status_summary():
    print_header("Budget Status Summary")
    make_request("get", "/budgets/status", params={"user_id": current_user()})
    pause()

def update_budget():
    print_header("Update Budget")
    budget_id = pick_stored("budgets")
    field = get_input("Field to update (name, amount, alert_threshold, end_date, is_active)")
    value = get_input("New value")
    if field == "is_active":
        value = value.lower() in ("true", "y", "yes", "1")
    make_request("put", f"/budgets/{budget_id}", data={field: value}, params={"user_id": current_user()})
    pause()

def delete_budget():
    print_header("Delete Budget")
    budget_id = pick_stored("budgets")
    hard = get_input("Hard delete? (y/n)", "n").lower() == "y"
    make_request("delete", f"/budgets/{budget_id}", params={"user_id": current_user(), "hard": hard})
    pause()

def refresh_budgets():
    print_header("Refresh Budgets")
    make_request("post", "/budgets/refresh-all", params={"user_id": current_user()})
    pause()

def roll_over_budgets():
    print_header("Roll Over Recurring Budgets")
    make_request("post", "/budgets/roll-over", params={"user_id": current_user()})
    pause()

# --- Transactions ---

def create_transaction():
    print_header("Record Transaction")
    description = get_input("Description", "Groceries")
    data = {
        "user_id": current_user(),
        "amount": get_input("Amount", "25.00"),
        "type": get_input("Type (expense, income)", "expense"),
        "category_id": get_input("Category ID"),
        "description": description,
        "date": get_input("Date", date.today().isoformat())
    }
    result = make_request("post", "/transactions/", data=data)
    if result:
        STORED_IDS["transactions"][description] = result["id"]
    pause()

def delete_transaction():
    print_header("Delete Transaction")
    transaction_id = pick_stored("transactions")
    make_request("delete", f"/transactions/{transaction_id}", params={"user_id": current_user()})
    pause()

# --- Notifications ---

def list_notifications():
    print_header("Notifications")
    result = make_request("get", "/notifications/", params={"user_id": current_user(), "limit": 20})
    if result:
        print(f"\n{result['unread_count']} unread")
        for item in result["items"]:
            marker = " " if item["is_read"] else "*"
            print(f"{marker} [{item['priority']}] {item['title']}: {item['message']}")
    pause()

def read_all_notifications():
    print_header("Mark All As Read")
    make_request("put", "/notifications/read-all", params={"user_id": current_user()})
    pause()

def toggle_preference():
    print_header("Notification Preferences")
    make_request("get", "/settings/notifications", params={"user_id": current_user()})
    notification_type = get_input("\nType to change (blank to keep)", "")
    if notification_type:
        enabled = get_input("Enabled? (y/n)", "y").lower() == "y"
        make_request("put", "/settings/notifications",
                     data={"preferences": {notification_type: enabled}},
                     params={"user_id": current_user()})
    pause()

MENUS: Dict[str, Any] = {
    "1": ("Budgets", [
        ("Create Budget", create_budget),
        ("List Budgets", list_budgets),
        ("Status Summary", budget_status_summary),
        ("Update Budget", update_budget),
        ("Delete Budget", delete_budget),
        ("Refresh All", refresh_budgets),
        ("Roll Over Recurring", roll_over_budgets),
    ]),
    "2": ("Transactions", [
        ("Record Transaction", create_transaction),
        ("Delete Transaction", delete_transaction),
    ]),
    "3": ("Notifications", [
        ("List Notifications", list_notifications),
        ("Mark All As Read", read_all_notifications),
        ("Preferences", toggle_preference),
    ]),
}

def sub_menu(title, actions):
    while True:
        print_header(f"{title} Operations")
        for index, (label, _) in enumerate(actions, start=1):
            print(f"{index}. {label}")
        print("0. Back to Main Menu")

        choice = get_input("\nEnter your choice")
        if choice == "0":
            break
        if choice.isdigit() and 1 <= int(choice) <= len(actions):
            actions[int(choice) - 1][1]()

def main_menu():
    while True:
        print_header("Budget Tracker Test Client")
        for key, (title, _) in MENUS.items():
            print(f"{key}. {title}")
        print("9. Switch User")
        print("0. Exit")

        choice = get_input("\nEnter your choice")

        if choice == "0":
            print("\nExiting...")
            sys.exit(0)
        elif choice == "9":
            STORED_IDS["user_id"] = None
            current_user()
        elif choice in MENUS:
            sub_menu(*MENUS[choice])

if __name__ == "__main__":
    main_menu()
