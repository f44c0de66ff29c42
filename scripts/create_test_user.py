import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from casino.core.database import Database
from casino.core.exceptions import ValidationError
from casino.routers.identity import issue_session, SESSION_COOKIE


def create_test_user(username: str = "testuser"):
    """Creates a funded test account and prints a session cookie for it."""
    db = Database()

    try:
        account = db.create_account(username)
        print(f"Created account '{username}' (id {account.id}) with balance {account.balance}.")
    except ValidationError:
        account = db.get_account_by_username(username)
        print(f"Account '{username}' already exists (id {account.id}), balance {account.balance}.")

    print(f"Cookie: {SESSION_COOKIE}={issue_session(account.id, account.username)}")


if __name__ == "__main__":
    create_test_user(*sys.argv[1:2])
