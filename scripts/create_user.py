#!/usr/bin/env python3
"""
带外创建用户并打印其 API Token（仅显示一次）。

用法：
    python scripts/create_user.py --username alice --email alice@example.com
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from share_api.db import ensure_data_dir, init_db, store
from share_api.errors import ShareAPIError


def main():
    parser = argparse.ArgumentParser(description="Create a share API user")
    parser.add_argument("--username", required=True, help="用户名")
    parser.add_argument("--email", required=True, help="邮箱")
    args = parser.parse_args()

    username = args.username.strip()
    email = args.email.strip()
    if not username or not email:
        print("Error: username and email must not be blank")
        sys.exit(1)

    ensure_data_dir()
    init_db()
    try:
        user = store.create_user(username, email)
    except ShareAPIError as e:
        print(f"Error: {e.message}")
        sys.exit(1)

    print("User created")
    print("====================")
    print(f"User ID:   {user.id}")
    print(f"Username:  {user.username}")
    print(f"Email:     {user.email}")
    print(f"API Token: {user.api_token}")
    print("====================")
    print("Keep the API token safe; the notebook plugin authenticates with it.")


if __name__ == "__main__":
    main()
