"""Command-line entry point for the Meal Planner client."""

from __future__ import annotations

import argparse
import asyncio
import getpass
from typing import Sequence

from loguru import logger

from .core.local_store import LocalStore
from .core.lockout import MAX_FAILED_ATTEMPTS, RateLimitError
from .core.login import LoginController
from .services.api_client import (
    APIClient,
    APIError,
    InvalidCredentialsError,
    InvalidInputError,
)


def _controller(api: APIClient | None = None, store: LocalStore | None = None) -> LoginController:
    return LoginController(api or APIClient.get(), store or LocalStore())


async def _login(controller: LoginController, username: str, password: str) -> int:
    try:
        await controller.submit(username, password)
    except RateLimitError as exc:
        print(exc)
        return 3
    except InvalidCredentialsError as exc:
        remaining = MAX_FAILED_ATTEMPTS - controller.policy.state.failed_attempts
        print(f"{exc}." + (f" {remaining} attempt(s) left before lockout." if remaining > 0 else ""))
        return 1
    except InvalidInputError as exc:
        print(exc)
        return 1
    except APIError as exc:
        logger.error(f"Login failed: {exc}")
        return 2
    finally:
        await controller.api.close()
    print(f"Logged in as {username}.")
    return 0


def main(argv: Sequence[str] | None = None, controller: LoginController | None = None) -> int:
    """Parse CLI arguments and dispatch to the requested workflow."""

    parser = argparse.ArgumentParser(
        prog="mealplan_client",
        description="Sign in to the Meal Planner backend from this device.",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    login_cmd = sub.add_parser("login", help="Log in and store the session token.")
    login_cmd.add_argument("--username", help="Defaults to the last username used here.")
    sub.add_parser("logout", help="Forget the stored session token.")
    sub.add_parser("status", help="Show session and lockout state for this device.")

    args = parser.parse_args(None if argv is None else list(argv))
    controller = controller or _controller()

    if args.command == "login":
        username = args.username or controller.cached_username() or input("Username: ")
        password = getpass.getpass("Password: ")
        return asyncio.run(_login(controller, username.strip(), password))

    if args.command == "logout":
        controller.logout()
        print("Logged out.")
        return 0

    state = controller.policy.state
    print(f"Username: {controller.cached_username() or '-'}")
    print(f"Session token stored: {'yes' if controller.store.token() else 'no'}")
    print(f"Failed attempts: {state.failed_attempts}")
    if controller.policy.is_locked():
        print(f"Locked for another {int(controller.policy.remaining().total_seconds())}s")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
