#!/usr/bin/env python3
"""Terminal driver for the account flow.

Runs a FlowController against the configured identity authority (or the
mock server) and renders each form as prompts.
"""
import argparse
import asyncio
import getpass
import sys

from authflow import (CognitoGateway, FlowConfig, FlowController, FlowMode,
                      IdentifierKind, configure_logging,
                      load_authority_config, load_flow_config)
from authflow.config.settings import AuthorityConfig
from authflow.error.exceptions import ConfigurationException

# Fields prompted for in each mode; secret fields are read without echo
FORM_FIELDS = {
    FlowMode.LOGIN: [("identifier", False), ("password", True)],
    FlowMode.SIGNUP: [("identifier", False), ("email", False), ("password", True), ("confirm_password", True)],
    FlowMode.VERIFY: [("code", False)],
    FlowMode.RESET_REQUEST: [("identifier", False)],
    FlowMode.RESET_CONFIRM: [("code", False), ("new_password", True)],
}

# Navigation commands available per mode
COMMANDS = {
    FlowMode.LOGIN: {"s": FlowMode.SIGNUP, "f": FlowMode.RESET_REQUEST},
    FlowMode.SIGNUP: {"l": FlowMode.LOGIN},
    FlowMode.VERIFY: {"l": FlowMode.LOGIN},
    FlowMode.RESET_REQUEST: {"l": FlowMode.LOGIN},
    FlowMode.RESET_CONFIRM: {"l": FlowMode.LOGIN},
}


def render(controller: FlowController) -> None:
    """Print current status."""
    snapshot = controller.snapshot()
    print(f"\n== {snapshot.mode.value} ==")
    if snapshot.success:
        print(f"OK: {snapshot.success}")
    if snapshot.error:
        print(f"Error: {snapshot.error}")
    for name, message in snapshot.field_errors.items():
        print(f"  {name}: {message}")


def prompt_action(controller: FlowController) -> str:
    """Ask for the next action in the current mode."""
    mode = controller.mode
    options = ["[Enter] submit"]
    options += [f"[{key}] {target.value}" for key, target in COMMANDS[mode].items()]
    if mode is FlowMode.VERIFY:
        options.append("[r] resend code")
    options.append("[q] quit")
    return input(" ".join(options) + "\n> ").strip().lower()


async def run(controller: FlowController, done: asyncio.Event) -> None:
    """Loop until authenticated or quit."""
    while not done.is_set():
        render(controller)
        action = prompt_action(controller)
        mode = controller.mode

        if action == "q":
            return
        if action in COMMANDS[mode]:
            controller.switch_mode(COMMANDS[mode][action])
            continue
        if action == "r" and mode is FlowMode.VERIFY:
            await controller.resend_code()
            continue

        snapshot = controller.snapshot()
        for name, secret in FORM_FIELDS[mode]:
            if name == "email" and controller.identifier_kind is IdentifierKind.EMAIL:
                continue
            current = getattr(snapshot, name, "")
            label = f"{name} [{current}]: " if current else f"{name}: "
            value = getpass.getpass(label) if secret else input(label).strip()
            if value or secret:
                controller.update_field(name, value or current)
        await controller.submit()

    render(controller)


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Account flow terminal client",
        epilog="""
Examples:
  # Against the mock authority (python mock/server.py)
  %(prog)s --endpoint http://localhost:8002/ --client-id mock

  # Against the configured user pool (AUTH_REGION / AUTH_CLIENT_ID)
  %(prog)s
        """
    )
    parser.add_argument(
        "--endpoint",
        help="Authority endpoint (default: from AUTH_ENDPOINT/AUTH_REGION)"
    )
    parser.add_argument(
        "--client-id",
        help="App client id (default: from AUTH_CLIENT_ID)"
    )
    parser.add_argument(
        "--identifier",
        choices=[k.value for k in IdentifierKind],
        help="Identifier model (default: from AUTH_IDENTIFIER_KIND)"
    )
    parser.add_argument(
        "--auto-login",
        action="store_true",
        help="Log in automatically after verification"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="authflow log level (default: WARNING)"
    )

    args = parser.parse_args()
    configure_logging(args.log_level)

    try:
        if args.endpoint and args.client_id:
            authority = AuthorityConfig(client_id=args.client_id, endpoint=args.endpoint)
        else:
            authority = load_authority_config()
        flow_config = load_flow_config()
    except ConfigurationException as e:
        print(f"Configuration error: {e.message}")
        sys.exit(1)

    if args.identifier or args.auto_login:
        flow_config = FlowConfig(
            identifier_kind=IdentifierKind(args.identifier) if args.identifier else flow_config.identifier_kind,
            auto_login_after_verify=args.auto_login or flow_config.auto_login_after_verify,
        )

    done = asyncio.Event()

    def on_authenticated(session):
        print(f"\nAuthenticated as {session.username} (expires {session.expires_at:%Y-%m-%d %H:%M:%S} UTC)")
        done.set()

    async def start():
        controller = FlowController(CognitoGateway(authority), on_authenticated, flow_config)
        await run(controller, done)

    try:
        asyncio.run(start())
    except (KeyboardInterrupt, EOFError):
        print("\nStopping...")


if __name__ == "__main__":
    main()
