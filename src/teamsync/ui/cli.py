from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from teamsync.adapters.grafana import GrafanaClient
from teamsync.app import create_team, delete_team, import_team, read_team, update_team
from teamsync.config import ConfigurationError, TeamSpec, configure_logging, get_grafana_config

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from teamsync.app import TeamSyncResult
    from teamsync.domain.team import TeamState

log = logging.getLogger(__name__)


def _add_team_id(parser: argparse.ArgumentParser, *, with_org: bool = False) -> None:
    parser.add_argument(
        "--team-id",
        type=int,
        required=True,
        help="Numeric id of the Grafana team",
    )
    if with_org:
        parser.add_argument(
            "--org-id",
            type=int,
            default=None,
            help="Grafana organisation id (default: the org recorded for the team)",
        )


def _add_spec_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--name", type=str, required=True, help="Team name")
    parser.add_argument("--email", type=str, help="Optional team email address")
    parser.add_argument(
        "--user",
        dest="users",
        action="append",
        default=[],
        help="Email of a desired team member (repeatable)",
    )
    parser.add_argument(
        "--no-create-users",
        dest="create_users",
        action="store_false",
        help="Fail instead of creating members that do not exist in Grafana",
    )
    parser.add_argument(
        "--org-id",
        type=int,
        default=1,
        help="Grafana organisation id (default: %(default)s)",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage Grafana teams and their members")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create a team and add its members")
    _add_spec_arguments(create)

    update = subparsers.add_parser("update", help="Update a tracked team and reconcile members")
    _add_team_id(update)
    _add_spec_arguments(update)

    read = subparsers.add_parser("read", help="Refresh a tracked team from Grafana")
    _add_team_id(read, with_org=True)

    import_ = subparsers.add_parser("import", help="Start tracking an existing Grafana team")
    _add_team_id(import_, with_org=True)

    delete = subparsers.add_parser("delete", help="Delete a team")
    _add_team_id(delete, with_org=True)

    return parser.parse_args(list(argv))


def _build_spec(args: argparse.Namespace) -> TeamSpec:
    return TeamSpec.build(
        name=args.name,
        email=args.email,
        users=args.users,
        create_users=args.create_users,
        org_id=args.org_id,
    )


def _log_sync_result(action: str, result: TeamSyncResult) -> None:
    applied = result.reconciliation.applied
    log.info(
        "%s team %s: added=%s, removed=%s, conflicts=%s, created_users=%s",
        action,
        result.state.team_id,
        applied.added,
        applied.removed,
        applied.conflicts,
        len(result.reconciliation.created_users),
    )


def _log_state(state: TeamState) -> None:
    log.info(
        "Team %s %r (org %s): %s",
        state.team_id,
        state.name,
        state.org_id,
        ", ".join(state.users) or "no members",
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    spec: TeamSpec | None = None
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command in {"create", "update"}:
            spec = _build_spec(parsed_args)
    except ConfigurationError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        config = get_grafana_config()

        def client_factory(org_id: int | None) -> GrafanaClient:
            return GrafanaClient(config=config.for_org(org_id))

        command = parsed_args.command
        if command == "create" and spec is not None:
            _log_sync_result("Created", create_team(spec, client_factory=client_factory))
        elif command == "update" and spec is not None:
            _log_sync_result(
                "Updated",
                update_team(parsed_args.team_id, spec, client_factory=client_factory),
            )
        elif command == "read":
            state = read_team(
                parsed_args.team_id,
                org_id=parsed_args.org_id,
                client_factory=client_factory,
                admin_user=config.admin_user,
            )
            if state is None:
                log.warning("Team %s no longer exists", parsed_args.team_id)
            else:
                _log_state(state)
        elif command == "import":
            _log_state(
                import_team(
                    parsed_args.team_id,
                    org_id=parsed_args.org_id,
                    client_factory=client_factory,
                    admin_user=config.admin_user,
                )
            )
        elif command == "delete":
            delete_team(
                parsed_args.team_id,
                org_id=parsed_args.org_id,
                client_factory=client_factory,
            )
        else:
            raise ValueError(f"Unsupported command: {command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error while managing team")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
